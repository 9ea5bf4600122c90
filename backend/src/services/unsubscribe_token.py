"""
Unsubscribe link tokens.

A token is the unpadded URL-safe base64 encoding of the recipient's email
address. It is reversible and not tamper evident: anyone holding or guessing a
token can change that address's marketing preferences. Kept deliberately for
compatibility with links already sent; see DESIGN.md.
"""
import base64
import binascii

from services.exceptions import InvalidUnsubscribeTokenError


def encode_unsubscribe_token(email: str) -> str:
    """Encode an email address into an unsubscribe token."""
    return base64.urlsafe_b64encode(email.encode("utf-8")).decode("ascii").rstrip("=")


def decode_unsubscribe_token(token: str) -> str:
    """
    Decode an unsubscribe token back to the email address.

    Raises:
        InvalidUnsubscribeTokenError: If the token is not valid base64, not UTF-8,
            or does not decode to something that looks like an email address.
    """
    padded = token + "=" * (-len(token) % 4)
    try:
        email = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidUnsubscribeTokenError() from e
    if "@" not in email:
        raise InvalidUnsubscribeTokenError()
    return email


def mask_email(email: str) -> str:
    """Mask an email for display, keeping the first two characters and the domain."""
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}"
