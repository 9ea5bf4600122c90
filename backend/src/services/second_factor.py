"""Re-verification of a user's TOTP code before destructive actions."""
from typing import Protocol
from uuid import UUID

import pyotp
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.two_factor import TwoFactor

TOTP_DIGITS = 6
TOTP_INTERVAL_SECONDS = 30
# Accept the previous and next 30-second step to tolerate clock drift
TOTP_VALID_WINDOW = 1


class SecondFactorVerifier(Protocol):
    """Checks a one-time code against a user's enrolled secret."""

    def verify(self, secret: str, code: str) -> bool:
        """Return True if the code is valid for the secret right now."""
        ...


class TotpVerifier:
    """RFC 6238 TOTP verifier (SHA1, 6 digits, 30s steps, +/-1 step window)."""

    def __init__(
        self,
        digits: int = TOTP_DIGITS,
        interval: int = TOTP_INTERVAL_SECONDS,
        valid_window: int = TOTP_VALID_WINDOW,
    ) -> None:
        self.digits = digits
        self.interval = interval
        self.valid_window = valid_window

    def verify(self, secret: str, code: str) -> bool:
        """Return True if the code is valid for the secret within the window."""
        normalized = code.replace(" ", "").strip()
        if not normalized.isdigit() or len(normalized) != self.digits:
            return False
        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
        return totp.verify(normalized, valid_window=self.valid_window)


async def get_two_factor_secret(db: AsyncSession, user_id: UUID) -> str | None:
    """Get the user's enrolled TOTP secret, or None if there is none on file."""
    result = await db.execute(
        select(TwoFactor.secret).where(TwoFactor.user_id == user_id).limit(1),
    )
    return result.scalar_one_or_none()
