"""SQLAlchemy models."""
from models.auth_session import AuthSession
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.deletion_request import DeletionRequest, DeletionStatus
from models.diagram import Diagram
from models.email_preference import EmailPreference
from models.linked_account import LinkedAccount
from models.profile import Profile
from models.saved_node import SavedNode
from models.share_link import ShareLink
from models.two_factor import TwoFactor
from models.user import User

__all__ = [
    "AuthSession",
    "Base",
    "DeletionRequest",
    "DeletionStatus",
    "Diagram",
    "EmailPreference",
    "LinkedAccount",
    "Profile",
    "SavedNode",
    "ShareLink",
    "TimestampMixin",
    "TwoFactor",
    "UUIDv7Mixin",
    "User",
]
