"""Data models for the profile API and the identity provider."""

from pyridepool.models._base import RidePoolBaseModel
from pyridepool.models.profile import CarpoolStatus, Profile, ProfileFields
from pyridepool.models.token import PendingAuthorization, TokenSet

__all__ = [
    "CarpoolStatus",
    "PendingAuthorization",
    "Profile",
    "ProfileFields",
    "RidePoolBaseModel",
    "TokenSet",
]
