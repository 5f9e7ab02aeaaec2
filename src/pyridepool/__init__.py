"""pyridepool - Async Python client for the Ride Pool carpool service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyridepool")
except PackageNotFoundError:
    __version__ = "0+local"
from pyridepool.client import RidePoolClient
from pyridepool.config import OAuthSettings, RidePoolConfig
from pyridepool.exceptions import (
    DraftValidationError,
    IdentityError,
    IncompleteSessionError,
    InvalidTransitionError,
    NoActiveSessionError,
    OperationPendingError,
    RidePoolApiError,
    RidePoolConfigError,
    RidePoolError,
    RidePoolTransportError,
    TokenVerificationError,
)
from pyridepool.forms import FormDraft, FormMode
from pyridepool.identity import (
    FileTokenStore,
    HostedUIIdentityClient,
    IdentityClient,
    IdentitySession,
    MemoryTokenStore,
)
from pyridepool.models import CarpoolStatus, Profile, ProfileFields, TokenSet
from pyridepool.session import Session
from pyridepool.state import AppState, StateEvent, ViewState

__all__ = [
    "__version__",
    "AppState",
    "CarpoolStatus",
    "DraftValidationError",
    "FileTokenStore",
    "FormDraft",
    "FormMode",
    "HostedUIIdentityClient",
    "IdentityClient",
    "IdentityError",
    "IdentitySession",
    "IncompleteSessionError",
    "InvalidTransitionError",
    "MemoryTokenStore",
    "NoActiveSessionError",
    "OAuthSettings",
    "OperationPendingError",
    "Profile",
    "ProfileFields",
    "RidePoolApiError",
    "RidePoolClient",
    "RidePoolConfig",
    "RidePoolConfigError",
    "RidePoolError",
    "RidePoolTransportError",
    "Session",
    "StateEvent",
    "TokenSet",
    "TokenVerificationError",
    "ViewState",
]
