"""Internal constants shared across the library."""

USER_AGENT = "pyridepool"

USERS_PATH = "/users"

DEFAULT_PROVIDER = "Google"

#: Statuses the profile API answers a successful request with, per verb.
OK_STATUSES: dict[str, frozenset[int]] = {
    "GET": frozenset({200}),
    "POST": frozenset({200, 201}),
    "PUT": frozenset({200}),
    "DELETE": frozenset({200, 204}),
}

#: Seconds of clock skew tolerated when checking token expiry.
TOKEN_LEEWAY_S = 60

# ------------------------------------------------------------------
# User-facing messages
# ------------------------------------------------------------------

MSG_PROFILE_LOAD_FAILED = "Failed to load user profile. Please try again."
MSG_PROFILE_SAVE_FAILED = "Failed to save profile. Please try again."
MSG_PROFILE_DELETE_FAILED = "Failed to delete profile. Please try again."
MSG_SIGN_IN_FAILED = "Failed to sign in. Please try again."
MSG_SIGN_OUT_FAILED = "Failed to sign out. Please try again."
MSG_INCOMPLETE_SESSION = "Your sign-in session is incomplete. Please sign in again."
