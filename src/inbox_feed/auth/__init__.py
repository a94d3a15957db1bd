"""OAuth sign-in, token refresh, and sign-out."""

from .oauth import GoogleOAuthClient, RefreshedToken, TokenGrant
from .refresher import TokenRefresher
from .session import complete_authorization, sign_out

__all__ = [
    "GoogleOAuthClient",
    "RefreshedToken",
    "TokenGrant",
    "TokenRefresher",
    "complete_authorization",
    "sign_out",
]
