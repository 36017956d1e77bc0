"""Common API dependencies: the library instance and the caller check."""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gallery.services.library import Library

bearer_scheme = HTTPBearer(auto_error=False)


def get_library(request: Request) -> Library:
    """The library opened at startup."""
    return request.app.state.library


def require_authorized(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    """Gate mutating routes.

    With no access token configured the single local caller is trusted.
    """
    expected = request.app.state.library.settings.access_token
    if not expected:
        return
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized",
        )
