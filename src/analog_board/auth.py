from __future__ import annotations

import secrets
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .settings import Settings, get_settings

_security = HTTPBasic(realm="analog-board", auto_error=False)

BOARD_AUTH_REQUIRED = "Board credentials required"
BOARD_AUTH_UNCONFIGURED = "Board owner credentials are not configured"
BOARD_AUTH_INVALID = "Invalid board credentials"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": 'Basic realm="analog-board"'},
    )


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


# PUBLIC_INTERFACE
def board_owner_guard(settings: Optional[Settings] = None) -> Callable[..., None]:
    """
    Build the dependency that protects the board router.

    The board belongs to a single owner. With ENABLE_BASIC_AUTH off (default)
    the guard lets every request through. With it on, requests must carry the
    owner's BASIC_AUTH_USERNAME/BASIC_AUTH_PASSWORD, otherwise they get a 401.
    """
    settings = settings or get_settings()

    if not settings.enable_basic_auth:
        def _open_board() -> None:
            return None

        return _open_board

    owner = settings.basic_auth_username
    password = settings.basic_auth_password

    def _owner_only(creds: Optional[HTTPBasicCredentials] = Depends(_security)) -> None:
        if creds is None:
            raise _unauthorized(BOARD_AUTH_REQUIRED)
        if owner is None or password is None:
            raise _unauthorized(BOARD_AUTH_UNCONFIGURED)
        # Compare both fields even when the first one differs
        user_ok = _matches(creds.username, owner)
        pass_ok = _matches(creds.password, password)
        if not (user_ok and pass_ok):
            raise _unauthorized(BOARD_AUTH_INVALID)

    return _owner_only
