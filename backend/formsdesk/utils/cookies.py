"""Auth cookie helpers"""
from fastapi import Response

from formsdesk.config import settings


def set_auth_cookie(response: Response, token: str) -> None:
    """Attach the session token as an HttpOnly cookie (Secure in production)"""
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.TOKEN_EXPIRE_SECONDS,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_auth_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
