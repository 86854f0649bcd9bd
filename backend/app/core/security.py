# app/core/security.py
"""
Vérification des tokens émis par le service d'identité hébergé
et gestion des cookies de session (access + refresh).
"""
from typing import Any, Dict, Optional

from fastapi import Response
from jose import jwt

from app.core.config import settings


def decode_token(token: str) -> Dict[str, Any]:
    """
    Vérifie signature, expiration et audience du JWT d'accès.
    Lève jose.JWTError si le token est invalide.
    """
    return jwt.decode(
        token,
        settings.AUTH_JWT_SECRET,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        audience=settings.AUTH_JWT_AUDIENCE,
    )


def set_session_cookies(response: Response, access_token: str, refresh_token: Optional[str]) -> None:
    secure = not settings.DEBUG
    response.set_cookie(
        settings.ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.ACCESS_TOKEN_COOKIE_MAX_AGE,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )
    if refresh_token:
        response.set_cookie(
            settings.REFRESH_TOKEN_COOKIE,
            refresh_token,
            max_age=settings.REFRESH_TOKEN_COOKIE_MAX_AGE,
            httponly=True,
            secure=secure,
            samesite="lax",
            path="/",
        )


def clear_session_cookies(response: Response) -> None:
    for name in (settings.ACCESS_TOKEN_COOKIE, settings.REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=not settings.DEBUG,
            samesite="lax",
        )
