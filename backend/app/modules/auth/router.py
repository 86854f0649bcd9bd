# app/modules/auth/router.py
from fastapi import APIRouter, Request, Response

from app.core.config import settings
from app.core.security import clear_session_cookies, set_session_cookies
from app.modules.auth.schemas import LoginIn, LogoutOut, MeOut, SessionOut
from app.modules.auth.service import AuthService
from app.shared.deps import UserDep

router = APIRouter(prefix="/auth", tags=["Auth"])
service = AuthService()


@router.post("/login", response_model=SessionOut)
async def login(payload: LoginIn, response: Response):
    """Email + mot de passe → cookies access / refresh."""
    session = await service.login(payload)
    set_session_cookies(response, session.access_token, session.refresh_token)
    return {"user": session.user}


@router.post("/logout", response_model=LogoutOut)
async def logout(response: Response):
    clear_session_cookies(response)
    return {"success": True}


@router.post("/refresh", response_model=SessionOut)
async def refresh(request: Request, response: Response):
    """Refresh token (cookie) → nouvelle paire de cookies."""
    session = await service.refresh(request.cookies.get(settings.REFRESH_TOKEN_COOKIE))
    set_session_cookies(response, session.access_token, session.refresh_token)
    return {"user": session.user}


@router.get("/me", response_model=MeOut)
async def me(current_user: UserDep):
    """Retourne les infos minimales de la session."""
    return {
        "id": current_user.id,
        "email": current_user.email,
        "role": current_user.role,
        "name": current_user.display_name,
    }
