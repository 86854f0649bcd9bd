# app/modules/auth/schemas.py
from pydantic import BaseModel
from typing import Any, Dict, Optional

from app.shared.enums import UserRole


# ── Login ─────────────────────────────────────────────────

class LoginIn(BaseModel):
    """Champs optionnels : l'absence est signalée par le service (400 métier)."""
    email:    Optional[str] = None
    password: Optional[str] = None


# ── Réponses ─────────────────────────────────────────────

class SessionOut(BaseModel):
    """Les tokens ne sont jamais dans le corps : cookies httpOnly uniquement."""
    user: Dict[str, Any] = {}


class LogoutOut(BaseModel):
    success: bool = True


class MeOut(BaseModel):
    id:    str
    email: Optional[str] = None
    role:  Optional[UserRole] = None
    name:  Optional[str] = None
