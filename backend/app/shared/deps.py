# app/shared/deps.py
"""
Dépendances FastAPI réutilisables dans tous les routers.
Injectées via Depends() — jamais appelées directement.

Authentification : cookie access token → JWT vérifié localement →
rôle lu dans la table profiles.
"""
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError
from app.core.security import decode_token
from app.shared.enums import ADMIN_ROLES, ELEVATED_ROLES, UserRole, parse_role
from app.shared.models import Profile


@dataclass
class CurrentUser:
    """Identité de l'appelant, issue des claims du token + rôle du profil."""
    id: str
    email: Optional[str] = None
    role: Optional[UserRole] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> Optional[str]:
        """'prenom nom' depuis les claims de session, sinon email."""
        full_name = (
            f"{self.user_metadata.get('prenom') or ''} {self.user_metadata.get('nom') or ''}"
        ).strip()
        return full_name or self.email or None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    def as_creator(self) -> Dict[str, Any]:
        """Forme attendue par le rendu d'email (created_by)."""
        return {"id": self.id, "email": self.email, "user_metadata": dict(self.user_metadata)}


async def _get_user_from_cookie(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CurrentUser:
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token:
        raise AuthenticationError("Utilisateur non authentifié.")

    try:
        claims = decode_token(token)
    except JWTError:
        raise AuthenticationError("Impossible de récupérer l'utilisateur courant.")

    user_id = claims.get("sub")
    if not user_id:
        raise AuthenticationError("Impossible de récupérer l'utilisateur courant.")

    result = await db.execute(select(Profile.role).where(Profile.id == user_id))
    role = result.scalar_one_or_none()

    return CurrentUser(
        id=str(user_id),
        email=claims.get("email"),
        role=parse_role(role),
        user_metadata=claims.get("user_metadata") or {},
    )


# ── Deps publiques ─────────────────────────────────────────

async def get_current_user(
    user: Annotated[CurrentUser, Depends(_get_user_from_cookie)],
) -> CurrentUser:
    """Utilisateur authentifié (tout rôle)."""
    return user


# ── Type aliases pour les routers ─────────────────────────
DbDep    = Annotated[AsyncSession, Depends(get_db)]
UserDep  = Annotated[CurrentUser, Depends(get_current_user)]
