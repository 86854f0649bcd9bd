# app/modules/auth/service.py
"""
Sessions déléguées au service d'identité hébergé.

Aucun mot de passe ni token n'est stocké ici : on échange des
identifiants (ou un refresh token) contre une paire de tokens,
que le router pose en cookies httpOnly.
"""
import logging
from typing import Optional

from app.core.exceptions import AuthenticationError, ValidationError
from app.infra.identity import AuthSession, IdentityClient
from app.modules.auth.schemas import LoginIn

logger = logging.getLogger(__name__)


class AuthService:

    def __init__(self, client: Optional[IdentityClient] = None):
        self.client = client or IdentityClient()

    async def login(self, payload: LoginIn) -> AuthSession:
        email = (payload.email or "").strip()
        if not email or not payload.password:
            raise ValidationError("Email et mot de passe sont requis.")

        session = await self.client.sign_in_with_password(email, payload.password)
        logger.info("Connexion réussie", extra={"user_id": session.user.get("id")})
        return session

    async def refresh(self, refresh_token: Optional[str]) -> AuthSession:
        if not refresh_token:
            raise AuthenticationError("Session expirée.")
        return await self.client.refresh_session(refresh_token)
