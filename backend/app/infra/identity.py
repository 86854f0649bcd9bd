# app/infra/identity.py
"""
Client HTTP du service d'identité hébergé.

Échange email + mot de passe (ou refresh token) contre une paire
access + refresh. La vérification des access tokens à chaque requête
se fait localement (core/security.decode_token), sans appel réseau.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import AuthenticationError, UpstreamStoreError

logger = logging.getLogger(__name__)


@dataclass
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    user: Dict[str, Any] = field(default_factory=dict)


class IdentityClient:

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.AUTH_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.AUTH_API_KEY
        self.transport = transport

    # ── Sessions ──────────────────────────────────────────────

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        data = await self._token_request(
            "password", {"email": email, "password": password}, "Identifiants incorrects."
        )
        return self._to_session(data, default_error="Identifiants incorrects.")

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        data = await self._token_request(
            "refresh_token", {"refresh_token": refresh_token}, "Session expirée."
        )
        return self._to_session(data, default_error="Session expirée.")

    # ── Privé ─────────────────────────────────────────────────

    async def _token_request(
        self, grant_type: str, body: Dict[str, Any], rejected_message: str
    ) -> Dict[str, Any]:
        """Refus du service (4xx) : détail en log, message générique à l'appelant."""
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.AUTH_TIMEOUT_SECONDS,
                transport=self.transport,
            ) as client:
                response = await client.post(
                    "/auth/v1/token",
                    params={"grant_type": grant_type},
                    json=body,
                    headers={"apikey": self.api_key},
                )
        except httpx.HTTPError as e:
            logger.error("Service d'identité injoignable", extra={"error": str(e)})
            raise UpstreamStoreError() from e

        if response.status_code >= 500:
            logger.error(
                "Erreur du service d'identité",
                extra={"status_code": response.status_code, "error": response.text},
            )
            raise UpstreamStoreError()

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400:
            logger.warning(
                "Authentification refusée par le service d'identité",
                extra={
                    "status_code": response.status_code,
                    "error": payload.get("error_description") or payload.get("msg") or response.text,
                },
            )
            raise AuthenticationError(rejected_message)
        return payload

    @staticmethod
    def _to_session(data: Dict[str, Any], default_error: str) -> AuthSession:
        access_token = data.get("access_token")
        if not access_token:
            raise AuthenticationError(default_error)
        return AuthSession(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            user=data.get("user") or {},
        )
