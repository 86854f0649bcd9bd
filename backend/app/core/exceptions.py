# app/core/exceptions.py
"""
Taxonomie des erreurs métier.

Chaque erreur porte son code HTTP et un message public. Les handlers
enregistrés dans main.py les transforment en {"error": message}.
Le détail interne (exception du store, SMTP…) reste dans les logs.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "Erreur interne du serveur."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(AppError):
    """Token de session absent, invalide ou expiré."""
    status_code = 401
    default_message = "Utilisateur non authentifié."


class AuthorizationError(AppError):
    """Session valide mais rôle ou secret insuffisant."""
    status_code = 403
    default_message = "Accès refusé."


class ValidationError(AppError):
    status_code = 400
    default_message = "Données invalides."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Ressource introuvable."


class UpstreamStoreError(AppError):
    """Lecture ou écriture en échec côté base hébergée."""
    status_code = 500
    default_message = "Erreur interne du serveur."


class NotificationDeliveryError(AppError):
    """Échec du transport email. Jamais renvoyé tel quel à l'appelant HTTP."""
    status_code = 502
    default_message = "Échec de l'envoi de l'email."
