# app/shared/enums.py
"""
Toutes les énumérations du projet SalesTracker.

Source unique de vérité pour les statuts et rôles.
Les valeurs sont celles stockées dans la base hébergée.
"""

from enum import Enum
from typing import Optional

class UserRole(str, Enum):
    COMMERCIAL = "commercial"
    ADMIN      = "admin"
    SUPERIEUR  = "superieur"   # Ancien nom du rôle admin
    CONSULTANT = "consultant"


# Rôles administrateurs (modification / suppression de toute visite)
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERIEUR})

# Rôles avec visibilité transverse (montants, probabilités, filtre commercial)
ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERIEUR, UserRole.CONSULTANT})


class StatutVisite(str, Enum):
    A_FAIRE  = "a_faire"
    EN_COURS = "en_cours"
    TERMINE  = "termine"


class StatutAction(str, Enum):
    EN_ATTENTE = "en_attente"
    ACCEPTE    = "accepte"
    REFUSE     = "refuse"


class StatutRdv(str, Enum):
    PLANIFIE = "planifie"
    CONFIRME = "confirme"
    TERMINE  = "termine"
    ANNULE   = "annule"
    REPORTE  = "reporte"


class PrioriteRdv(str, Enum):
    BASSE   = "basse"
    NORMALE = "normale"
    HAUTE   = "haute"
    URGENTE = "urgente"


class NotificationMode(str, Enum):
    CREATION = "creation"
    REMINDER = "reminder"


def parse_role(value) -> Optional[UserRole]:
    """Rôle inconnu ou absent → None (aucun privilège)."""
    if value is None:
        return None
    try:
        return UserRole(value)
    except ValueError:
        return None
