# engine/visibility/policy.py
"""
Politique de visibilité des champs sensibles d'une visite — ZÉRO accès DB.

Règle :
    can_view_sensitive = role ∈ {admin, superieur, consultant}
                         OU visite.commercial_id == appelant

Sinon montant et probabilite valent None dans l'objet renvoyé au
transport. La valeur brute n'est jamais sérialisée pour un appelant
non autorisé (ce n'est pas un masquage d'affichage).
"""
from typing import Any, Dict, Iterable, List, Optional, Union

from app.shared.enums import ELEVATED_ROLES, UserRole, parse_role

SENSITIVE_FIELDS = ("montant", "probabilite")


def can_view_sensitive(
    visite: Dict[str, Any], caller_id: Optional[str], caller_role: Union[UserRole, str, None]
) -> bool:
    if parse_role(caller_role) in ELEVATED_ROLES:
        return True
    owner_id = visite.get("commercial_id")
    return owner_id is not None and caller_id is not None and str(owner_id) == str(caller_id)


def redact_visit(
    visite: Dict[str, Any], caller_id: Optional[str], caller_role: Union[UserRole, str, None]
) -> Dict[str, Any]:
    """Retourne une copie ; l'original n'est jamais modifié."""
    output = dict(visite)
    if not can_view_sensitive(visite, caller_id, caller_role):
        for field in SENSITIVE_FIELDS:
            output[field] = None
    return output


def redact_visits(
    visites: Iterable[Dict[str, Any]], caller_id: Optional[str], caller_role: Union[UserRole, str, None]
) -> List[Dict[str, Any]]:
    return [redact_visit(v, caller_id, caller_role) for v in visites]
