# app/modules/visits/schemas.py
import math
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.shared.enums import StatutAction, StatutVisite

_OPTIONAL_TEXT = (
    "fonction_poste", "ville", "zone", "adresse", "tel_fixe", "mobile", "email",
    "provenance_contact", "interet_client", "actions_a_entreprendre", "remarques",
    "date_prochaine_action",
)

# Colonnes NOT NULL : absentes d'un PATCH, jamais null
_REQUIRED_ON_UPDATE = (
    "entreprise", "personne_rencontree", "objet_visite", "date_visite",
    "statut_visite", "statut_action",
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _nan_to_none(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ── Création ─────────────────────────────────────────────

class VisiteFormData(BaseModel):
    """Formulaire de saisie d'une visite (visit-form)."""
    model_config = ConfigDict(use_enum_values=True)

    entreprise:          str = Field(..., min_length=1)
    personne_rencontree: str = Field(..., min_length=1)
    fonction_poste:      Optional[str] = None
    ville:               Optional[str] = None
    zone:                Optional[str] = None
    adresse:             Optional[str] = None
    tel_fixe:            Optional[str] = None
    mobile:              Optional[str] = None
    email:               Optional[str] = None
    date_visite:         date
    objet_visite:        str = Field(..., min_length=1)
    provenance_contact:     Optional[str] = None
    interet_client:         Optional[str] = None
    actions_a_entreprendre: Optional[str] = None
    montant:                Optional[float] = None
    date_prochaine_action:  Optional[date] = None
    remarques:              Optional[str] = None
    probabilite:            Optional[int] = Field(None, ge=0, le=100)
    statut_visite: StatutVisite = StatutVisite.A_FAIRE
    statut_action: StatutAction = StatutAction.EN_ATTENTE

    @field_validator(*_OPTIONAL_TEXT, mode="before")
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator("montant", "probabilite", mode="before")
    @classmethod
    def nan_is_missing(cls, value):
        return _nan_to_none(value)


class VisiteCreateIn(BaseModel):
    data: Optional[VisiteFormData] = None


class VisiteCreatedOut(BaseModel):
    id: str


# ── Mise à jour partielle ────────────────────────────────

class VisiteUpdateIn(BaseModel):
    """Tous les champs optionnels. commercial_id n'est jamais modifiable."""
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    entreprise:          Optional[str] = Field(None, min_length=1)
    personne_rencontree: Optional[str] = Field(None, min_length=1)
    fonction_poste:      Optional[str] = None
    ville:               Optional[str] = None
    zone:                Optional[str] = None
    adresse:             Optional[str] = None
    tel_fixe:            Optional[str] = None
    mobile:              Optional[str] = None
    email:               Optional[str] = None
    date_visite:         Optional[date] = None
    objet_visite:        Optional[str] = Field(None, min_length=1)
    provenance_contact:     Optional[str] = None
    interet_client:         Optional[str] = None
    actions_a_entreprendre: Optional[str] = None
    montant:                Optional[float] = None
    date_prochaine_action:  Optional[date] = None
    remarques:              Optional[str] = None
    probabilite:            Optional[int] = Field(None, ge=0, le=100)
    statut_visite: Optional[StatutVisite] = None
    statut_action: Optional[StatutAction] = None

    @field_validator(*_OPTIONAL_TEXT, mode="before")
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator(*_REQUIRED_ON_UPDATE)
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("champ obligatoire")
        return value

    @field_validator("montant", "probabilite", mode="before")
    @classmethod
    def nan_is_missing(cls, value):
        return _nan_to_none(value)


# ── Lecture ──────────────────────────────────────────────

class VisiteOut(BaseModel):
    id:                  str
    commercial_id:       Optional[str] = None
    created_by:          Optional[str] = None
    entreprise:          Optional[str] = None
    personne_rencontree: Optional[str] = None
    fonction_poste:      Optional[str] = None
    ville:               Optional[str] = None
    zone:                Optional[str] = None
    adresse:             Optional[str] = None
    tel_fixe:            Optional[str] = None
    mobile:              Optional[str] = None
    email:               Optional[str] = None
    date_visite:         Optional[date] = None
    objet_visite:        Optional[str] = None
    provenance_contact:     Optional[str] = None
    interet_client:         Optional[str] = None
    actions_a_entreprendre: Optional[str] = None
    montant:                Optional[float] = None    # None si non autorisé
    date_prochaine_action:  Optional[date] = None
    remarques:              Optional[str] = None
    probabilite:            Optional[int] = None      # None si non autorisé
    statut_visite: Optional[str] = None
    statut_action: Optional[str] = None
    created_at:    Optional[datetime] = None
    updated_at:    Optional[datetime] = None
    commercial_name: Optional[str] = None


class PaginationOut(BaseModel):
    page:     int
    pageSize: int
    total:    int


class VisiteListOut(BaseModel):
    data:       List[VisiteOut]
    pagination: PaginationOut


# ── Statistiques / doublon ───────────────────────────────

class VisiteStatsOut(BaseModel):
    total_visites:       int = 0
    visites_a_faire:     int = 0
    visites_en_cours:    int = 0
    visites_terminees:   int = 0
    visites_acceptees:   int = 0
    visites_refusees:    int = 0
    montant_total:       float = 0
    probabilite_moyenne: float = 0


class DoublonOut(BaseModel):
    existe:              bool
    derniere_visite_id:  Optional[str] = None
    derniere_date:       Optional[str] = None
    commercial_nom:      Optional[str] = None
    jours_depuis_visite: Optional[int] = None
