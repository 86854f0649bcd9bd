# app/modules/appointments/schemas.py
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.engine.scheduling.reminders import parse_time
from app.shared.enums import PrioriteRdv, StatutRdv

HEURE_PATTERN = r"^\d{1,2}:\d{2}(:\d{2})?$"


class RendezVousFormData(BaseModel):
    """
    Formulaire de planification d'un rendez-vous.

    entreprise / date_rdv / heure_debut sont obligatoires, mais vérifiés
    par le service pour renvoyer un message métier unique.
    rappel_avant est accepté puis ignoré : le rappel est toujours à J-1.
    """
    model_config = ConfigDict(use_enum_values=True)

    entreprise:       Optional[str] = None
    personne_contact: Optional[str] = None
    tel_contact:      Optional[str] = None
    email_contact:    Optional[str] = None
    date_rdv:         Optional[date] = None
    heure_debut:      Optional[str] = Field(None, pattern=HEURE_PATTERN)
    heure_fin:        Optional[str] = Field(None, pattern=HEURE_PATTERN)
    lieu:             Optional[str] = None
    objet:            Optional[str] = None
    description:      Optional[str] = None
    statut_rdv:       Optional[StatutRdv] = None
    priorite:         Optional[PrioriteRdv] = None
    rappel_avant:     Optional[int] = None
    visite_id:        Optional[UUID] = None

    @field_validator("visite_id", mode="before")
    @classmethod
    def blank_visite_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("heure_debut", "heure_fin")
    @classmethod
    def heure_valide(cls, value):
        # 25:99 passe le pattern mais pas time()
        if value is not None:
            parse_time(value)
        return value


class RendezVousCreateIn(BaseModel):
    data: Optional[RendezVousFormData] = None


class RendezVousOut(BaseModel):
    id:               str
    commercial_id:    Optional[str] = None
    visite_id:        Optional[str] = None
    entreprise:       Optional[str] = None
    personne_contact: Optional[str] = None
    telephone:        Optional[str] = None
    email:            Optional[str] = None
    ville:            Optional[str] = None
    zone:             Optional[str] = None
    adresse:          Optional[str] = None
    date_rdv:         Optional[datetime] = None
    duree_estimee:    Optional[int] = None
    objet:            Optional[str] = None
    description:      Optional[str] = None
    statut:           Optional[str] = None
    priorite:         Optional[str] = None
    rappel_envoye:    bool = False
    rappel_date:      Optional[datetime] = None
    compte_rendu:     Optional[str] = None
    created_at:       Optional[datetime] = None


class RendezVousCreatedOut(BaseModel):
    message: str
    data:    RendezVousOut


class RendezVousListOut(BaseModel):
    data: List[RendezVousOut]


class ReminderSweepOut(BaseModel):
    message:   str
    processed: int
    sent:      int
    failed:    int
