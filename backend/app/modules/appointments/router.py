# modules/appointments/router.py
"""
Endpoints des rendez-vous.

POST /appointments/reminders n'utilise pas la session utilisateur :
il est appelé par un cron externe avec ?secret=REMINDER_SECRET_TOKEN.
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Query, status

from app.modules.appointments.schemas import (
    ReminderSweepOut,
    RendezVousCreatedOut,
    RendezVousCreateIn,
    RendezVousListOut,
)
from app.modules.appointments.service import RendezVousService
from app.shared.deps import DbDep, UserDep

router = APIRouter(prefix="/appointments", tags=["Appointments"])
service = RendezVousService()


@router.post("", response_model=RendezVousCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: RendezVousCreateIn,
    background_tasks: BackgroundTasks,
    db: DbDep,
    current_user: UserDep,
):
    """Crée le RDV puis programme l'email de création en tâche de fond."""
    return await service.create(db, payload, current_user, background_tasks=background_tasks)


@router.get("", response_model=RendezVousListOut)
async def list_appointments(
    db: DbDep,
    current_user: UserDep,
    visite_id: Optional[UUID] = None,
    statut: Optional[str] = None,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
):
    return await service.list_rendezvous(
        db,
        current_user,
        visite_id=str(visite_id) if visite_id else None,
        statut=statut,
        date_from=date_from,
        date_to=date_to,
    )


@router.post("/reminders", response_model=ReminderSweepOut)
async def send_reminders(db: DbDep, secret: Optional[str] = None):
    """Sweep des rappels échus dans la dernière heure."""
    return await service.send_due_reminders(db, secret)
