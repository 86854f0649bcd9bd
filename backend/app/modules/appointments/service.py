# modules/appointments/service.py
"""
Orchestration des rendez-vous + pipeline des rappels.

Création :
    date_rdv    = date + heure_debut dans APP_TIMEZONE
    rappel_date = date_rdv - 24h (rappel_avant ignoré)
    email "création" en tâche de fond, best-effort (erreurs → logs)

Sweep des rappels (cron externe, secret partagé) :
    sélection rappel_envoye=false ET rappel_date ∈ [now - 60 min, now]
    → email "rappel" par RDV → UPDATE groupé rappel_envoye=true des envoyés.

Limites connues, conservées :
    - marquage après envoi : un crash entre les deux renvoie l'email au sweep suivant
    - un rappel sorti de la fenêtre n'est jamais rejoué
    - aucun verrou entre deux sweeps concurrents
"""
import logging
import secrets
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from fastapi import BackgroundTasks
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import row_to_dict
from app.core.exceptions import AuthenticationError, UpstreamStoreError, ValidationError
from app.engine.scheduling.reminders import (
    combine_date_time,
    compute_duration,
    compute_reminder_at,
    form_from_row,
    reminder_window,
)
from app.infra.notifications import send_rendezvous_notification
from app.modules.appointments.repository import RendezVousRepository
from app.modules.appointments.schemas import RendezVousCreateIn
from app.shared.deps import CurrentUser
from app.shared.enums import NotificationMode, PrioriteRdv, StatutRdv
from app.shared.models import RendezVous, Visite

logger = logging.getLogger(__name__)

repo = RendezVousRepository()


def rendezvous_to_dict(rdv) -> Dict[str, Any]:
    return row_to_dict(rdv, RendezVous, id_fields=("id", "commercial_id", "visite_id"))


def _visite_to_dict(visite) -> Dict[str, Any]:
    return row_to_dict(visite, Visite, id_fields=("id", "commercial_id", "created_by"))


class RendezVousService:

    # ── Création ──────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        payload: RendezVousCreateIn,
        user: CurrentUser,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Dict[str, Any]:
        form = payload.data
        if form is None:
            raise ValidationError("Données de rendez-vous requises.")
        if not form.entreprise or not form.date_rdv or not form.heure_debut:
            raise ValidationError("Entreprise, date et heure de début sont obligatoires.")

        # Propriétaire : commercial de la visite liée si elle existe, sinon l'appelant
        commercial_id = user.id
        visite = None
        visite_id = str(form.visite_id) if form.visite_id else None
        if visite_id:
            try:
                visite = await repo.get_visite(db, visite_id)
            except SQLAlchemyError as e:
                await db.rollback()
                logger.warning(
                    "Visite liée illisible, RDV rattaché à l'appelant",
                    extra={"visite_id": visite_id, "error": str(e)},
                )
            if visite is not None and visite.commercial_id:
                commercial_id = str(visite.commercial_id)

        date_rdv = combine_date_time(form.date_rdv, form.heure_debut, settings.APP_TIMEZONE)
        data = {
            "commercial_id": commercial_id,
            "entreprise": form.entreprise,
            "personne_contact": form.personne_contact or None,
            "telephone": form.tel_contact or None,
            "email": form.email_contact or None,
            "ville": None,
            "zone": None,
            "adresse": form.lieu or None,
            "date_rdv": date_rdv,
            "duree_estimee": compute_duration(form.heure_debut, form.heure_fin),
            "objet": form.objet or None,
            "description": form.description or None,
            "statut": form.statut_rdv or StatutRdv.PLANIFIE.value,
            "priorite": form.priorite or PrioriteRdv.NORMALE.value,
            "rappel_envoye": False,
            "rappel_date": compute_reminder_at(date_rdv, settings.REMINDER_LEAD_MINUTES),
            "compte_rendu": None,
            "visite_id": visite_id,
        }

        try:
            rdv = await repo.create(db, data)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la création du RDV",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Impossible de créer le rendez-vous.") from e

        created = rendezvous_to_dict(rdv)
        logger.info("Rendez-vous créé", extra={"rdv_id": created["id"], "user_id": user.id})

        if background_tasks is not None:
            background_tasks.add_task(
                self.notify_creation,
                form.model_dump(mode="json"),
                _visite_to_dict(visite) if visite is not None else None,
                user.as_creator(),
            )

        return {"message": "Rendez-vous créé avec succès.", "data": created}

    async def notify_creation(
        self,
        form: Dict[str, Any],
        visite: Optional[Dict[str, Any]],
        created_by: Dict[str, Any],
    ) -> None:
        """Tâche de fond : aucune erreur ne remonte, tout finit dans les logs."""
        try:
            await run_in_threadpool(
                send_rendezvous_notification,
                form,
                visite,
                created_by,
                NotificationMode.CREATION,
                self._local_now(),
            )
        except Exception as e:
            logger.error(
                "Erreur lors de l'envoi de l'email de notification de RDV",
                extra={"error": str(e)},
            )

    # ── Lecture ───────────────────────────────────────────────

    async def list_rendezvous(
        self,
        db: AsyncSession,
        user: CurrentUser,
        visite_id: Optional[str] = None,
        statut: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """Commercial : ses RDV. Rôles élevés : tous. Tri date_rdv croissant."""
        tz = ZoneInfo(settings.APP_TIMEZONE)
        try:
            rows = await repo.list_filtered(
                db,
                commercial_id=None if user.is_elevated else user.id,
                visite_id=visite_id,
                statut=statut,
                start=datetime.combine(date_from, time.min, tzinfo=tz) if date_from else None,
                end=datetime.combine(date_to, time.max, tzinfo=tz) if date_to else None,
            )
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la récupération des RDV",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Impossible de récupérer les rendez-vous.") from e
        return {"data": [rendezvous_to_dict(r) for r in rows]}

    # ── Sweep des rappels ─────────────────────────────────────

    async def send_due_reminders(
        self,
        db: AsyncSession,
        secret: Optional[str],
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        if not self._secret_ok(secret):
            raise AuthenticationError("Accès non autorisé.")

        now = now or datetime.now(timezone.utc)
        window = reminder_window(now, settings.REMINDER_WINDOW_MINUTES)

        try:
            rows = await repo.get_due_reminders(db, window.start, window.end)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la récupération des RDV à rappeler",
                extra={"error": str(e)},
            )
            raise UpstreamStoreError("Impossible de récupérer les rendez-vous à rappeler.") from e

        candidates = [
            rendezvous_to_dict(r) for r in rows
            if not r.rappel_envoye and window.contains(r.rappel_date)
        ]
        if not candidates:
            return {"message": "Aucun rappel à envoyer.", "processed": 0, "sent": 0, "failed": 0}

        visites_by_id = await self._load_visites(db, candidates)
        profiles_by_id = await self._load_profiles(db, candidates)
        stamp = self._local_now(now)

        sent_ids: List[str] = []
        failed = 0
        for rdv in candidates:
            form = form_from_row(rdv, settings.APP_TIMEZONE)
            visite = visites_by_id.get(rdv["visite_id"]) if rdv.get("visite_id") else None
            try:
                await run_in_threadpool(
                    send_rendezvous_notification,
                    form,
                    visite,
                    self._creator_from_profile(rdv["commercial_id"], profiles_by_id),
                    NotificationMode.REMINDER,
                    stamp,
                )
                sent_ids.append(rdv["id"])
            except Exception as e:
                failed += 1
                logger.error(
                    "Erreur lors de l'envoi du rappel",
                    extra={"rdv_id": rdv["id"], "error": str(e)},
                )

        if sent_ids:
            try:
                await repo.mark_reminders_sent(db, sent_ids)
            except SQLAlchemyError as e:
                logger.error(
                    "Erreur lors de la mise à jour de rappel_envoye",
                    extra={"error": str(e)},
                )

        result = {
            "message": "Traitement des rappels terminé.",
            "processed": len(candidates),
            "sent": len(sent_ids),
            "failed": failed,
        }
        logger.info(
            "Traitement des rappels terminé",
            extra={k: result[k] for k in ("processed", "sent", "failed")},
        )
        return result

    # ── Privé ─────────────────────────────────────────────────

    @staticmethod
    def _secret_ok(secret: Optional[str]) -> bool:
        expected = settings.REMINDER_SECRET_TOKEN
        if not secret or not expected:
            return False
        return secrets.compare_digest(secret.encode("utf-8"), expected.encode("utf-8"))

    @staticmethod
    def _local_now(now: Optional[datetime] = None) -> datetime:
        return (now or datetime.now(timezone.utc)).astimezone(ZoneInfo(settings.APP_TIMEZONE))

    async def _load_visites(
        self, db: AsyncSession, candidates: List[Dict[str, Any]]
    ) -> Dict[str, Dict[str, Any]]:
        visite_ids = sorted({c["visite_id"] for c in candidates if c.get("visite_id")})
        if not visite_ids:
            return {}
        try:
            visites = await repo.get_visites_by_ids(db, visite_ids)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Erreur lors de la récupération des visites liées aux RDV",
                extra={"error": str(e)},
            )
            return {}
        return {str(v.id): _visite_to_dict(v) for v in visites}

    async def _load_profiles(self, db: AsyncSession, candidates: List[Dict[str, Any]]) -> Dict[str, Any]:
        commercial_ids = sorted({c["commercial_id"] for c in candidates if c.get("commercial_id")})
        if not commercial_ids:
            return {}
        try:
            profiles = await repo.get_profiles_by_ids(db, commercial_ids)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Erreur lors de la récupération des profils des commerciaux",
                extra={"error": str(e)},
            )
            return {}
        return {str(p.id): p for p in profiles}

    @staticmethod
    def _creator_from_profile(commercial_id: Optional[str], profiles_by_id: Dict[str, Any]) -> Dict[str, Any]:
        profile = profiles_by_id.get(commercial_id) if commercial_id else None
        if profile is None:
            return {"id": commercial_id, "email": None, "user_metadata": {}}
        return {
            "id": commercial_id,
            "email": profile.email,
            "user_metadata": {"prenom": profile.prenom, "nom": profile.nom},
        }
