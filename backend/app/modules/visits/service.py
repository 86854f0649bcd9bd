# modules/visits/service.py
"""
Orchestration des visites — liste filtrée, CRUD, stats, doublon, export.

Toute visite renvoyée passe par engine/visibility/policy.redact_visits :
montant / probabilite ne sortent que pour le propriétaire ou un rôle élevé.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import row_to_dict
from app.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    UpstreamStoreError,
    ValidationError,
)
from app.engine.export.spreadsheet import build_visits_workbook, export_filename
from app.engine.visibility.policy import redact_visit, redact_visits
from app.modules.visits.repository import VisiteRepository
from app.modules.visits.schemas import VisiteCreateIn, VisiteUpdateIn
from app.shared.deps import CurrentUser
from app.shared.enums import ADMIN_ROLES, StatutAction, StatutVisite, UserRole
from app.shared.models import Visite

logger = logging.getLogger(__name__)

repo = VisiteRepository()

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

EXPORT_ALL = "all"


# ── Helpers ───────────────────────────────────────────────────

def _parse_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_pagination(page: Any, page_size: Any) -> Tuple[int, int]:
    """page ≥ 1, pageSize ∈ [1, 100] (20 par défaut). Valeur illisible → défaut."""
    page = max(_parse_int(page, 1), 1)
    page_size = min(max(_parse_int(page_size, DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    return page, page_size


def visite_to_dict(visite) -> Dict[str, Any]:
    return row_to_dict(visite, Visite, id_fields=("id", "commercial_id", "created_by"))


class VisiteService:

    # ── CRUD ──────────────────────────────────────────────────

    async def create(
        self, db: AsyncSession, payload: VisiteCreateIn, user: CurrentUser
    ) -> Dict[str, str]:
        if payload.data is None:
            raise ValidationError("Aucune donnée de visite fournie.")

        data = payload.data.model_dump()
        data["commercial_id"] = user.id
        data["created_by"] = user.id

        try:
            visite = await repo.create(db, data)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la création de la visite",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Impossible d'enregistrer la visite.") from e

        logger.info("Visite créée", extra={"visite_id": str(visite.id), "user_id": user.id})
        return {"id": str(visite.id)}

    async def list_visits(
        self,
        db: AsyncSession,
        user: CurrentUser,
        page: Any = None,
        page_size: Any = None,
        statut_visite: Optional[str] = None,
        statut_action: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        commercial_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        page, page_size = clamp_pagination(page, page_size)

        filters: Dict[str, Any] = {
            "statut_visite": statut_visite,
            "statut_action": statut_action,
            "search": search,
            "date_from": date_from,
            "date_to": date_to,
        }
        # Filtre commercial réservé aux rôles élevés, ignoré sinon
        if commercial_id and user.is_elevated:
            filters["commercial_id"] = commercial_id

        try:
            rows, total = await repo.list_paginated(
                db, offset=(page - 1) * page_size, limit=page_size, **filters
            )
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la récupération des visites",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Impossible de récupérer les visites.") from e

        visites = await self._with_commercial_names(db, [visite_to_dict(v) for v in rows], user)
        return {
            "data": redact_visits(visites, user.id, user.role),
            "pagination": {"page": page, "pageSize": page_size, "total": total},
        }

    async def update(
        self, db: AsyncSession, visite_id: str, payload: VisiteUpdateIn, user: CurrentUser
    ) -> Dict[str, Any]:
        visite = await self._get_editable(db, visite_id, user)
        data = payload.model_dump(exclude_unset=True)
        if not data:
            raise ValidationError("Aucune modification fournie.")

        visite = await repo.update(db, visite, data)
        logger.info("Visite modifiée", extra={"visite_id": visite_id, "user_id": user.id})
        return redact_visit(visite_to_dict(visite), user.id, user.role)

    async def delete(self, db: AsyncSession, visite_id: str, user: CurrentUser) -> None:
        visite = await self._get_editable(db, visite_id, user)
        await repo.delete(db, visite)
        logger.info("Visite supprimée", extra={"visite_id": visite_id, "user_id": user.id})

    # ── Statistiques ──────────────────────────────────────────

    async def stats(
        self,
        db: AsyncSession,
        user: CurrentUser,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Dict[str, Any]:
        try:
            rows = await repo.get_stats_rows(db, user.id, date_from=date_from, date_to=date_to)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors du calcul des statistiques de visites",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Impossible de calculer les statistiques.") from e
        return compute_stats(rows)

    # ── Doublon ───────────────────────────────────────────────

    async def check_duplicate(
        self,
        db: AsyncSession,
        user: CurrentUser,
        entreprise: Optional[str],
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        term = (entreprise or "").strip()
        if not term:
            raise ValidationError("Le paramètre 'entreprise' est requis.")

        try:
            last = await repo.get_latest_for_company(db, user.id, term)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la vérification de doublon de visite",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Impossible de vérifier les doublons.") from e

        if last is None:
            return {
                "existe": False,
                "derniere_visite_id": None,
                "derniere_date": None,
                "commercial_nom": None,
                "jours_depuis_visite": None,
            }

        derniere = last.date_visite or last.created_at
        if isinstance(derniere, datetime):
            derniere = derniere.date()
        today = today or datetime.now(timezone.utc).date()

        meta = user.user_metadata
        commercial_nom = f"{meta.get('nom') or ''} {meta.get('prenom') or ''}".strip()
        return {
            "existe": True,
            "derniere_visite_id": str(last.id),
            "derniere_date": derniere.isoformat() if derniere else None,
            "commercial_nom": commercial_nom or None,
            "jours_depuis_visite": (today - derniere).days if derniere else None,
        }

    # ── Export ────────────────────────────────────────────────

    async def export(
        self,
        db: AsyncSession,
        user: CurrentUser,
        consultant_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Tuple[str, bytes]:
        """
        Périmètre par rôle :
            commercial → ses visites (commercial_id)
            consultant → visites créées par lui, par consultant_id, ou toutes si 'all'
            admin      → toutes, ou celles du commercial consultant_id
        Retourne (nom de fichier, binaire xlsx).
        """
        scope = self._export_scope(user, consultant_id)
        try:
            rows = await repo.list_for_export(db, **scope)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la récupération des visites à exporter",
                extra={"user_id": user.id, "error": str(e)},
            )
            raise UpstreamStoreError("Erreur lors de la récupération des visites.") from e

        if not rows:
            raise NotFoundError("Aucune visite à exporter.")

        visites = [visite_to_dict(v) for v in rows]
        names = await self._profile_names(db, {v["commercial_id"] for v in visites if v.get("commercial_id")})
        for visite in visites:
            visite["commercial_name"] = names.get(visite.get("commercial_id"))

        content = build_visits_workbook(redact_visits(visites, user.id, user.role))
        logger.info("Export des visites", extra={"user_id": user.id, "processed": len(visites)})
        return export_filename(today or datetime.now(timezone.utc).date()), content

    @staticmethod
    def _export_scope(user: CurrentUser, consultant_id: Optional[str]) -> Dict[str, str]:
        if user.role == UserRole.COMMERCIAL:
            return {"commercial_id": user.id}
        if consultant_id and consultant_id != EXPORT_ALL:
            try:
                consultant_id = str(UUID(consultant_id))
            except ValueError:
                raise ValidationError("Identifiant consultant_id invalide.")
        if user.role == UserRole.CONSULTANT:
            if consultant_id == EXPORT_ALL:
                return {}
            return {"created_by": consultant_id or user.id}
        if user.role in ADMIN_ROLES:
            if consultant_id and consultant_id != EXPORT_ALL:
                return {"commercial_id": consultant_id}
            return {}
        raise AuthorizationError("Accès refusé.")

    # ── Privé ─────────────────────────────────────────────────

    async def _get_editable(self, db: AsyncSession, visite_id: str, user: CurrentUser):
        visite = await repo.get_by_id(db, visite_id)
        if visite is None:
            raise NotFoundError("Visite introuvable.")
        if not user.is_admin and str(visite.commercial_id) != user.id:
            raise AuthorizationError("Vous ne pouvez modifier que vos propres visites.")
        return visite

    async def _profile_names(self, db: AsyncSession, profile_ids) -> Dict[str, Optional[str]]:
        """Un seul lookup profiles. Échec → dict vide (noms à None), jamais d'erreur."""
        if not profile_ids:
            return {}
        try:
            profiles = await repo.get_profiles_by_ids(db, sorted(profile_ids))
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(
                "Erreur lors de la récupération des profils pour les visites",
                extra={"error": str(e)},
            )
            return {}
        return {str(p.id): p.display_name for p in profiles}

    async def _with_commercial_names(
        self, db: AsyncSession, visites: List[Dict[str, Any]], user: CurrentUser
    ) -> List[Dict[str, Any]]:
        """
        commercial_name :
            - visite de l'appelant → nom issu des claims de session
            - autre commercial     → lookup groupé sur profiles
        """
        other_ids = {
            v["commercial_id"] for v in visites
            if v.get("commercial_id") and v["commercial_id"] != user.id
        }
        names = await self._profile_names(db, other_ids)

        for visite in visites:
            commercial_id = visite.get("commercial_id")
            if not commercial_id:
                visite["commercial_name"] = None
            elif commercial_id == user.id:
                visite["commercial_name"] = user.display_name
            else:
                visite["commercial_name"] = names.get(commercial_id)
        return visites


def compute_stats(rows) -> Dict[str, Any]:
    """rows : itérable de (statut_visite, statut_action, montant, probabilite)."""
    stats = {
        "total_visites": 0,
        "visites_a_faire": 0,
        "visites_en_cours": 0,
        "visites_terminees": 0,
        "visites_acceptees": 0,
        "visites_refusees": 0,
        "montant_total": 0,
        "probabilite_moyenne": 0,
    }
    probabilites: List[float] = []

    for statut_visite, statut_action, montant, probabilite in rows:
        stats["total_visites"] += 1
        if statut_visite == StatutVisite.A_FAIRE:
            stats["visites_a_faire"] += 1
        elif statut_visite == StatutVisite.EN_COURS:
            stats["visites_en_cours"] += 1
        elif statut_visite == StatutVisite.TERMINE:
            stats["visites_terminees"] += 1

        if statut_action == StatutAction.ACCEPTE:
            stats["visites_acceptees"] += 1
        elif statut_action == StatutAction.REFUSE:
            stats["visites_refusees"] += 1

        if montant is not None:
            stats["montant_total"] += montant
        if probabilite is not None:
            probabilites.append(probabilite)

    if probabilites:
        stats["probabilite_moyenne"] = round(sum(probabilites) / len(probabilites), 1)
    return stats
