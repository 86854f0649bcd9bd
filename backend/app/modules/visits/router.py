# modules/visits/router.py
"""
Endpoints des visites commerciales.

Règle : zéro logique métier ici. Tout passe par VisiteService
(filtres, rôles, rédaction des champs sensibles).
"""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from app.engine.export.spreadsheet import XLSX_MEDIA_TYPE
from app.modules.visits.schemas import (
    DoublonOut,
    VisiteCreatedOut,
    VisiteCreateIn,
    VisiteListOut,
    VisiteOut,
    VisiteStatsOut,
    VisiteUpdateIn,
)
from app.modules.visits.service import VisiteService
from app.shared.deps import DbDep, UserDep

router = APIRouter(prefix="/visits", tags=["Visits"])
service = VisiteService()


# ── Collection ────────────────────────────────────────────

@router.post("", response_model=VisiteCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_visit(payload: VisiteCreateIn, db: DbDep, current_user: UserDep):
    """Crée une visite ; propriétaire = appelant."""
    return await service.create(db, payload, current_user)


@router.get("", response_model=VisiteListOut)
async def list_visits(
    db: DbDep,
    current_user: UserDep,
    page: Optional[str] = None,
    page_size: Optional[str] = Query(None, alias="pageSize"),
    statut_visite: Optional[str] = None,
    statut_action: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    commercial_id: Optional[UUID] = None,
):
    return await service.list_visits(
        db,
        current_user,
        page=page,
        page_size=page_size,
        statut_visite=statut_visite,
        statut_action=statut_action,
        search=search,
        date_from=date_from,
        date_to=date_to,
        commercial_id=str(commercial_id) if commercial_id else None,
    )


# ── Agrégats / outils ─────────────────────────────────────

@router.get("/stats", response_model=VisiteStatsOut)
async def visit_stats(
    db: DbDep,
    current_user: UserDep,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
):
    """Statistiques des visites de l'appelant."""
    return await service.stats(db, current_user, date_from=date_from, date_to=date_to)


@router.get("/doublon", response_model=DoublonOut)
async def check_duplicate(db: DbDep, current_user: UserDep, entreprise: Optional[str] = None):
    """Dernière visite de l'appelant pour la même entreprise."""
    return await service.check_duplicate(db, current_user, entreprise)


@router.get("/export")
async def export_visits(db: DbDep, current_user: UserDep, consultant_id: Optional[str] = None):
    filename, content = await service.export(db, current_user, consultant_id=consultant_id)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Élément ───────────────────────────────────────────────

@router.patch("/{visite_id}", response_model=VisiteOut)
async def update_visit(visite_id: UUID, payload: VisiteUpdateIn, db: DbDep, current_user: UserDep):
    return await service.update(db, str(visite_id), payload, current_user)


@router.delete("/{visite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_visit(visite_id: UUID, db: DbDep, current_user: UserDep):
    await service.delete(db, str(visite_id), current_user)
