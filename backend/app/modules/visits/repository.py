# modules/visits/repository.py
"""
Accès DB pour les visites commerciales.

Aucune règle de visibilité ici : les lignes sortent brutes,
la rédaction montant/probabilite est faite par le service.
"""
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import Profile, Visite


class VisiteRepository:

    # ── CRUD ─────────────────────────────────────────────────

    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> Visite:
        db_obj = Visite(**data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get_by_id(self, db: AsyncSession, visite_id: str) -> Optional[Visite]:
        r = await db.execute(select(Visite).where(Visite.id == visite_id))
        return r.scalar_one_or_none()

    async def update(self, db: AsyncSession, visite: Visite, data: Dict[str, Any]) -> Visite:
        for field, value in data.items():
            setattr(visite, field, value)
        await db.commit()
        await db.refresh(visite)
        return visite

    async def delete(self, db: AsyncSession, visite: Visite) -> None:
        await db.delete(visite)
        await db.commit()

    # ── Liste filtrée + paginée ──────────────────────────────

    def _conditions(
        self,
        commercial_id: Optional[str] = None,
        statut_visite: Optional[str] = None,
        statut_action: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list:
        conditions = []
        if commercial_id:
            conditions.append(Visite.commercial_id == commercial_id)
        if statut_visite:
            conditions.append(Visite.statut_visite == statut_visite)
        if statut_action:
            conditions.append(Visite.statut_action == statut_action)
        if date_from:
            conditions.append(Visite.date_visite >= date_from)
        if date_to:
            conditions.append(Visite.date_visite <= date_to)
        if search:
            # % et _ saisis par l'utilisateur sont échappés
            conditions.append(
                Visite.entreprise.icontains(search, autoescape=True)
                | Visite.personne_rencontree.icontains(search, autoescape=True)
            )
        return conditions

    async def list_paginated(
        self,
        db: AsyncSession,
        offset: int,
        limit: int,
        **filters,
    ) -> Tuple[List[Visite], int]:
        """Retourne (page de visites triée date_visite desc, total filtré exact)."""
        conditions = self._conditions(**filters)

        r = await db.execute(select(func.count()).select_from(Visite).where(*conditions))
        total = r.scalar_one()

        r = await db.execute(
            select(Visite)
            .where(*conditions)
            .order_by(Visite.date_visite.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(r.scalars().all()), total

    # ── Stats / doublon ──────────────────────────────────────

    async def get_stats_rows(
        self,
        db: AsyncSession,
        commercial_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Tuple]:
        """(statut_visite, statut_action, montant, probabilite) des visites du commercial."""
        conditions = self._conditions(
            commercial_id=commercial_id, date_from=date_from, date_to=date_to
        )
        r = await db.execute(
            select(
                Visite.statut_visite,
                Visite.statut_action,
                Visite.montant,
                Visite.probabilite,
            ).where(*conditions)
        )
        return list(r.all())

    async def get_latest_for_company(
        self, db: AsyncSession, commercial_id: str, entreprise: str
    ) -> Optional[Visite]:
        r = await db.execute(
            select(Visite)
            .where(
                Visite.commercial_id == commercial_id,
                func.lower(Visite.entreprise) == entreprise.lower(),
            )
            .order_by(Visite.date_visite.desc())
            .limit(1)
        )
        return r.scalar_one_or_none()

    # ── Export ───────────────────────────────────────────────

    async def list_for_export(
        self,
        db: AsyncSession,
        commercial_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> List[Visite]:
        query = select(Visite)
        if commercial_id:
            query = query.where(Visite.commercial_id == commercial_id)
        if created_by:
            query = query.where(Visite.created_by == created_by)
        r = await db.execute(query.order_by(Visite.date_visite.desc()))
        return list(r.scalars().all())

    # ── Profils (enrichissement des noms) ────────────────────

    async def get_profiles_by_ids(
        self, db: AsyncSession, profile_ids: Sequence[str]
    ) -> List[Profile]:
        if not profile_ids:
            return []
        r = await db.execute(select(Profile).where(Profile.id.in_(list(profile_ids))))
        return list(r.scalars().all())
