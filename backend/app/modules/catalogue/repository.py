# modules/catalogue/repository.py
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import Categorie, Produit


class CatalogueRepository:

    async def get_produits(
        self,
        db: AsyncSession,
        famille_id: Optional[str] = None,
        categorie_id: Optional[str] = None,
        search: Optional[str] = None,
        actif: Optional[bool] = None,
    ) -> List[Produit]:
        query = select(Produit)
        if famille_id:
            query = query.where(Produit.famille_id == famille_id)
        if categorie_id:
            query = query.where(Produit.categorie_id == categorie_id)
        if actif is not None:
            query = query.where(Produit.actif.is_(actif))
        if search:
            query = query.where(
                Produit.designation.icontains(search, autoescape=True)
                | Produit.reference.icontains(search, autoescape=True)
            )
        r = await db.execute(query.order_by(Produit.designation.asc()))
        return list(r.scalars().all())

    async def get_categories(self, db: AsyncSession) -> List[Categorie]:
        r = await db.execute(select(Categorie).order_by(Categorie.nom.asc()))
        return list(r.scalars().all())
