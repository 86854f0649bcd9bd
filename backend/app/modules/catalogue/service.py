# modules/catalogue/service.py
"""
Catalogue produits en lecture seule.
Un produit présent deux fois (jointures côté base) n'est renvoyé qu'une fois.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import row_to_dict
from app.core.exceptions import UpstreamStoreError
from app.modules.catalogue.repository import CatalogueRepository
from app.shared.models import Categorie, Produit

logger = logging.getLogger(__name__)

repo = CatalogueRepository()


class CatalogueService:

    async def list_produits(
        self,
        db: AsyncSession,
        famille_id: Optional[str] = None,
        categorie_id: Optional[str] = None,
        search: Optional[str] = None,
        actif: Optional[bool] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        try:
            produits = await repo.get_produits(
                db, famille_id=famille_id, categorie_id=categorie_id, search=search, actif=actif
            )
        except SQLAlchemyError as e:
            logger.error("Erreur lors de la récupération des produits", extra={"error": str(e)})
            raise UpstreamStoreError("Impossible de récupérer les produits.") from e

        seen = set()
        data = []
        for produit in produits:
            row = row_to_dict(produit, Produit)
            if row["id"] in seen:
                continue
            seen.add(row["id"])
            data.append(row)
        return {"data": data}

    async def list_categories(self, db: AsyncSession) -> Dict[str, List[Dict[str, Any]]]:
        try:
            categories = await repo.get_categories(db)
        except SQLAlchemyError as e:
            logger.error("Erreur lors de la récupération des catégories", extra={"error": str(e)})
            raise UpstreamStoreError("Impossible de récupérer les catégories.") from e
        return {"data": [row_to_dict(c, Categorie) for c in categories]}
