# modules/catalogue/router.py
from typing import Optional

from fastapi import APIRouter

from app.modules.catalogue.schemas import CategorieListOut, ProduitListOut
from app.modules.catalogue.service import CatalogueService
from app.shared.deps import DbDep, UserDep

router = APIRouter(prefix="/catalogue", tags=["Catalogue"])
service = CatalogueService()


@router.get("/produits", response_model=ProduitListOut)
async def list_produits(
    db: DbDep,
    current_user: UserDep,
    famille_id: Optional[str] = None,
    categorie_id: Optional[str] = None,
    search: Optional[str] = None,
    actif: Optional[bool] = None,
):
    return await service.list_produits(
        db, famille_id=famille_id, categorie_id=categorie_id, search=search, actif=actif
    )


@router.get("/categories", response_model=CategorieListOut)
async def list_categories(db: DbDep, current_user: UserDep):
    return await service.list_categories(db)
