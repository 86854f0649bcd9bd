# app/modules/catalogue/schemas.py
from pydantic import BaseModel
from typing import List, Optional


class ProduitOut(BaseModel):
    id:           str
    reference:    Optional[str] = None
    designation:  str
    description:  Optional[str] = None
    famille_id:   Optional[str] = None
    categorie_id: Optional[str] = None
    frequence:    Optional[str] = None
    prix_ht:      Optional[float] = None
    prix_ttc:     Optional[float] = None
    image_url:    Optional[str] = None
    actif:        bool = True


class ProduitListOut(BaseModel):
    data: List[ProduitOut]


class CategorieOut(BaseModel):
    id:  str
    nom: str


class CategorieListOut(BaseModel):
    data: List[CategorieOut]
