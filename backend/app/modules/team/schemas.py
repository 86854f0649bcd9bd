# app/modules/team/schemas.py
from pydantic import BaseModel
from typing import List, Optional


class EquipeMemberOut(BaseModel):
    id:            str
    email:         Optional[str] = None
    nom:           Optional[str] = None
    prenom:        Optional[str] = None
    role:          Optional[str] = None
    telephone:     Optional[str] = None
    total_visites: int = 0


class EquipeOut(BaseModel):
    data: List[EquipeMemberOut]
