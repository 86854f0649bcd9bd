# app/shared/models/Profile.py
"""
Profils des membres de l'équipe.

La ligne est créée par le service d'identité hébergé (trigger à
l'inscription) : id == id de l'utilisateur côté auth.
Lecture seule depuis cette API.
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from app.core.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id        = Column(UUID(as_uuid=False), primary_key=True)
    email     = Column(String, nullable=False, index=True)
    nom       = Column(String, nullable=True)
    prenom    = Column(String, nullable=True)
    role      = Column(String, nullable=False, default="commercial")
    # "commercial" | "admin" | "superieur" | "consultant"
    telephone = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def display_name(self):
        full_name = f"{self.prenom or ''} {self.nom or ''}".strip()
        return full_name or self.email or None

    def __repr__(self):
        return f"<Profile id={self.id} email={self.email} role={self.role}>"
