# app/shared/models/Visite.py
"""
Visite commerciale.

montant / probabilite sont des champs sensibles : ils ne sortent de
l'API qu'après passage par engine/visibility/policy.py.
"""
from sqlalchemy import Column, String, Float, Integer, Date, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func, text

from app.core.database import Base


class Visite(Base):
    __tablename__ = "visites"

    id            = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    commercial_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id"), nullable=False, index=True)
    created_by    = Column(UUID(as_uuid=False), ForeignKey("profiles.id"), nullable=True, index=True)

    # ── Client ───────────────────────────────────────────────
    entreprise          = Column(String, nullable=False, index=True)
    personne_rencontree = Column(String, nullable=False)
    fonction_poste      = Column(String, nullable=True)
    ville               = Column(String, nullable=True)
    zone                = Column(String, nullable=True)
    adresse             = Column(String, nullable=True)
    tel_fixe            = Column(String, nullable=True)
    mobile              = Column(String, nullable=True)
    email               = Column(String, nullable=True)

    # ── Visite ───────────────────────────────────────────────
    date_visite            = Column(Date, nullable=False, index=True)
    objet_visite           = Column(String, nullable=False)
    provenance_contact     = Column(String, nullable=True)
    interet_client         = Column(String, nullable=True)
    actions_a_entreprendre = Column(Text, nullable=True)
    montant                = Column(Float, nullable=True)
    date_prochaine_action  = Column(Date, nullable=True)
    remarques              = Column(Text, nullable=True)
    probabilite            = Column(Integer, nullable=True)   # 0-100

    # ── Statuts ──────────────────────────────────────────────
    statut_visite = Column(String, nullable=False, default="a_faire")
    # "a_faire" | "en_cours" | "termine"
    statut_action = Column(String, nullable=False, default="en_attente")
    # "en_attente" | "accepte" | "refuse"

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Visite id={self.id} entreprise={self.entreprise} commercial={self.commercial_id}>"
