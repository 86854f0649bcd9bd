# app/shared/models/RendezVous.py
"""
Rendez-vous planifié, éventuellement rattaché à une visite.

Cycle de vie du rappel :
  création → rappel_date = date_rdv - 24h, rappel_envoye = False
  sweep    → email de rappel envoyé → rappel_envoye = True (jamais remis à False)
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func, text

from app.core.database import Base


class RendezVous(Base):
    __tablename__ = "rendez_vous"

    id            = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    commercial_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id"), nullable=False, index=True)
    visite_id     = Column(UUID(as_uuid=False), ForeignKey("visites.id", ondelete="SET NULL"), nullable=True, index=True)

    entreprise       = Column(String, nullable=False)
    personne_contact = Column(String, nullable=True)
    telephone        = Column(String, nullable=True)
    email            = Column(String, nullable=True)
    ville            = Column(String, nullable=True)
    zone             = Column(String, nullable=True)
    adresse          = Column(String, nullable=True)

    date_rdv      = Column(DateTime(timezone=True), nullable=False, index=True)
    duree_estimee = Column(Integer, nullable=False, default=60)   # minutes
    objet         = Column(String, nullable=True)
    description   = Column(Text, nullable=True)

    statut   = Column(String, nullable=False, default="planifie")
    # "planifie" | "confirme" | "termine" | "annule" | "reporte"
    priorite = Column(String, nullable=False, default="normale")
    # "basse" | "normale" | "haute" | "urgente"

    rappel_envoye = Column(Boolean, nullable=False, default=False)
    rappel_date   = Column(DateTime(timezone=True), nullable=True, index=True)
    compte_rendu  = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<RendezVous id={self.id} entreprise={self.entreprise} rappel_envoye={self.rappel_envoye}>"
