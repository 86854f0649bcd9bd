# app/shared/models/Catalogue.py
from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func, text

from app.core.database import Base


class Categorie(Base):
    __tablename__ = "categories"

    id  = Column(String, primary_key=True)
    nom = Column(String, nullable=False)

    def __repr__(self):
        return f"<Categorie id={self.id} nom={self.nom}>"


class Produit(Base):
    __tablename__ = "produits"

    id           = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    reference    = Column(String, nullable=True, index=True)
    designation  = Column(String, nullable=False)
    description  = Column(Text, nullable=True)
    famille_id   = Column(String, nullable=True, index=True)   # "SERRURES" | "READER" | "ETIQUETTES"
    categorie_id = Column(String, ForeignKey("categories.id"), nullable=True, index=True)
    frequence    = Column(String, nullable=True)
    prix_ht      = Column(Float, nullable=True)
    prix_ttc     = Column(Float, nullable=True)
    image_url    = Column(String, nullable=True)
    actif        = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Produit id={self.id} reference={self.reference}>"
