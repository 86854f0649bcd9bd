# app/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from app.shared.models import Visite, RendezVous, ...

→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant Alembic.
"""

from app.shared.models.Profile    import Profile
from app.shared.models.Visite     import Visite
from app.shared.models.RendezVous import RendezVous
from app.shared.models.Catalogue  import Categorie, Produit

__all__ = [
    "Profile",
    "Visite",
    "RendezVous",
    # Catalogue
    "Categorie",
    "Produit",
]
