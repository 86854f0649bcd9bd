# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Trois couches :
    1. Engine  — fonctions pures, aucun mock nécessaire
    2. Service — mocks AsyncSession + repos via pytest-mock
    3. Router  — httpx.AsyncClient + dependency_overrides FastAPI
"""
import pytest
from types import SimpleNamespace
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.core.database import get_db
from app.shared.deps import CurrentUser, get_current_user
from app.shared.enums import UserRole

COMMERCIAL_ID = "11111111-1111-1111-1111-111111111111"
OTHER_COMMERCIAL_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "33333333-3333-3333-3333-333333333333"
CONSULTANT_ID = "44444444-4444-4444-4444-444444444444"


# ── Utilisateurs de session ───────────────────────────────────────────────────

def make_current_user(**kwargs) -> CurrentUser:
    defaults = {
        "id": COMMERCIAL_ID,
        "email": "alice@test.com",
        "role": UserRole.COMMERCIAL,
        "user_metadata": {"prenom": "Alice", "nom": "Martin"},
    }
    defaults.update(kwargs)
    return CurrentUser(**defaults)


def make_admin_user(**kwargs) -> CurrentUser:
    defaults = {
        "id": ADMIN_ID,
        "email": "admin@test.com",
        "role": UserRole.ADMIN,
        "user_metadata": {"prenom": "Paul", "nom": "Durand"},
    }
    defaults.update(kwargs)
    return make_current_user(**defaults)


def make_consultant_user(**kwargs) -> CurrentUser:
    defaults = {
        "id": CONSULTANT_ID,
        "email": "consultant@test.com",
        "role": UserRole.CONSULTANT,
        "user_metadata": {"prenom": "Chloé", "nom": "Petit"},
    }
    defaults.update(kwargs)
    return make_current_user(**defaults)


# ── Factories de modèles ORM (SimpleNamespace, sans ORM) ──────────────

def make_profile(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": OTHER_COMMERCIAL_ID,
        "email": "bob@test.com",
        "nom": "Bernard",
        "prenom": "Bob",
        "role": "commercial",
        "telephone": None,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "updated_at": None,
    }
    defaults.update(kwargs)
    # Propriété calculée sur le modèle ORM
    full_name = f"{defaults['prenom'] or ''} {defaults['nom'] or ''}".strip()
    defaults.setdefault("display_name", full_name or defaults["email"] or None)
    return SimpleNamespace(**defaults)


def make_visite(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "aaaaaaaa-0000-0000-0000-000000000001",
        "commercial_id": COMMERCIAL_ID,
        "created_by": COMMERCIAL_ID,
        "entreprise": "Hôtel Le Méridien",
        "personne_rencontree": "M. Ben Salah",
        "fonction_poste": "Directeur technique",
        "ville": "Tunis",
        "zone": "Lac 2",
        "adresse": "12 rue du Lac",
        "tel_fixe": "71 000 000",
        "mobile": None,
        "email": "contact@meridien.tn",
        "date_visite": date(2025, 1, 15),
        "objet_visite": "Présentation serrures RFID",
        "provenance_contact": None,
        "interet_client": "fort",
        "actions_a_entreprendre": None,
        "montant": 12000.0,
        "date_prochaine_action": None,
        "remarques": "Rappeler en février",
        "probabilite": 60,
        "statut_visite": "en_cours",
        "statut_action": "en_attente",
        "created_at": datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc),
        "updated_at": datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_rendezvous(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "bbbbbbbb-0000-0000-0000-000000000001",
        "commercial_id": COMMERCIAL_ID,
        "visite_id": None,
        "entreprise": "Hôtel Le Méridien",
        "personne_contact": "M. Ben Salah",
        "telephone": "71 000 000",
        "email": "contact@meridien.tn",
        "ville": None,
        "zone": None,
        "adresse": "12 rue du Lac",
        "date_rdv": datetime(2025, 3, 11, 9, 30, tzinfo=timezone.utc),
        "duree_estimee": 60,
        "objet": "Démonstration",
        "description": None,
        "statut": "planifie",
        "priorite": "normale",
        "rappel_envoye": False,
        "rappel_date": datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc),
        "compte_rendu": None,
        "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_produit(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "cccccccc-0000-0000-0000-000000000001",
        "reference": "SR-100",
        "designation": "Serrure RFID",
        "description": None,
        "famille_id": "SERRURES",
        "categorie_id": "cat-1",
        "frequence": None,
        "prix_ht": 100.0,
        "prix_ttc": 119.0,
        "image_url": None,
        "actif": True,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_categorie(**kwargs) -> SimpleNamespace:
    defaults = {"id": "cat-1", "nom": "Serrures hôtelières"}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── DB mock factory ───────────────────────────────────────────────────────────

def make_async_db() -> AsyncMock:
    """AsyncMock simulant une AsyncSession SQLAlchemy."""
    db = AsyncMock(spec=AsyncSession)
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.close = AsyncMock()
    return db


# ── Fixtures HTTP (httpx.AsyncClient + dependency_overrides) ─────────────────

async def _client_for(user):
    mock_db = make_async_db()
    app.dependency_overrides[get_db] = lambda: mock_db
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def client():
    """Client sans auth — endpoints publics ou refus 401."""
    async with await _client_for(None) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def commercial_client():
    """Client authentifié comme commercial."""
    async with await _client_for(make_current_user()) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client():
    """Client authentifié comme admin."""
    async with await _client_for(make_admin_user()) as c:
        yield c
    app.dependency_overrides.clear()
