# tests/modules/visits/test_service.py
"""
Tests unitaires pour modules.visits.service — VisiteService.

Couverture :
    clamp_pagination     → bornes page / pageSize, valeurs illisibles
    create               → data absente → ValidationError ; propriétaire = appelant
    list_visits          → rédaction des champs sensibles par rôle,
                           noms : session pour soi, lookup profiles pour les autres,
                           échec du lookup → noms None,
                           filtre commercial_id réservé aux rôles élevés,
                           erreur store → UpstreamStoreError
    update / delete      → 404 inconnue, 403 non propriétaire, admin autorisé
    stats                → agrégats + moyenne arrondie
    check_duplicate      → paramètre vide, absence, jours depuis visite
    export               → périmètre par rôle, 403 rôle inconnu, 400 id non UUID, 404 vide
"""
import pytest
from datetime import date
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    UpstreamStoreError,
    ValidationError,
)
from app.modules.visits.schemas import VisiteCreateIn, VisiteFormData, VisiteUpdateIn
from app.modules.visits.service import VisiteService, clamp_pagination, compute_stats
from app.shared.enums import UserRole
from tests.conftest import (
    COMMERCIAL_ID,
    OTHER_COMMERCIAL_ID,
    make_admin_user,
    make_async_db,
    make_consultant_user,
    make_current_user,
    make_profile,
    make_visite,
)

pytestmark = pytest.mark.service

service = VisiteService()


def _store_error():
    return OperationalError("SELECT 1", {}, Exception("connexion perdue"))


def _form(**kwargs) -> VisiteFormData:
    defaults = {
        "entreprise": "ACME",
        "personne_rencontree": "M. X",
        "date_visite": "2025-01-15",
        "objet_visite": "Présentation",
    }
    defaults.update(kwargs)
    return VisiteFormData(**defaults)


# ── clamp_pagination ──────────────────────────────────────────────────────────

class TestClampPagination:
    def test_defauts(self):
        assert clamp_pagination(None, None) == (1, 20)

    def test_page_minimum(self):
        assert clamp_pagination("0", "10") == (1, 10)
        assert clamp_pagination("-3", "10") == (1, 10)

    def test_page_size_plafonnee(self):
        assert clamp_pagination("2", "500") == (2, 100)

    def test_page_size_minimum(self):
        assert clamp_pagination("1", "0") == (1, 1)

    def test_valeurs_illisibles(self):
        assert clamp_pagination("abc", "xyz") == (1, 20)


# ── create ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_sans_data_leve_validation():
    with pytest.raises(ValidationError) as exc:
        await service.create(make_async_db(), VisiteCreateIn(data=None), make_current_user())
    assert exc.value.message == "Aucune donnée de visite fournie."


@pytest.mark.asyncio
async def test_create_proprietaire_est_appelant(mocker):
    mock_create = mocker.patch(
        "app.modules.visits.service.repo.create",
        AsyncMock(return_value=make_visite(id="new-id")),
    )
    result = await service.create(make_async_db(), VisiteCreateIn(data=_form()), make_current_user())

    assert result == {"id": "new-id"}
    data = mock_create.await_args.args[1]
    assert data["commercial_id"] == COMMERCIAL_ID
    assert data["created_by"] == COMMERCIAL_ID
    assert data["statut_action"] == "en_attente"


@pytest.mark.asyncio
async def test_create_montant_nan_devient_none(mocker):
    mock_create = mocker.patch(
        "app.modules.visits.service.repo.create",
        AsyncMock(return_value=make_visite()),
    )
    await service.create(
        make_async_db(),
        VisiteCreateIn(data=_form(montant=float("nan"), probabilite=float("nan"))),
        make_current_user(),
    )
    data = mock_create.await_args.args[1]
    assert data["montant"] is None
    assert data["probabilite"] is None


@pytest.mark.asyncio
async def test_create_erreur_store(mocker):
    mocker.patch("app.modules.visits.service.repo.create", AsyncMock(side_effect=_store_error()))
    with pytest.raises(UpstreamStoreError):
        await service.create(make_async_db(), VisiteCreateIn(data=_form()), make_current_user())


# ── list_visits ───────────────────────────────────────────────────────────────

def _mixed_page():
    return [
        make_visite(id="v-1", commercial_id=COMMERCIAL_ID, montant=1000.0, probabilite=30),
        make_visite(id="v-2", commercial_id=OTHER_COMMERCIAL_ID, montant=9000.0, probabilite=80),
    ]


@pytest.mark.asyncio
async def test_list_commercial_redaction(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=(_mixed_page(), 2)),
    )
    mocker.patch(
        "app.modules.visits.service.repo.get_profiles_by_ids",
        AsyncMock(return_value=[make_profile()]),
    )
    result = await service.list_visits(make_async_db(), make_current_user())

    own, other = result["data"]
    assert own["montant"] == 1000.0
    assert own["probabilite"] == 30
    assert other["montant"] is None
    assert other["probabilite"] is None
    assert result["pagination"] == {"page": 1, "pageSize": 20, "total": 2}


@pytest.mark.asyncio
async def test_list_consultant_voit_tout(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=(_mixed_page(), 2)),
    )
    mocker.patch("app.modules.visits.service.repo.get_profiles_by_ids", AsyncMock(return_value=[]))
    result = await service.list_visits(make_async_db(), make_consultant_user())
    assert [v["montant"] for v in result["data"]] == [1000.0, 9000.0]


@pytest.mark.asyncio
async def test_list_noms_commerciaux(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=(_mixed_page(), 2)),
    )
    mock_profiles = mocker.patch(
        "app.modules.visits.service.repo.get_profiles_by_ids",
        AsyncMock(return_value=[make_profile()]),
    )
    result = await service.list_visits(make_async_db(), make_current_user())

    # Soi-même : claims de session ; autres : un seul lookup groupé
    assert result["data"][0]["commercial_name"] == "Alice Martin"
    assert result["data"][1]["commercial_name"] == "Bob Bernard"
    mock_profiles.assert_awaited_once()
    assert mock_profiles.await_args.args[1] == [OTHER_COMMERCIAL_ID]


@pytest.mark.asyncio
async def test_list_lookup_profils_en_echec(mocker):
    db = make_async_db()
    mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=(_mixed_page(), 2)),
    )
    mocker.patch(
        "app.modules.visits.service.repo.get_profiles_by_ids",
        AsyncMock(side_effect=_store_error()),
    )
    result = await service.list_visits(db, make_current_user())
    assert result["data"][0]["commercial_name"] == "Alice Martin"
    assert result["data"][1]["commercial_name"] is None
    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_list_pas_de_lookup_si_seulement_ses_visites(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=([make_visite()], 1)),
    )
    mock_profiles = mocker.patch(
        "app.modules.visits.service.repo.get_profiles_by_ids", AsyncMock(return_value=[])
    )
    await service.list_visits(make_async_db(), make_current_user())
    mock_profiles.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_filtre_commercial_ignore_pour_commercial(mocker):
    mock_list = mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=([], 0)),
    )
    await service.list_visits(make_async_db(), make_current_user(), commercial_id=OTHER_COMMERCIAL_ID)
    assert "commercial_id" not in mock_list.await_args.kwargs


@pytest.mark.asyncio
async def test_list_filtre_commercial_admin(mocker):
    mock_list = mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(return_value=([], 0)),
    )
    await service.list_visits(
        make_async_db(), make_admin_user(), commercial_id=OTHER_COMMERCIAL_ID, page="3", page_size="10"
    )
    kwargs = mock_list.await_args.kwargs
    assert kwargs["commercial_id"] == OTHER_COMMERCIAL_ID
    assert kwargs["offset"] == 20
    assert kwargs["limit"] == 10


@pytest.mark.asyncio
async def test_list_erreur_store(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.list_paginated",
        AsyncMock(side_effect=_store_error()),
    )
    with pytest.raises(UpstreamStoreError) as exc:
        await service.list_visits(make_async_db(), make_current_user())
    assert "connexion" not in exc.value.message


# ── update / delete ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_visite_inconnue(mocker):
    mocker.patch("app.modules.visits.service.repo.get_by_id", AsyncMock(return_value=None))
    with pytest.raises(NotFoundError):
        await service.update(make_async_db(), "x", VisiteUpdateIn(remarques="ok"), make_current_user())


@pytest.mark.asyncio
async def test_update_non_proprietaire(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.get_by_id",
        AsyncMock(return_value=make_visite(commercial_id=OTHER_COMMERCIAL_ID)),
    )
    with pytest.raises(AuthorizationError):
        await service.update(make_async_db(), "v-1", VisiteUpdateIn(remarques="ok"), make_current_user())


@pytest.mark.asyncio
async def test_update_partiel(mocker):
    visite = make_visite()
    mocker.patch("app.modules.visits.service.repo.get_by_id", AsyncMock(return_value=visite))
    mock_update = mocker.patch(
        "app.modules.visits.service.repo.update",
        AsyncMock(return_value=make_visite(statut_visite="termine")),
    )
    result = await service.update(
        make_async_db(), "v-1", VisiteUpdateIn(statut_visite="termine"), make_current_user()
    )
    assert mock_update.await_args.args[2] == {"statut_visite": "termine"}
    assert result["statut_visite"] == "termine"


@pytest.mark.asyncio
async def test_update_sans_champ(mocker):
    mocker.patch("app.modules.visits.service.repo.get_by_id", AsyncMock(return_value=make_visite()))
    with pytest.raises(ValidationError):
        await service.update(make_async_db(), "v-1", VisiteUpdateIn(), make_current_user())


@pytest.mark.asyncio
async def test_delete_admin_sur_visite_autre(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.get_by_id",
        AsyncMock(return_value=make_visite(commercial_id=OTHER_COMMERCIAL_ID)),
    )
    mock_delete = mocker.patch("app.modules.visits.service.repo.delete", AsyncMock())
    await service.delete(make_async_db(), "v-1", make_admin_user())
    mock_delete.assert_awaited_once()


# ── stats ─────────────────────────────────────────────────────────────────────

class TestComputeStats:
    def test_vide(self):
        stats = compute_stats([])
        assert stats["total_visites"] == 0
        assert stats["probabilite_moyenne"] == 0

    def test_agregats(self):
        rows = [
            ("a_faire", "en_attente", 100.0, 10),
            ("en_cours", "accepte", None, 20),
            ("termine", "refuse", 50.5, None),
            ("termine", "accepte", 0.0, 25),
        ]
        stats = compute_stats(rows)
        assert stats["total_visites"] == 4
        assert stats["visites_a_faire"] == 1
        assert stats["visites_en_cours"] == 1
        assert stats["visites_terminees"] == 2
        assert stats["visites_acceptees"] == 2
        assert stats["visites_refusees"] == 1
        assert stats["montant_total"] == 150.5
        assert stats["probabilite_moyenne"] == 18.3


@pytest.mark.asyncio
async def test_stats_sur_ses_visites(mocker):
    mock_rows = mocker.patch(
        "app.modules.visits.service.repo.get_stats_rows",
        AsyncMock(return_value=[("termine", "accepte", 10.0, 50)]),
    )
    result = await service.stats(make_async_db(), make_current_user(), date_from=date(2025, 1, 1))
    assert mock_rows.await_args.args[1] == COMMERCIAL_ID
    assert result["total_visites"] == 1


# ── check_duplicate ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_doublon_parametre_vide():
    with pytest.raises(ValidationError):
        await service.check_duplicate(make_async_db(), make_current_user(), "   ")


@pytest.mark.asyncio
async def test_doublon_absent(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.get_latest_for_company",
        AsyncMock(return_value=None),
    )
    result = await service.check_duplicate(make_async_db(), make_current_user(), "ACME")
    assert result["existe"] is False
    assert result["jours_depuis_visite"] is None


@pytest.mark.asyncio
async def test_doublon_present(mocker):
    mock_latest = mocker.patch(
        "app.modules.visits.service.repo.get_latest_for_company",
        AsyncMock(return_value=make_visite(id="v-9", date_visite=date(2025, 1, 10))),
    )
    result = await service.check_duplicate(
        make_async_db(), make_current_user(), "  acme ", today=date(2025, 1, 20)
    )
    assert mock_latest.await_args.args[2] == "acme"
    assert result == {
        "existe": True,
        "derniere_visite_id": "v-9",
        "derniere_date": "2025-01-10",
        "commercial_nom": "Martin Alice",
        "jours_depuis_visite": 10,
    }


# ── export ────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "user, consultant_id, expected",
    [
        (make_current_user(), None, {"commercial_id": COMMERCIAL_ID}),
        (make_current_user(), "all", {"commercial_id": COMMERCIAL_ID}),
        (make_consultant_user(), None, {"created_by": make_consultant_user().id}),
        (make_consultant_user(), OTHER_COMMERCIAL_ID, {"created_by": OTHER_COMMERCIAL_ID}),
        (make_current_user(), "pas-un-uuid", {"commercial_id": COMMERCIAL_ID}),
        (make_consultant_user(), "all", {}),
        (make_admin_user(), None, {}),
        (make_admin_user(), "all", {}),
        (make_admin_user(), OTHER_COMMERCIAL_ID, {"commercial_id": OTHER_COMMERCIAL_ID}),
        (make_admin_user(role=UserRole.SUPERIEUR), None, {}),
    ],
)
def test_export_perimetre_par_role(user, consultant_id, expected):
    assert VisiteService._export_scope(user, consultant_id) == expected


def test_export_role_inconnu_refuse():
    with pytest.raises(AuthorizationError):
        VisiteService._export_scope(make_current_user(role=None), None)


@pytest.mark.parametrize("user", [make_consultant_user(), make_admin_user()])
def test_export_consultant_id_non_uuid_refuse(user):
    with pytest.raises(ValidationError):
        VisiteService._export_scope(user, "pas-un-uuid")


@pytest.mark.asyncio
async def test_export_vide_404(mocker):
    mocker.patch("app.modules.visits.service.repo.list_for_export", AsyncMock(return_value=[]))
    with pytest.raises(NotFoundError) as exc:
        await service.export(make_async_db(), make_current_user())
    assert exc.value.message == "Aucune visite à exporter."


@pytest.mark.asyncio
async def test_export_fichier(mocker):
    mocker.patch(
        "app.modules.visits.service.repo.list_for_export",
        AsyncMock(return_value=[make_visite()]),
    )
    mocker.patch(
        "app.modules.visits.service.repo.get_profiles_by_ids",
        AsyncMock(return_value=[make_profile(id=COMMERCIAL_ID, prenom="Alice", nom="Martin")]),
    )
    mock_build = mocker.patch(
        "app.modules.visits.service.build_visits_workbook",
        return_value=b"xlsx",
    )
    filename, content = await service.export(make_async_db(), make_current_user(), today=date(2025, 2, 1))

    assert filename == "visites_export_2025-02-01.xlsx"
    assert content == b"xlsx"
    exported = mock_build.call_args.args[0]
    assert exported[0]["commercial_name"] == "Alice Martin"
