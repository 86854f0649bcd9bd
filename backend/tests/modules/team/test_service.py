# tests/modules/team/test_service.py
import pytest
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from app.core.exceptions import UpstreamStoreError
from app.modules.team.service import TeamService
from tests.conftest import COMMERCIAL_ID, OTHER_COMMERCIAL_ID, make_async_db, make_profile

pytestmark = pytest.mark.service

service = TeamService()


@pytest.mark.asyncio
async def test_membres_avec_total_visites(mocker):
    mocker.patch(
        "app.modules.team.service.repo.get_profiles",
        AsyncMock(return_value=[
            make_profile(id=OTHER_COMMERCIAL_ID),
            make_profile(id=COMMERCIAL_ID, prenom="Alice", nom="Martin", email="alice@test.com"),
        ]),
    )
    mocker.patch(
        "app.modules.team.service.repo.count_visits_by_commercial",
        AsyncMock(return_value={OTHER_COMMERCIAL_ID: 4}),
    )
    result = await service.list_members(make_async_db())

    assert [m["nom"] for m in result["data"]] == ["Bernard", "Martin"]
    assert result["data"][0]["total_visites"] == 4
    # Aucun visite → 0, pas d'absence
    assert result["data"][1]["total_visites"] == 0


@pytest.mark.asyncio
async def test_erreur_profils(mocker):
    mocker.patch(
        "app.modules.team.service.repo.get_profiles",
        AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down"))),
    )
    with pytest.raises(UpstreamStoreError) as exc:
        await service.list_members(make_async_db())
    assert exc.value.message == "Impossible de récupérer les membres de l'équipe."


@pytest.mark.asyncio
async def test_erreur_comptage(mocker):
    mocker.patch("app.modules.team.service.repo.get_profiles", AsyncMock(return_value=[make_profile()]))
    mocker.patch(
        "app.modules.team.service.repo.count_visits_by_commercial",
        AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down"))),
    )
    with pytest.raises(UpstreamStoreError) as exc:
        await service.list_members(make_async_db())
    assert exc.value.message == "Impossible de récupérer les visites pour l'équipe."
