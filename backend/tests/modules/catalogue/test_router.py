# tests/modules/catalogue/test_router.py
import pytest
from unittest.mock import AsyncMock

pytestmark = pytest.mark.router


@pytest.mark.asyncio
async def test_produits(commercial_client, mocker):
    mock_list = mocker.patch(
        "app.modules.catalogue.router.service.list_produits",
        AsyncMock(return_value={"data": [{"id": "p-1", "designation": "Serrure RFID", "actif": True}]}),
    )
    response = await commercial_client.get("/catalogue/produits", params={"categorie_id": "cat-1", "actif": "true"})

    assert response.status_code == 200
    assert response.json()["data"][0]["designation"] == "Serrure RFID"
    assert mock_list.await_args.kwargs["categorie_id"] == "cat-1"
    assert mock_list.await_args.kwargs["actif"] is True


@pytest.mark.asyncio
async def test_categories(commercial_client, mocker):
    mocker.patch(
        "app.modules.catalogue.router.service.list_categories",
        AsyncMock(return_value={"data": [{"id": "cat-1", "nom": "Serrures"}]}),
    )
    response = await commercial_client.get("/catalogue/categories")
    assert response.status_code == 200
    assert response.json() == {"data": [{"id": "cat-1", "nom": "Serrures"}]}


@pytest.mark.asyncio
async def test_catalogue_sans_session_401(client):
    response = await client.get("/catalogue/produits")
    assert response.status_code == 401
