import httpx
import pytest
import pytest_asyncio

from storygame.main import create_app

from conftest import USER_ID, START, HALLWAY, ENDING, OPEN_DOOR, TO_ENDING


@pytest_asyncio.fixture
async def client(test_settings, engine, story_graph):
    app = create_app(test_settings, bind=engine)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_start_and_choose(client):
    response = await client.post("/game/start", json={"user_id": USER_ID})
    assert response.status_code == 201
    save_id = response.json()["id"]
    assert response.json()["current_story_node_id"] == START

    response = await client.post("/game/choice", json={"save_id": save_id, "choice_id": OPEN_DOOR})
    assert response.status_code == 200
    assert response.json()["current_story_node_id"] == HALLWAY

    response = await client.get(f"/game/state/{USER_ID}", params={"include_node": True})
    body = response.json()
    assert body["save_id"] == save_id
    assert body["story_node"]["title"] == "Hallway"


@pytest.mark.asyncio
async def test_choice_from_another_node_is_bad_request(client):
    save_id = (await client.post("/game/start", json={"user_id": USER_ID})).json()["id"]

    response = await client.post("/game/choice", json={"save_id": save_id, "choice_id": TO_ENDING})
    assert response.status_code == 400
    assert response.json()["detail"] == "그 행동은 지금 할 수 없습니다."

    state = (await client.get(f"/game/state/{USER_ID}")).json()
    assert state["current_story_node_id"] == START


@pytest.mark.asyncio
async def test_unknown_entities_are_not_found(client):
    assert (await client.get(f"/game/state/{USER_ID}")).status_code == 404
    assert (await client.get("/game/saves/999")).status_code == 404
    assert (await client.post("/game/choice", json={"save_id": 999, "choice_id": OPEN_DOOR})).status_code == 404
    assert (await client.get("/story/characters/999")).status_code == 404


@pytest.mark.asyncio
async def test_invalid_payloads_are_rejected(client):
    response = await client.post("/game/start", json={"user_id": 0})
    assert response.status_code == 422

    response = await client.post("/game/start", json={"user_id": USER_ID, "story_node_id": 999})
    assert response.status_code == 400

    response = await client.post("/game/players/1/health", json={"delta": 0})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_story_routes(client):
    response = await client.get("/story/nodes")
    assert [n["id"] for n in response.json()] == [1, 2, 3, 4]

    response = await client.get(f"/story/nodes/{ENDING}/choices")
    assert response.status_code == 200
    assert response.json() == []

    response = await client.delete(f"/story/nodes/{ENDING}")
    assert response.status_code == 409
    assert response.json()["retry"] is True

    response = await client.delete("/story/nodes/999")
    assert response.json() == {"deleted": False}


@pytest.mark.asyncio
async def test_dialogue_routes(client):
    save_id = (await client.post("/game/start", json={"user_id": USER_ID})).json()["id"]

    response = await client.post(f"/game/saves/{save_id}/dialogue/next")
    assert response.json()["dialogue"]["character_name"] == "ARIA"

    response = await client.post(f"/game/saves/{save_id}/dialogue/skip")
    assert response.json()["dialogue"]["order"] == 1

    response = await client.get(f"/game/saves/{save_id}/dialogue/complete")
    assert response.json() == {"save_id": save_id, "complete": True}


@pytest.mark.asyncio
async def test_health_endpoint(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"
