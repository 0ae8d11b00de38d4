"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
import pytest_asyncio

from storygame.core.config import Settings
from storygame.core.database import build_engine, build_session_factory, create_tables
from storygame.models import User, StoryNode, Choice, Dialogue, Character
from storygame.services.game_service import GameService
from storygame.services.story_service import StoryService
from storygame.services.transaction import TransactionalExecutor

# 테스트 그래프 id
USER_ID = 5
OTHER_USER_ID = 6
START, HALLWAY, BRIDGE, ENDING = 1, 2, 3, 4
OPEN_DOOR, TO_BRIDGE, TO_ENDING, BACK_TO_HALLWAY = 10, 11, 12, 13
ARIA = 20


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        SEED_DEMO_STORY=False,
        START_STORY_NODE_ID=START,
        TRANSACTION_RETRY_LIMIT=1,
    )


@pytest_asyncio.fixture
async def engine(tmp_path: Path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'storygame.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def executor(session_factory) -> TransactionalExecutor:
    return TransactionalExecutor(session_factory, retry_limit=1)


@pytest.fixture
def game_service(executor, test_settings) -> GameService:
    return GameService(executor, test_settings)


@pytest.fixture
def story_service(executor) -> StoryService:
    return StoryService(executor)


@pytest_asyncio.fixture
async def story_graph(session_factory):
    """Start -> Hallway -> (Bridge <-> Hallway) / Ending 그래프와 사용자 삽입"""
    async with session_factory() as session:
        async with session.begin():
            session.add_all([
                User(id=USER_ID, username="player", hashed_password="!"),
                User(id=OTHER_USER_ID, username="other", hashed_password="!"),
                StoryNode(id=START, title="Start", description="You wake up."),
                StoryNode(id=HALLWAY, title="Hallway", description="A long corridor.", background_url="hallway.png"),
                StoryNode(id=BRIDGE, title="Bridge", description="The empty bridge."),
                StoryNode(id=ENDING, title="Escape Pod", description="The end."),
                Character(id=ARIA, name="ARIA", description="Ship AI"),
            ])
            await session.flush()
            session.add_all([
                Choice(id=OPEN_DOOR, story_node_id=START, next_story_node_id=HALLWAY, text="Open the door"),
                Choice(id=TO_BRIDGE, story_node_id=HALLWAY, next_story_node_id=BRIDGE, text="Head to the bridge"),
                Choice(id=TO_ENDING, story_node_id=HALLWAY, next_story_node_id=ENDING, text="Run", health_effect=-10),
                Choice(id=BACK_TO_HALLWAY, story_node_id=BRIDGE, next_story_node_id=HALLWAY, text="Go back"),
                Dialogue(id=100, story_node_id=START, character_id=None, order=1, text="My head hurts."),
                Dialogue(id=101, story_node_id=START, character_id=ARIA, order=0, text="Hull breach detected."),
            ])
    return session_factory
