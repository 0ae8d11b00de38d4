import pytest

from storygame.core.exceptions import ConflictError, InvalidChoiceError, InvalidNodeError
from storygame.models import StoryNode, Choice
from storygame.services.graph_store import GraphStore
from storygame.services.graph_validator import GraphValidator

from conftest import START, HALLWAY, ENDING, OPEN_DOOR


@pytest.mark.asyncio
async def test_every_choice_belongs_only_to_its_source_node(story_graph):
    async with story_graph() as session:
        store = GraphStore(session)
        validator = GraphValidator(store)
        nodes = await store.list_all(StoryNode)

        for choice in await store.list_all(Choice):
            for node in nodes:
                belongs = await validator.choice_belongs_to_node(choice.id, node.id)
                assert belongs == (node.id == choice.story_node_id)


@pytest.mark.asyncio
async def test_resolve_target_points_at_existing_node(story_graph):
    async with story_graph() as session:
        store = GraphStore(session)
        validator = GraphValidator(store)

        for choice in await store.list_all(Choice):
            target = await validator.resolve_target(choice.id)
            assert target == choice.next_story_node_id
            assert await validator.node_exists(target)


@pytest.mark.asyncio
async def test_unknown_choice_and_node(story_graph):
    async with story_graph() as session:
        validator = GraphValidator(GraphStore(session))

        assert await validator.choice_belongs_to_node(999, START) is False
        with pytest.raises(InvalidChoiceError):
            await validator.resolve_target(999)
        assert await validator.node_exists(999) is False
        with pytest.raises(InvalidNodeError):
            await validator.require_node(999)


@pytest.mark.asyncio
async def test_require_choice_in_node_rejects_foreign_choice(story_graph):
    async with story_graph() as session:
        validator = GraphValidator(GraphStore(session))

        choice = await validator.require_choice_in_node(OPEN_DOOR, START)
        assert choice.id == OPEN_DOOR
        with pytest.raises(InvalidChoiceError) as exc_info:
            await validator.require_choice_in_node(OPEN_DOOR, HALLWAY)
        assert exc_info.value.node_id == HALLWAY


@pytest.mark.asyncio
async def test_targeted_node_is_not_deletable(story_graph):
    async with story_graph() as session:
        validator = GraphValidator(GraphStore(session))

        with pytest.raises(ConflictError):
            await validator.ensure_node_deletable(ENDING)
        # START 는 아무도 가리키지 않는다
        await validator.ensure_node_deletable(START)

