import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from storygame.core.exceptions import ConflictError, InvalidNodeError, NotFoundError
from storygame.models import StoryNode, Choice, GameSave
from storygame.services.graph_store import GraphStore

from conftest import START, HALLWAY


async def _node_titled(session_factory, title):
    async with session_factory() as session:
        result = await session.execute(select(StoryNode).where(StoryNode.title == title))
        return result.scalar_one_or_none()


@pytest.mark.asyncio
async def test_operation_commits_all_writes(executor, story_graph):
    async def work(uow):
        node = await uow.store.create(StoryNode(title="Engine Room", description=""))
        await uow.store.create(Choice(story_node_id=node.id, next_story_node_id=START, text="Leave"))
        return node.id

    node_id = await executor.execute(work)

    async with story_graph() as session:
        store = GraphStore(session)
        assert (await store.get(StoryNode, node_id)).title == "Engine Room"
        assert len(await store.choices_for_node(node_id)) == 1


@pytest.mark.asyncio
async def test_domain_error_rolls_back_without_retry(executor, story_graph):
    calls = 0

    async def work(uow):
        nonlocal calls
        calls += 1
        await uow.store.create(StoryNode(title="Half Written", description=""))
        raise InvalidNodeError(999)

    with pytest.raises(InvalidNodeError):
        await executor.execute(work)

    assert calls == 1
    assert await _node_titled(story_graph, "Half Written") is None


@pytest.mark.asyncio
async def test_storage_failure_is_retried_once(executor, story_graph):
    calls = 0

    async def work(uow):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise StaleDataError("row changed underneath")
        node = await uow.store.create(StoryNode(title="Second Try", description=""))
        return node.id

    node_id = await executor.execute(work)

    assert calls == 2
    assert (await _node_titled(story_graph, "Second Try")).id == node_id


@pytest.mark.asyncio
async def test_repeated_storage_failure_becomes_conflict(executor, story_graph):
    calls = 0

    async def work(uow):
        nonlocal calls
        calls += 1
        raise StaleDataError("row changed underneath")

    with pytest.raises(ConflictError):
        await executor.execute(work)
    assert calls == executor.retry_limit + 1


@pytest.mark.asyncio
async def test_dangling_foreign_key_is_rejected_as_conflict(executor, story_graph):
    async def work(uow):
        await uow.store.create(Choice(story_node_id=START, next_story_node_id=999, text="Nowhere"))

    with pytest.raises(ConflictError):
        await executor.execute(work)

    async with story_graph() as session:
        assert len(await GraphStore(session).choices_for_node(START)) == 1


@pytest.mark.asyncio
async def test_no_result_found_maps_to_not_found(executor, story_graph):
    async def work(uow):
        result = await uow.session.execute(select(StoryNode).where(StoryNode.id == 999))
        return result.scalar_one()

    with pytest.raises(NotFoundError):
        await executor.execute(work)


@pytest.mark.asyncio
async def test_validate_entity_exists(executor, story_graph):
    async def found(uow):
        node = await uow.validate_entity_exists(StoryNode, HALLWAY)
        return node.title

    async def missing(uow):
        await uow.validate_entity_exists(GameSave, 999)

    assert await executor.execute(found) == "Hallway"
    with pytest.raises(NotFoundError) as exc_info:
        await executor.execute(missing)
    assert exc_info.value.entity == "GameSave"
    assert exc_info.value.entity_id == 999


@pytest.mark.asyncio
async def test_cancelled_operation_leaves_no_partial_write(executor, story_graph):
    written = asyncio.Event()
    never = asyncio.Event()

    async def work(uow):
        await uow.store.create(StoryNode(title="Interrupted", description=""))
        written.set()
        await never.wait()

    task = asyncio.create_task(executor.execute(work))
    await written.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await _node_titled(story_graph, "Interrupted") is None


@pytest.mark.asyncio
async def test_save_lock_is_shared_per_save(executor):
    lock = executor.save_lock(1)
    assert executor.save_lock(1) is lock
    assert executor.save_lock(2) is not lock


@pytest.mark.asyncio
async def test_save_and_player_locks_are_distinct(executor):
    save = executor.lock_for(("save", 1))
    player = executor.lock_for(("player", 1))
    assert save is not player
    assert executor.save_lock(1) is save
