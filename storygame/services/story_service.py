"""
스토리 조회 서비스 - 노드/캐릭터 읽기 화면과 노드 삭제 정책
"""

from typing import List, Optional
import logging

from storygame.models import StoryNode, Character
from storygame.schemas.story import StoryNodeDto, StoryNodeDetailDto, CharacterDto
from storygame.services import dto_mapper
from storygame.services.transaction import TransactionalExecutor, UnitOfWork

logger = logging.getLogger(__name__)


async def load_node_detail(uow: UnitOfWork, node: StoryNode) -> StoryNodeDetailDto:
    """노드의 대사/선택지/화자를 미리 조회해서 상세 DTO 로 변환"""
    dialogues = await uow.store.dialogues_for_node(node.id)
    choices = await uow.store.choices_for_node(node.id)
    characters = await uow.store.characters_by_ids(d.character_id for d in dialogues)
    return dto_mapper.map_story_node_detail(node, dialogues, choices, characters)


class StoryService:
    """스토리 그래프 읽기 서비스"""

    def __init__(self, executor: TransactionalExecutor):
        self.executor = executor

    async def get_story_node(self, node_id: int) -> StoryNodeDetailDto:
        async def work(uow: UnitOfWork):
            node = await uow.validator.require_node(node_id)
            return await load_node_detail(uow, node)

        return await self.executor.execute(work)

    async def list_story_nodes(self) -> List[StoryNodeDto]:
        async def work(uow: UnitOfWork):
            nodes = await uow.store.list_all(StoryNode)
            return [dto_mapper.map_story_node(n) for n in nodes]

        return await self.executor.execute(work)

    async def get_character(self, character_id: int) -> CharacterDto:
        async def work(uow: UnitOfWork):
            character = await uow.validate_entity_exists(Character, character_id)
            player = await uow.store.player_extension(character.id)
            return dto_mapper.map_character(character, player)

        return await self.executor.execute(work)

    async def list_characters(self) -> List[CharacterDto]:
        async def work(uow: UnitOfWork):
            characters = await uow.store.list_all(Character)
            result = []
            for character in characters:
                player = await uow.store.player_extension(character.id)
                result.append(dto_mapper.map_character(character, player))
            return result

        return await self.executor.execute(work)

    async def delete_story_node(self, node_id: int) -> Optional[StoryNodeDto]:
        """참조 중인 노드는 ConflictError, 삭제할 노드가 없으면 None"""
        async def work(uow: UnitOfWork):
            node = await uow.store.find(StoryNode, node_id)
            if node is None:
                return None
            await uow.validator.ensure_node_deletable(node_id)
            dto = dto_mapper.map_story_node(node)
            await uow.store.delete(StoryNode, node_id)
            logger.info(f"[story] story node {node_id} deleted")
            return dto

        return await self.executor.execute(work)
