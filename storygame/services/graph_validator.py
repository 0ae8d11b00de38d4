"""
그래프 검증 - "여기로 이동할 수 있는가"에 대한 단일 판단 지점
"""

import logging

from storygame.core.exceptions import ConflictError, InvalidChoiceError, InvalidNodeError
from storygame.models import StoryNode, Choice
from storygame.services.graph_store import GraphStore

logger = logging.getLogger(__name__)


class GraphValidator:
    """선택 기반 이동, 직접 이동, 저장 등 모든 변경 경로가 같은 규칙으로 검증된다"""

    def __init__(self, store: GraphStore):
        self.store = store

    async def choice_belongs_to_node(self, choice_id: int, node_id: int) -> bool:
        """선택지가 존재하고 출발 노드가 node_id 인지"""
        choice = await self.store.find(Choice, choice_id)
        return choice is not None and choice.story_node_id == node_id

    async def resolve_target(self, choice_id: int) -> int:
        """선택지의 대상 노드 id (외래키 제약으로 존재가 보장됨)"""
        choice = await self.store.find(Choice, choice_id)
        if choice is None:
            raise InvalidChoiceError(choice_id)
        return choice.next_story_node_id

    async def node_exists(self, node_id: int) -> bool:
        return await self.store.find(StoryNode, node_id) is not None

    async def require_node(self, node_id: int) -> StoryNode:
        node = await self.store.find(StoryNode, node_id)
        if node is None:
            logger.warning(f"[validator] story node {node_id} not found")
            raise InvalidNodeError(node_id)
        return node

    async def require_choice_in_node(self, choice_id: int, node_id: int) -> Choice:
        choice = await self.store.find(Choice, choice_id)
        if choice is None:
            logger.warning(f"[validator] choice {choice_id} not found")
            raise InvalidChoiceError(choice_id)
        if choice.story_node_id != node_id:
            logger.warning(f"[validator] choice {choice_id} does not belong to node {node_id}")
            raise InvalidChoiceError(choice_id, node_id)
        return choice

    async def ensure_node_deletable(self, node_id: int) -> None:
        """다른 노드의 선택지가 가리키거나 세이브가 위치한 노드는 삭제 금지"""
        targeting = await self.store.choices_targeting(node_id)
        if targeting:
            ids = ", ".join(str(c.id) for c in targeting)
            raise ConflictError(f"StoryNode {node_id} is the target of choices [{ids}]")

        saves = await self.store.saves_at_node(node_id)
        if saves:
            ids = ", ".join(str(s.id) for s in saves)
            raise ConflictError(f"StoryNode {node_id} is the current position of saves [{ids}]")
