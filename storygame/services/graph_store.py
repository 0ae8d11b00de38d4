"""
스토리 그래프 저장소 - 엔티티 접근만 담당하고 비즈니스 규칙은 두지 않는다
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, inspect
from typing import Iterable, List, Optional, Type, TypeVar, Dict

from storygame.core.exceptions import NotFoundError
from storygame.models import Choice, Dialogue, Character, PlayerCharacter, GameSave

T = TypeVar("T")


class GraphStore:
    """모델 클래스로 파라미터화된 범용 저장소 + 그래프 전용 조회"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # === 범용 CRUD ===

    async def get(self, model: Type[T], entity_id) -> T:
        """id로 조회, 없으면 NotFoundError"""
        entity = await self.db.get(model, entity_id)
        if entity is None:
            raise NotFoundError(model.__name__, entity_id)
        return entity

    async def find(self, model: Type[T], entity_id) -> Optional[T]:
        """id로 조회, 없으면 None"""
        return await self.db.get(model, entity_id)

    async def list_all(self, model: Type[T]) -> List[T]:
        """전체 목록 (기본키 순서)"""
        primary_key = inspect(model).primary_key
        result = await self.db.execute(select(model).order_by(*primary_key))
        return list(result.scalars().all())

    async def create(self, entity: T) -> T:
        """생성 후 생성된 id와 서버 기본값이 채워진 레코드 반환"""
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity: T) -> T:
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def delete(self, model: Type[T], entity_id) -> Optional[T]:
        """삭제된 레코드 반환, 삭제할 대상이 없으면 None"""
        entity = await self.db.get(model, entity_id)
        if entity is None:
            return None
        await self.db.delete(entity)
        await self.db.flush()
        return entity

    # === 그래프 조회 ===

    async def choices_for_node(self, story_node_id: int) -> List[Choice]:
        """노드가 소유한 선택지 (id 순)"""
        result = await self.db.execute(
            select(Choice)
            .where(Choice.story_node_id == story_node_id)
            .order_by(Choice.id)
        )
        return list(result.scalars().all())

    async def dialogues_for_node(self, story_node_id: int) -> List[Dialogue]:
        """노드의 대사 (표시 순서)"""
        result = await self.db.execute(
            select(Dialogue)
            .where(Dialogue.story_node_id == story_node_id)
            .order_by(Dialogue.order, Dialogue.id)
        )
        return list(result.scalars().all())

    async def choices_targeting(self, story_node_id: int) -> List[Choice]:
        """다른 노드에서 이 노드를 가리키는 선택지"""
        result = await self.db.execute(
            select(Choice)
            .where(
                Choice.next_story_node_id == story_node_id,
                Choice.story_node_id != story_node_id,
            )
            .order_by(Choice.id)
        )
        return list(result.scalars().all())

    async def saves_at_node(self, story_node_id: int) -> List[GameSave]:
        result = await self.db.execute(
            select(GameSave)
            .where(GameSave.current_story_node_id == story_node_id)
            .order_by(GameSave.id)
        )
        return list(result.scalars().all())

    async def saves_for_user(self, user_id: int) -> List[GameSave]:
        """사용자의 세이브 목록 (최근 수정 순)"""
        result = await self.db.execute(
            select(GameSave)
            .where(GameSave.user_id == user_id)
            .order_by(GameSave.updated_at.desc(), GameSave.id.desc())
        )
        return list(result.scalars().all())

    async def latest_save_for_user(self, user_id: int) -> Optional[GameSave]:
        result = await self.db.execute(
            select(GameSave)
            .where(GameSave.user_id == user_id)
            .order_by(GameSave.updated_at.desc(), GameSave.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def lock_save(self, save_id: int) -> GameSave:
        """세이브 행을 지금 커밋된 상태로 다시 읽고 행 잠금 (SQLite 에서는 FOR UPDATE 생략됨)"""
        result = await self.db.execute(
            select(GameSave)
            .where(GameSave.id == save_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        game_save = result.scalar_one_or_none()
        if game_save is None:
            raise NotFoundError("GameSave", save_id)
        return game_save

    async def lock_player(self, character_id: int) -> PlayerCharacter:
        """플레이어 행을 커밋된 상태로 다시 읽고 행 잠금"""
        result = await self.db.execute(
            select(PlayerCharacter)
            .where(PlayerCharacter.character_id == character_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        player = result.scalar_one_or_none()
        if player is None:
            raise NotFoundError("PlayerCharacter", character_id)
        return player

    async def player_extension(self, character_id: int) -> Optional[PlayerCharacter]:
        return await self.db.get(PlayerCharacter, character_id)

    async def player_for_user(self, user_id: int) -> Optional[PlayerCharacter]:
        result = await self.db.execute(
            select(PlayerCharacter)
            .where(PlayerCharacter.user_id == user_id)
            .order_by(PlayerCharacter.character_id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def characters_by_ids(self, character_ids: Iterable[int]) -> Dict[int, Character]:
        """대사 화자 조회용 id → 캐릭터 매핑"""
        ids = {cid for cid in character_ids if cid is not None}
        if not ids:
            return {}
        result = await self.db.execute(select(Character).where(Character.id.in_(ids)))
        return {c.id: c for c in result.scalars().all()}
