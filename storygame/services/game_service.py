"""
게임 진행 서비스 - 게임 세이브의 생명주기와 스토리 그래프 이동을 담당

모든 검증-후-쓰기 순서는 TransactionalExecutor 의 작업 단위 하나 안에서 실행된다.
세이브를 바꾸는 작업은 먼저 세이브 행을 잠그고 다시 읽은 뒤 새 위치를 계산한다.
"""

from typing import List, Optional
import logging

from storygame.core.config import Settings, settings as default_settings
from storygame.core.exceptions import NotFoundError, ValidationFailureError
from storygame.models import User, StoryNode, Choice, Character, PlayerCharacter, GameSave
from storygame.schemas.game import GameSaveDto, GameStateDto
from storygame.schemas.story import ChoiceDto, DialogueDto, PlayerCharacterDto, StoryNodeDetailDto
from storygame.services import dto_mapper
from storygame.services.story_service import load_node_detail
from storygame.services.transaction import TransactionalExecutor, UnitOfWork

logger = logging.getLogger(__name__)


class GameService:
    """게임 진행 서비스"""

    def __init__(self, executor: TransactionalExecutor, config: Settings = default_settings):
        self.executor = executor
        self.settings = config

    # === 세이브 생명주기 ===

    async def start_game(
        self,
        user_id: int,
        story_node_id: Optional[int] = None,
        save_name: Optional[str] = None,
    ) -> GameSaveDto:
        """지정한 노드(없으면 시작 노드)에서 새 게임 세이브 생성"""
        if save_name is not None and not save_name.strip():
            raise ValidationFailureError("save_name 은 비어 있을 수 없습니다.")
        node_id = story_node_id if story_node_id is not None else self.settings.START_STORY_NODE_ID

        async def work(uow: UnitOfWork):
            await uow.validate_entity_exists(User, user_id)
            await uow.validator.require_node(node_id)
            player = await self._ensure_player(uow, user_id)

            game_save = await uow.store.create(GameSave(
                user_id=user_id,
                player_character_id=player.character_id,
                save_name=(save_name or self.settings.DEFAULT_SAVE_NAME).strip(),
                current_story_node_id=node_id,
                visited_node_ids=[],
                current_dialogue_index=0,
            ))
            logger.info(f"[game] user {user_id} started save {game_save.id} at node {node_id}")
            return dto_mapper.map_game_save(game_save)

        return await self.executor.execute(work)

    async def get_game_state(self, user_id: int, include_node: bool = False) -> GameStateDto:
        """사용자의 가장 최근 세이브 상태"""
        async def work(uow: UnitOfWork):
            game_save = await uow.store.latest_save_for_user(user_id)
            if game_save is None:
                raise NotFoundError("GameSave for user", user_id)
            if not include_node:
                return dto_mapper.map_game_state(game_save)
            node = await uow.store.get(StoryNode, game_save.current_story_node_id)
            choices = await uow.store.choices_for_node(node.id)
            return dto_mapper.map_game_state(game_save, node, choices)

        return await self.executor.execute(work)

    async def get_game_save(self, save_id: int) -> GameSaveDto:
        async def work(uow: UnitOfWork):
            game_save = await uow.validate_entity_exists(GameSave, save_id)
            return dto_mapper.map_game_save(game_save)

        return await self.executor.execute(work)

    async def list_game_saves(self, user_id: int) -> List[GameSaveDto]:
        """사용자의 세이브 목록 (최근 수정 순)"""
        async def work(uow: UnitOfWork):
            await uow.validate_entity_exists(User, user_id)
            saves = await uow.store.saves_for_user(user_id)
            return [dto_mapper.map_game_save(s) for s in saves]

        return await self.executor.execute(work)

    async def delete_game_save(self, save_id: int) -> Optional[GameSaveDto]:
        """삭제된 세이브 반환, 없으면 None (오류 아님)"""
        async def work(uow: UnitOfWork):
            if await uow.store.find(GameSave, save_id) is None:
                return None
            game_save = await uow.lock_save(save_id)
            dto = dto_mapper.map_game_save(game_save)
            await uow.store.delete(GameSave, save_id)
            logger.info(f"[game] save {save_id} deleted")
            return dto

        return await self.executor.execute(work)

    # === 이동 ===

    async def make_choice(self, save_id: int, choice_id: int) -> GameStateDto:
        """현재 노드의 선택지를 따라 이동. 현재 노드에 속하지 않으면 InvalidChoiceError, 위치 변화 없음"""
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_save(save_id)
            choice = await uow.validator.require_choice_in_node(choice_id, game_save.current_story_node_id)
            return await self._apply_choice(uow, game_save, choice)

        return await self.executor.execute(work)

    async def save_progress(self, user_id: int, current_story_node_id: int) -> GameStateDto:
        """사용자의 최근 세이브 위치를 지정한 노드로 저장"""
        return await self._move_latest_save(user_id, current_story_node_id, "save_progress")

    async def move_to_next_node(self, user_id: int, current_story_node_id: int) -> GameStateDto:
        """지정한 노드로 직접 이동"""
        return await self._move_latest_save(user_id, current_story_node_id, "move_to_next_node")

    async def move_to_previous_node(self, user_id: int, previous_story_node_id: int) -> GameStateDto:
        """호출자가 지정한 이전 노드로 이동

        이전 노드는 엔진이 도출하지 않고 호출자를 신뢰한다. 기록에 없는 노드면 경고만 남긴다.
        """
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_latest_save(user_id)
            await uow.validator.require_node(previous_story_node_id)

            visited = list(game_save.visited_node_ids or [])
            if previous_story_node_id not in visited:
                logger.warning(
                    f"[game] save {game_save.id}: previous node {previous_story_node_id} "
                    f"is not in recorded history {visited}"
                )
            if visited and visited[-1] == previous_story_node_id:
                visited = visited[:-1]

            game_save.visited_node_ids = visited
            game_save.current_story_node_id = previous_story_node_id
            game_save.current_dialogue_index = 0
            game_save.last_choice_id = None
            await uow.store.update(game_save)
            logger.info(f"[game] save {game_save.id} moved back to node {previous_story_node_id}")
            return dto_mapper.map_game_state(game_save)

        return await self.executor.execute(work)

    async def go_forward(self, save_id: int) -> Optional[GameStateDto]:
        """현재 노드의 첫 번째 선택지를 따라 이동, 엔딩 노드면 None"""
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_save(save_id)
            choices = await uow.store.choices_for_node(game_save.current_story_node_id)
            if not choices:
                return None
            return await self._apply_choice(uow, game_save, choices[0])

        return await self.executor.execute(work)

    async def go_back(self, save_id: int) -> Optional[GameStateDto]:
        """마지막 선택지의 출발 노드로 되돌아감, 마지막 선택지가 없으면 None"""
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_save(save_id)
            if game_save.last_choice_id is None:
                return None
            last_choice = await uow.store.find(Choice, game_save.last_choice_id)
            # 마지막 선택 이후 다른 경로로 이동했다면 되돌아갈 기준이 없다
            if last_choice is None or last_choice.next_story_node_id != game_save.current_story_node_id:
                return None

            previous_node_id = last_choice.story_node_id
            visited = list(game_save.visited_node_ids or [])
            if visited and visited[-1] == previous_node_id:
                visited = visited[:-1]

            game_save.visited_node_ids = visited
            game_save.current_story_node_id = previous_node_id
            game_save.current_dialogue_index = 0
            game_save.last_choice_id = None
            await uow.store.update(game_save)
            logger.info(f"[game] save {save_id} went back to node {previous_node_id}")
            return dto_mapper.map_game_state(game_save)

        return await self.executor.execute(work)

    # === 노드/선택지 조회 ===

    async def get_choices_for_node(self, story_node_id: int) -> List[ChoiceDto]:
        """노드의 선택지, 엔딩 노드면 빈 목록"""
        async def work(uow: UnitOfWork):
            await uow.validator.require_node(story_node_id)
            choices = await uow.store.choices_for_node(story_node_id)
            return [dto_mapper.map_choice(c) for c in choices]

        return await self.executor.execute(work)

    async def get_current_node(self, save_id: int) -> StoryNodeDetailDto:
        async def work(uow: UnitOfWork):
            game_save = await uow.validate_entity_exists(GameSave, save_id)
            node = await uow.store.get(StoryNode, game_save.current_story_node_id)
            return await load_node_detail(uow, node)

        return await self.executor.execute(work)

    async def get_available_choices(self, save_id: int) -> List[ChoiceDto]:
        async def work(uow: UnitOfWork):
            game_save = await uow.validate_entity_exists(GameSave, save_id)
            choices = await uow.store.choices_for_node(game_save.current_story_node_id)
            return [dto_mapper.map_choice(c) for c in choices]

        return await self.executor.execute(work)

    # === 방문 기록 ===

    async def get_visited_nodes(self, save_id: int) -> List[int]:
        async def work(uow: UnitOfWork):
            game_save = await uow.validate_entity_exists(GameSave, save_id)
            return list(game_save.visited_node_ids or [])

        return await self.executor.execute(work)

    async def has_visited_node(self, save_id: int, node_id: int) -> bool:
        return node_id in await self.get_visited_nodes(save_id)

    # === 대사 진행 ===

    async def get_next_dialogue(self, save_id: int) -> Optional[DialogueDto]:
        """현재 대사를 반환하고 인덱스를 한 칸 진행, 다 보았으면 None"""
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_save(save_id)
            dialogues = await uow.store.dialogues_for_node(game_save.current_story_node_id)
            index = game_save.current_dialogue_index or 0
            if index >= len(dialogues):
                return None

            dialogue = dialogues[index]
            game_save.current_dialogue_index = index + 1
            await uow.store.update(game_save)
            character = None
            if dialogue.character_id is not None:
                character = await uow.store.find(Character, dialogue.character_id)
            return dto_mapper.map_dialogue(dialogue, character)

        return await self.executor.execute(work)

    async def skip_to_last_dialogue(self, save_id: int) -> Optional[DialogueDto]:
        """마지막 대사를 반환하고 현재 노드의 대사를 모두 본 상태로 표시"""
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_save(save_id)
            dialogues = await uow.store.dialogues_for_node(game_save.current_story_node_id)
            if not dialogues:
                return None

            last = dialogues[-1]
            game_save.current_dialogue_index = len(dialogues)
            await uow.store.update(game_save)
            character = None
            if last.character_id is not None:
                character = await uow.store.find(Character, last.character_id)
            return dto_mapper.map_dialogue(last, character)

        return await self.executor.execute(work)

    async def is_dialogue_complete(self, save_id: int) -> bool:
        async def work(uow: UnitOfWork):
            game_save = await uow.validate_entity_exists(GameSave, save_id)
            dialogues = await uow.store.dialogues_for_node(game_save.current_story_node_id)
            return (game_save.current_dialogue_index or 0) >= len(dialogues)

        return await self.executor.execute(work)

    # === 플레이어 캐릭터 ===

    async def get_player_state(self, player_character_id: int) -> PlayerCharacterDto:
        async def work(uow: UnitOfWork):
            character = await uow.validate_entity_exists(Character, player_character_id)
            player = await uow.store.player_extension(character.id)
            if player is None:
                raise NotFoundError("PlayerCharacter", player_character_id)
            return dto_mapper.map_player_character(character, player)

        return await self.executor.execute(work)

    async def modify_health(self, player_character_id: int, delta: int) -> PlayerCharacterDto:
        """체력 증감 (0 미만으로 내려가지 않음)"""
        async def work(uow: UnitOfWork):
            player = await uow.lock_player(player_character_id)
            character = await uow.store.get(Character, player.character_id)
            player.health = max(0, player.health + delta)
            await uow.store.update(player)
            return dto_mapper.map_player_character(character, player)

        return await self.executor.execute(work)

    # === 내부 ===

    async def _ensure_player(self, uow: UnitOfWork, user_id: int) -> PlayerCharacter:
        """사용자의 플레이어 캐릭터, 없으면 기본 플레이어 생성"""
        player = await uow.store.player_for_user(user_id)
        if player is not None:
            return player

        character = await uow.store.create(Character(
            name=self.settings.DEFAULT_PLAYER_NAME,
            description="",
        ))
        player = await uow.store.create(PlayerCharacter(
            character_id=character.id,
            user_id=user_id,
            health=self.settings.DEFAULT_PLAYER_HEALTH,
        ))
        logger.info(f"[game] created player character {character.id} for user {user_id}")
        return player

    async def _move_latest_save(self, user_id: int, node_id: int, action: str) -> GameStateDto:
        async def work(uow: UnitOfWork):
            game_save = await uow.lock_latest_save(user_id)
            await uow.validator.require_node(node_id)
            self._advance(game_save, node_id)
            await uow.store.update(game_save)
            logger.info(f"[game] {action}: save {game_save.id} now at node {node_id}")
            return dto_mapper.map_game_state(game_save)

        return await self.executor.execute(work)

    async def _apply_choice(self, uow: UnitOfWork, game_save: GameSave, choice: Choice) -> GameStateDto:
        target_id = await uow.validator.resolve_target(choice.id)
        from_node_id = game_save.current_story_node_id

        self._advance(game_save, target_id)
        game_save.last_choice_id = choice.id

        if choice.health_effect and game_save.player_character_id is not None:
            player = await uow.lock_player(game_save.player_character_id)
            player.health = max(0, player.health + choice.health_effect)
            await uow.store.update(player)

        await uow.store.update(game_save)
        logger.info(f"[game] save {game_save.id}: choice {choice.id} {from_node_id} -> {target_id}")
        return dto_mapper.map_game_state(game_save)

    @staticmethod
    def _advance(game_save: GameSave, node_id: int) -> None:
        """현재 노드를 방문 기록에 남기고 새 노드로 이동. 마지막 선택지 기록은 지운다"""
        current = game_save.current_story_node_id
        game_save.last_choice_id = None
        if current == node_id:
            return
        visited = list(game_save.visited_node_ids or [])
        if not visited or visited[-1] != current:
            visited.append(current)
        game_save.visited_node_ids = visited
        game_save.current_story_node_id = node_id
        game_save.current_dialogue_index = 0
