"""
DTO 매퍼 - 내부 엔티티를 전송용 스키마로 변환 (입출력 없음, 입력 변경 없음)

관계 컬렉션은 호출자가 미리 조회해서 넘긴다. 비동기 세션에서 지연 로딩이
일어나지 않도록 매퍼는 컬럼 속성만 읽는다.
"""

from typing import Iterable, Mapping, Optional

from storygame.models import StoryNode, Choice, Dialogue, Character, PlayerCharacter, GameSave
from storygame.schemas.story import (
    StoryNodeDto,
    StoryNodeDetailDto,
    ChoiceDto,
    DialogueDto,
    CharacterDto,
    PlayerCharacterDto,
)
from storygame.schemas.game import GameSaveDto, GameStateDto


def map_story_node(node: StoryNode) -> StoryNodeDto:
    return StoryNodeDto(
        id=node.id,
        title=node.title,
        description=node.description or "",
        background_url=node.background_url,
    )


def map_choice(choice: Choice) -> ChoiceDto:
    return ChoiceDto(
        id=choice.id,
        text=choice.text,
        story_node_id=choice.story_node_id,
        next_story_node_id=choice.next_story_node_id,
        health_effect=choice.health_effect,
        audio_url=choice.audio_url,
    )


def map_dialogue(dialogue: Dialogue, character: Optional[Character] = None) -> DialogueDto:
    """화자가 없거나 조회되지 않으면 화자 필드는 None"""
    return DialogueDto(
        id=dialogue.id,
        story_node_id=dialogue.story_node_id,
        text=dialogue.text,
        order=dialogue.order or 0,
        character_id=character.id if character is not None else dialogue.character_id,
        character_name=character.name if character is not None else None,
    )


def map_story_node_detail(
    node: StoryNode,
    dialogues: Iterable[Dialogue],
    choices: Iterable[Choice],
    characters: Optional[Mapping[int, Character]] = None,
) -> StoryNodeDetailDto:
    """노드 + 대사(order 순) + 선택지"""
    characters = characters or {}
    ordered = sorted(dialogues, key=lambda d: (d.order or 0, d.id))
    return StoryNodeDetailDto(
        id=node.id,
        title=node.title,
        description=node.description or "",
        background_url=node.background_url,
        background_music_url=node.background_music_url,
        ambient_sound_url=node.ambient_sound_url,
        dialogues=[map_dialogue(d, characters.get(d.character_id)) for d in ordered],
        choices=[map_choice(c) for c in choices],
    )


def map_character(character: Character, player: Optional[PlayerCharacter] = None) -> CharacterDto:
    """플레이어 확장이 있으면 플레이어 필드를 채운다"""
    dto = CharacterDto(
        id=character.id,
        name=character.name,
        description=character.description or "",
        image_url=character.image_url,
    )
    if player is not None and player.character_id == character.id:
        dto.is_player = True
        dto.health = player.health
        dto.user_id = player.user_id
    return dto


def map_player_character(character: Character, player: PlayerCharacter) -> PlayerCharacterDto:
    return PlayerCharacterDto(
        id=character.id,
        name=character.name,
        health=player.health,
        user_id=player.user_id,
    )


def map_game_save(game_save: GameSave) -> GameSaveDto:
    return GameSaveDto(
        id=game_save.id,
        user_id=game_save.user_id,
        player_character_id=game_save.player_character_id,
        save_name=game_save.save_name,
        current_story_node_id=game_save.current_story_node_id,
        created_at=game_save.created_at,
        updated_at=game_save.updated_at,
    )


def map_game_state(
    game_save: GameSave,
    node: Optional[StoryNode] = None,
    choices: Optional[Iterable[Choice]] = None,
) -> GameStateDto:
    return GameStateDto(
        save_id=game_save.id,
        player_character_id=game_save.player_character_id,
        current_story_node_id=game_save.current_story_node_id,
        story_node=map_story_node(node) if node is not None else None,
        choices=[map_choice(c) for c in choices] if choices is not None else None,
    )
