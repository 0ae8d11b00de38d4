"""
스토리 그래프 관련 Pydantic 스키마 (전송용 DTO)
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class StoryNodeDto(BaseModel):
    """스토리 노드 DTO - 선택지/대사는 별도로 조회"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    background_url: Optional[str] = None


class ChoiceDto(BaseModel):
    """선택지 DTO"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    story_node_id: int
    next_story_node_id: int
    health_effect: Optional[int] = None
    audio_url: Optional[str] = None


class DialogueDto(BaseModel):
    """대사 DTO - 화자가 없으면 character_id/character_name 은 None"""
    id: int
    story_node_id: int
    text: str
    order: int = 0
    character_id: Optional[int] = None
    character_name: Optional[str] = None


class StoryNodeDetailDto(StoryNodeDto):
    """대사와 선택지를 포함한 노드 상세"""
    background_music_url: Optional[str] = None
    ambient_sound_url: Optional[str] = None
    dialogues: List[DialogueDto] = Field(default_factory=list)
    choices: List[ChoiceDto] = Field(default_factory=list)


class PlayerCharacterDto(BaseModel):
    """플레이어 캐릭터 상태"""
    id: int
    name: str
    health: int
    user_id: int


class CharacterDto(BaseModel):
    """캐릭터 DTO - 플레이어 확장이 있을 때만 is_player/health/user_id 채움"""
    id: int
    name: str
    description: str = ""
    image_url: Optional[str] = None
    is_player: bool = False
    health: Optional[int] = None
    user_id: Optional[int] = None
