"""
게임 진행 관련 Pydantic 스키마 - API 요청/응답 모델
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from .story import StoryNodeDto, ChoiceDto


class StartGameRequest(BaseModel):
    """새 게임 시작 요청 (story_node_id 생략 시 시작 노드)"""
    user_id: int = Field(..., gt=0)
    story_node_id: Optional[int] = Field(None, gt=0)
    save_name: Optional[str] = Field(None, min_length=1, max_length=100)


class MakeChoiceRequest(BaseModel):
    """선택지 선택 요청"""
    save_id: int = Field(..., gt=0)
    choice_id: int = Field(..., gt=0)


class SaveProgressRequest(BaseModel):
    """진행 상황 저장 요청"""
    user_id: int = Field(..., gt=0)
    current_story_node_id: int = Field(..., gt=0)


class MoveToNextNodeRequest(BaseModel):
    """다음 노드 이동 요청"""
    user_id: int = Field(..., gt=0)
    current_story_node_id: int = Field(..., gt=0)


class MoveToPreviousNodeRequest(BaseModel):
    """이전 노드 이동 요청 - 이전 노드는 호출자가 지정"""
    user_id: int = Field(..., gt=0)
    previous_story_node_id: int = Field(..., gt=0)


class HealthChangeRequest(BaseModel):
    """체력 증감 요청 (음수는 피해)"""
    delta: int


class GameSaveDto(BaseModel):
    """게임 세이브 응답"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    player_character_id: Optional[int] = None
    save_name: str
    current_story_node_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GameStateDto(BaseModel):
    """게임 상태 응답 - 요청 시 현재 노드와 선택지를 포함"""
    save_id: int
    player_character_id: Optional[int] = None
    current_story_node_id: int
    story_node: Optional[StoryNodeDto] = None
    choices: Optional[List[ChoiceDto]] = None


class VisitedNodesResponse(BaseModel):
    """방문한 노드 목록"""
    save_id: int
    visited_node_ids: List[int]


class DialogueCompleteResponse(BaseModel):
    """현재 노드의 대사를 모두 보았는지 여부"""
    save_id: int
    complete: bool
