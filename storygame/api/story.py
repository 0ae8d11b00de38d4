"""
스토리 그래프 조회 API 엔드포인트
"""

from fastapi import APIRouter, Depends
from typing import List

from storygame.dependencies import get_game_service, get_story_service
from storygame.services.game_service import GameService
from storygame.services.story_service import StoryService
from storygame.schemas.story import StoryNodeDto, StoryNodeDetailDto, ChoiceDto, CharacterDto

router = APIRouter()


@router.get("/nodes", response_model=List[StoryNodeDto])
async def list_story_nodes(story_service: StoryService = Depends(get_story_service)):
    """스토리 노드 목록"""
    return await story_service.list_story_nodes()


@router.get("/nodes/{node_id}", response_model=StoryNodeDetailDto)
async def get_story_node(
    node_id: int,
    story_service: StoryService = Depends(get_story_service),
):
    """스토리 노드 상세"""
    return await story_service.get_story_node(node_id)


@router.get("/nodes/{node_id}/choices", response_model=List[ChoiceDto])
async def get_choices_for_node(
    node_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """노드의 선택지 (엔딩 노드면 빈 목록)"""
    return await game_service.get_choices_for_node(node_id)


@router.delete("/nodes/{node_id}")
async def delete_story_node(
    node_id: int,
    story_service: StoryService = Depends(get_story_service),
):
    """스토리 노드 삭제 (다른 노드나 세이브가 참조 중이면 409)"""
    deleted = await story_service.delete_story_node(node_id)
    return {"deleted": deleted is not None}


@router.get("/characters", response_model=List[CharacterDto])
async def list_characters(story_service: StoryService = Depends(get_story_service)):
    """캐릭터 목록"""
    return await story_service.list_characters()


@router.get("/characters/{character_id}", response_model=CharacterDto)
async def get_character(
    character_id: int,
    story_service: StoryService = Depends(get_story_service),
):
    """캐릭터 단일 조회"""
    return await story_service.get_character(character_id)
