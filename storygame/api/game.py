"""
게임 진행 API 엔드포인트
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional

from storygame.dependencies import get_game_service
from storygame.services.game_service import GameService
from storygame.schemas.game import (
    StartGameRequest,
    MakeChoiceRequest,
    SaveProgressRequest,
    MoveToNextNodeRequest,
    MoveToPreviousNodeRequest,
    HealthChangeRequest,
    GameSaveDto,
    GameStateDto,
    VisitedNodesResponse,
    DialogueCompleteResponse,
)
from storygame.schemas.story import ChoiceDto, DialogueDto, PlayerCharacterDto, StoryNodeDetailDto

router = APIRouter()


@router.post("/start", response_model=GameSaveDto, status_code=status.HTTP_201_CREATED)
async def start_game(
    request: StartGameRequest,
    game_service: GameService = Depends(get_game_service),
):
    """새 게임 시작"""
    return await game_service.start_game(request.user_id, request.story_node_id, request.save_name)


@router.get("/state/{user_id}", response_model=GameStateDto)
async def get_game_state(
    user_id: int,
    include_node: bool = Query(False),
    game_service: GameService = Depends(get_game_service),
):
    """사용자의 최근 세이브 상태"""
    return await game_service.get_game_state(user_id, include_node=include_node)


@router.get("/users/{user_id}/saves", response_model=List[GameSaveDto])
async def list_game_saves(
    user_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """사용자의 세이브 목록"""
    return await game_service.list_game_saves(user_id)


@router.get("/saves/{save_id}", response_model=GameSaveDto)
async def get_game_save(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """세이브 단일 조회"""
    return await game_service.get_game_save(save_id)


@router.delete("/saves/{save_id}")
async def delete_game_save(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """세이브 삭제 (없는 세이브는 no-op)"""
    deleted = await game_service.delete_game_save(save_id)
    return {"deleted": deleted is not None}


@router.post("/choice", response_model=GameStateDto)
async def make_choice(
    request: MakeChoiceRequest,
    game_service: GameService = Depends(get_game_service),
):
    """선택지 선택"""
    return await game_service.make_choice(request.save_id, request.choice_id)


@router.post("/save", response_model=GameStateDto)
async def save_progress(
    request: SaveProgressRequest,
    game_service: GameService = Depends(get_game_service),
):
    """진행 상황 저장"""
    return await game_service.save_progress(request.user_id, request.current_story_node_id)


@router.post("/next", response_model=GameStateDto)
async def move_to_next_node(
    request: MoveToNextNodeRequest,
    game_service: GameService = Depends(get_game_service),
):
    """다음 노드로 이동"""
    return await game_service.move_to_next_node(request.user_id, request.current_story_node_id)


@router.post("/previous", response_model=GameStateDto)
async def move_to_previous_node(
    request: MoveToPreviousNodeRequest,
    game_service: GameService = Depends(get_game_service),
):
    """이전 노드로 이동"""
    return await game_service.move_to_previous_node(request.user_id, request.previous_story_node_id)


@router.post("/saves/{save_id}/forward", response_model=Optional[GameStateDto])
async def go_forward(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """첫 번째 선택지로 진행 (엔딩이면 null)"""
    return await game_service.go_forward(save_id)


@router.post("/saves/{save_id}/back", response_model=Optional[GameStateDto])
async def go_back(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """마지막 선택 이전 노드로 되돌아가기 (되돌아갈 곳이 없으면 null)"""
    return await game_service.go_back(save_id)


@router.get("/saves/{save_id}/node", response_model=StoryNodeDetailDto)
async def get_current_node(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """현재 노드 상세 (대사, 선택지 포함)"""
    return await game_service.get_current_node(save_id)


@router.get("/saves/{save_id}/choices", response_model=List[ChoiceDto])
async def get_available_choices(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """현재 노드에서 고를 수 있는 선택지"""
    return await game_service.get_available_choices(save_id)


@router.get("/saves/{save_id}/history", response_model=VisitedNodesResponse)
async def get_visited_nodes(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """방문한 노드 목록"""
    visited = await game_service.get_visited_nodes(save_id)
    return VisitedNodesResponse(save_id=save_id, visited_node_ids=visited)


@router.post("/saves/{save_id}/dialogue/next")
async def get_next_dialogue(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """다음 대사 (모두 보았으면 dialogue 가 null)"""
    dialogue: Optional[DialogueDto] = await game_service.get_next_dialogue(save_id)
    return {"dialogue": dialogue}


@router.post("/saves/{save_id}/dialogue/skip")
async def skip_to_last_dialogue(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """마지막 대사로 건너뛰기"""
    dialogue: Optional[DialogueDto] = await game_service.skip_to_last_dialogue(save_id)
    return {"dialogue": dialogue}


@router.get("/saves/{save_id}/dialogue/complete", response_model=DialogueCompleteResponse)
async def is_dialogue_complete(
    save_id: int,
    game_service: GameService = Depends(get_game_service),
):
    complete = await game_service.is_dialogue_complete(save_id)
    return DialogueCompleteResponse(save_id=save_id, complete=complete)


@router.get("/players/{player_character_id}", response_model=PlayerCharacterDto)
async def get_player_state(
    player_character_id: int,
    game_service: GameService = Depends(get_game_service),
):
    """플레이어 캐릭터 상태"""
    return await game_service.get_player_state(player_character_id)


@router.post("/players/{player_character_id}/health", response_model=PlayerCharacterDto)
async def modify_health(
    player_character_id: int,
    request: HealthChangeRequest,
    game_service: GameService = Depends(get_game_service),
):
    """체력 증감"""
    if request.delta == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="체력 변화량은 0이 될 수 없습니다."
        )
    return await game_service.modify_health(player_character_id, request.delta)
