from fastapi import Depends, Request

from storygame.services.transaction import TransactionalExecutor
from storygame.services.game_service import GameService
from storygame.services.story_service import StoryService

# 의존성 함수 모음. 실행기는 앱 생성 시 app.state 에 한 번 만들어 두고
# (세이브 잠금 레지스트리 공유) 서비스는 요청마다 주입받는다.


def get_executor(request: Request) -> TransactionalExecutor:
    return request.app.state.executor


def get_game_service(
    request: Request,
    executor: TransactionalExecutor = Depends(get_executor),
) -> GameService:
    return GameService(executor, request.app.state.settings)


def get_story_service(executor: TransactionalExecutor = Depends(get_executor)) -> StoryService:
    return StoryService(executor)


__all__ = ["get_executor", "get_game_service", "get_story_service"]
