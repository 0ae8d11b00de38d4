"""
비주얼 노벨 스토리 엔진 - FastAPI 메인 애플리케이션
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from contextlib import asynccontextmanager
from typing import Optional
import logging

from storygame.core.config import Settings, settings as default_settings
from storygame.core.database import (
    engine as default_engine,
    AsyncSessionLocal,
    build_session_factory,
    create_tables,
    check_db_connection,
)
from storygame.core.exceptions import (
    StoryGameError,
    NotFoundError,
    InvalidChoiceError,
    InvalidNodeError,
    ConflictError,
    ValidationFailureError,
)
from storygame.core.seed import seed_demo_story
from storygame.services.transaction import TransactionalExecutor

from storygame.api.game import router as game_router
from storygame.api.story import router as story_router

# 로깅 설정
logging.basicConfig(level=default_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 시작/종료 시 실행되는 이벤트"""
    logger.info("🚀 스토리 엔진 시작")
    config: Settings = app.state.settings

    # 데이터베이스 테이블 생성 (개발용)
    if config.ENVIRONMENT == "development":
        await create_tables(app.state.engine)
        logger.info("📊 데이터베이스 테이블 생성 완료")
        if config.SEED_DEMO_STORY:
            await seed_demo_story(app.state.session_factory)

    yield

    logger.info("👋 스토리 엔진 종료")


# 도메인 예외 → HTTP 응답
_NOT_AVAILABLE = "그 행동은 지금 할 수 없습니다."


async def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


async def _invalid_transition_handler(request: Request, exc: StoryGameError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": _NOT_AVAILABLE, "reason": exc.message},
    )


async def _conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": exc.message, "retry": True},
    )


async def _validation_handler(request: Request, exc: ValidationFailureError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": exc.message})


def create_app(
    config: Optional[Settings] = None,
    bind: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """앱 생성 - 엔진/세션 팩토리는 테스트에서 주입할 수 있다"""
    config = config or default_settings
    bind = bind or default_engine
    if session_factory is None:
        session_factory = AsyncSessionLocal if bind is default_engine else build_session_factory(bind)

    app = FastAPI(
        title="Story Engine API",
        description="분기형 비주얼 노벨 스토리 그래프 이동 및 게임 세이브 API",
        version="0.1.0",
        docs_url="/docs" if config.ENVIRONMENT == "development" else None,
        redoc_url="/redoc" if config.ENVIRONMENT == "development" else None,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.engine = bind
    app.state.session_factory = session_factory
    app.state.executor = TransactionalExecutor(session_factory, retry_limit=config.TRANSACTION_RETRY_LIMIT)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotFoundError, _not_found_handler)
    app.add_exception_handler(InvalidChoiceError, _invalid_transition_handler)
    app.add_exception_handler(InvalidNodeError, _invalid_transition_handler)
    app.add_exception_handler(ConflictError, _conflict_handler)
    app.add_exception_handler(ValidationFailureError, _validation_handler)

    # 라우터 등록
    app.include_router(game_router, prefix="/game", tags=["🎮 게임 진행"])
    app.include_router(story_router, prefix="/story", tags=["📚 스토리"])

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return {
            "message": "Story Engine API",
            "version": "0.1.0",
            "docs": "/docs",
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        """헬스 체크 엔드포인트"""
        database_ok = await check_db_connection(app.state.engine)
        return {
            "status": "healthy" if database_ok else "degraded",
            "environment": config.ENVIRONMENT,
            "database": "connected" if database_ok else "unavailable",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "storygame.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True if default_settings.ENVIRONMENT == "development" else False
    )
