"""
애플리케이션 설정
"""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path
from dotenv import load_dotenv


"""env 로딩 우선순위
1) OS 환경변수
2) 프로젝트 루트의 .env (repo/.env)
"""

# .env 사전 로드 (OS 환경변수 우선, override=False)
_here = Path(__file__).resolve()
_repo_root_env = _here.parents[2] / ".env"  # repo/.env
if _repo_root_env.exists():
    load_dotenv(dotenv_path=str(_repo_root_env), override=False)


class Settings(BaseSettings):
    """애플리케이션 설정"""
    # 환경 설정
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # sqlite:// / postgresql:// 는 database.py 에서 비동기 드라이버 URL로 변환된다
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/storygame.db"

    # 게임 진행
    START_STORY_NODE_ID: int = 1
    DEFAULT_SAVE_NAME: str = "자동 저장"
    DEFAULT_PLAYER_NAME: str = "Ryan"
    DEFAULT_PLAYER_HEALTH: int = 100

    # 저장소 레벨 실패 시 트랜잭션 재시도 횟수 (초과하면 Conflict)
    TRANSACTION_RETRY_LIMIT: int = 1

    # 개발 환경에서 빈 DB에 데모 스토리 삽입
    SEED_DEMO_STORY: bool = True

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'


settings = Settings()


# 환경별 설정 검증
def validate_settings(config: Settings = settings):
    """설정 검증"""
    if config.TRANSACTION_RETRY_LIMIT < 0:
        raise ValueError("TRANSACTION_RETRY_LIMIT 는 0 이상이어야 합니다.")

    if config.ENVIRONMENT == "production":
        if config.DATABASE_URL.startswith("sqlite"):
            raise ValueError("프로덕션 환경에서는 SQLite 를 사용할 수 없습니다.")
        if config.DEBUG:
            raise ValueError("프로덕션 환경에서는 DEBUG 를 꺼야 합니다.")

    return True


# 설정 검증 실행
validate_settings()
