"""
데이터베이스 설정 및 연결
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.engine import make_url
from sqlalchemy import MetaData, event, types
import logging
import os
import ssl
from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode

from storygame.core.config import settings

logger = logging.getLogger(__name__)


# SQLite와 PostgreSQL 모두 지원하는 JSON 타입
class JSON(types.TypeDecorator):
    """Platform-independent JSON type."""
    impl = types.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(types.JSON())


# Base 클래스 정의
class Base(DeclarativeBase):
    """SQLAlchemy Base 클래스"""
    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


def normalize_database_url(url: str) -> str:
    """동기 드라이버 URL을 비동기 드라이버 URL로 변환"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _postgres_url_and_connect_args(raw_url: str) -> tuple[str, dict]:
    # sslmode 파라미터는 asyncpg에서 직접 지원하지 않음.
    # → sslmode/ssl을 URL에서 제거하고 connect_args로 SSLContext를 전달한다.
    parts = urlsplit(raw_url)
    query_items = parse_qsl(parts.query, keep_blank_values=True)
    sslmode = next((v for (k, v) in query_items if k.lower() == "sslmode"), None)
    query_filtered = [(k, v) for (k, v) in query_items if k.lower() not in ("sslmode", "ssl")]
    engine_url = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query_filtered), parts.fragment))

    connect_args = {}
    if sslmode is not None:
        v = str(sslmode).strip().lower()
        # libpq sslmode semantics:
        # - require/prefer: encrypt but DO NOT verify server cert
        # - verify-ca/verify-full: verify
        if v in ("require", "prefer", "verify-ca", "verify-full"):
            ctx = ssl.create_default_context()
            if v in ("require", "prefer"):
                ctx.check_hostname = False
                ctx.verify_mode = ssl.CERT_NONE
            connect_args["ssl"] = ctx
    return engine_url, connect_args


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite는 연결마다 외래키 검사를 켜야 한다
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """SQLAlchemy 비동기 엔진 생성"""
    url = normalize_database_url(database_url)

    if url.startswith("sqlite"):
        database = make_url(url).database
        if database and database != ":memory:":
            directory = os.path.dirname(os.path.abspath(database))
            os.makedirs(directory, exist_ok=True)
        engine = create_async_engine(url, echo=echo, future=True)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    engine_url, connect_args = _postgres_url_and_connect_args(url)
    return create_async_engine(
        engine_url,
        echo=echo,
        future=True,
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args=connect_args,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """세션 팩토리 생성"""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = build_session_factory(engine)


async def create_tables(bind: AsyncEngine) -> None:
    """모델 테이블 생성 (개발/테스트용)"""
    # 모든 모델을 메타데이터에 등록
    import storygame.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# 데이터베이스 연결 테스트
async def check_db_connection(bind: AsyncEngine) -> bool:
    """데이터베이스 연결 테스트"""
    try:
        async with bind.connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logger.error(f"데이터베이스 연결 실패: {e}")
        return False
