"""
트랜잭션 실행기 - 작업 단위를 하나의 트랜잭션으로 실행 (전부 커밋 또는 전부 롤백)
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError
from sqlalchemy.orm.exc import StaleDataError
from contextlib import AsyncExitStack
from typing import Awaitable, Callable, Optional, Set, Tuple, Type, TypeVar
import asyncio
import logging
import weakref

from storygame.core.exceptions import ConflictError, NotFoundError, StoryGameError
from storygame.models import GameSave, PlayerCharacter
from storygame.services.graph_store import GraphStore
from storygame.services.graph_validator import GraphValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 저장소 레벨 실패: 같은 작업을 새 세션으로 재시도한 뒤 Conflict 로 전환
RETRYABLE_ERRORS = (IntegrityError, OperationalError, StaleDataError)


class UnitOfWork:
    """한 트랜잭션 범위에서 사용하는 세션/저장소/검증기 묶음"""

    def __init__(self, session: AsyncSession, executor: "TransactionalExecutor"):
        self.session = session
        self.store = GraphStore(session)
        self.validator = GraphValidator(self.store)
        self._executor = executor
        self._locks = AsyncExitStack()
        self._held: Set[Tuple[str, int]] = set()

    async def validate_entity_exists(self, model: Type[T], entity_id) -> T:
        """쓰기 전에 존재 여부 확인, 없으면 NotFoundError 로 트랜잭션 중단"""
        entity = await self.store.find(model, entity_id)
        if entity is None:
            logger.warning(f"[tx] {model.__name__} with id {entity_id} not found")
            raise NotFoundError(model.__name__, entity_id)
        return entity

    async def _acquire(self, key: Tuple[str, int]) -> None:
        # 같은 작업 단위 안에서는 재진입 허용
        if key not in self._held:
            await self._locks.enter_async_context(self._executor.lock_for(key))
            self._held.add(key)

    async def lock_save(self, save_id: int) -> GameSave:
        """세이브 단위 배타 구간 진입 후 커밋된 최신 행을 다시 읽는다"""
        await self._acquire(("save", save_id))
        return await self.store.lock_save(save_id)

    async def lock_player(self, character_id: int) -> PlayerCharacter:
        """플레이어 단위 배타 구간 진입 후 체력을 최신 값으로 다시 읽는다

        세이브 잠금과 함께 잡을 때는 항상 세이브 잠금 다음에 잡는다.
        """
        await self._acquire(("player", character_id))
        return await self.store.lock_player(character_id)

    async def lock_latest_save(self, user_id: int) -> GameSave:
        latest = await self.store.latest_save_for_user(user_id)
        if latest is None:
            raise NotFoundError("GameSave for user", user_id)
        return await self.lock_save(latest.id)

    async def release(self) -> None:
        await self._locks.aclose()
        self._held.clear()


class TransactionalExecutor:
    """작업 단위 실행기

    - 작업 안의 모든 쓰기는 하나의 커밋으로 반영되거나 전혀 반영되지 않는다
    - 도메인 예외는 그대로 전파된다 (재시도 없음)
    - 저장소 레벨 실패는 retry_limit 만큼 재시도 후 ConflictError 로 전파된다
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], retry_limit: int = 1):
        self.session_factory = session_factory
        self.retry_limit = retry_limit
        # 보유 중인 잠금만 유지되도록 약한 참조로 보관
        self._locks: "weakref.WeakValueDictionary[Tuple[str, int], asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, key: Tuple[str, int]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def save_lock(self, save_id: int) -> asyncio.Lock:
        return self.lock_for(("save", save_id))

    async def execute(self, operation: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        """operation(uow) 를 하나의 트랜잭션 안에서 실행"""
        attempts = self.retry_limit + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                return await self._run_once(operation)
            except StoryGameError:
                raise
            except NoResultFound as e:
                raise NotFoundError("Entity") from e
            except RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < attempts:
                    logger.warning(
                        f"[tx] storage failure, retrying ({attempt}/{self.retry_limit}): {type(e).__name__}: {e}"
                    )
                    continue

        logger.error(f"[tx] giving up after {attempts} attempt(s): {last_error}")
        raise ConflictError("동시에 변경된 데이터가 있어 요청을 완료하지 못했습니다. 다시 시도해 주세요.") from last_error

    async def _run_once(self, operation: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        async with self.session_factory() as session:
            uow = UnitOfWork(session, self)
            try:
                # 블록을 벗어날 때 커밋, 예외(취소 포함) 시 롤백
                async with session.begin():
                    return await operation(uow)
            except BaseException as e:
                logger.info(f"[tx] rolled back: {type(e).__name__}")
                raise
            finally:
                await uow.release()
