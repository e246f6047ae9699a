import asyncio
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy.exc import DatabaseError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..exceptions import StoreError
from .crud import SeenTorrentORM, StoreMetaORM
from .orm_models import Model

INITIALIZED_KEY = "initialized"


class SeenStore:
    """
    已见种子指纹的持久化集合

    所有操作共用一个会话，由内部的锁串行化，可以在多个任务中并发调用。
    任一操作失败回滚时，其他任务尚未提交的指纹会被重新加入会话，不会随之丢失。
    `insert` 的结果在 `flush` 之前对 `contains` 可见，`flush` 之后才写入磁盘。
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.recovered: bool = False
        """是否从已有且完成初始化的数据库中恢复"""

        self._engine: Optional[AsyncEngine] = None
        self._session: Optional[AsyncSession] = None
        self._lock = asyncio.Lock()
        self._pending: set[str] = set()

    async def __aenter__(self) -> "SeenStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _connect(self) -> None:
        self._engine = create_async_engine(f"sqlite+aiosqlite:///{self.path}")
        async with self._engine.begin() as conn:
            await conn.run_sync(Model.metadata.create_all)
        self._session = async_sessionmaker(self._engine, expire_on_commit=False)()

    async def _dispose(self) -> None:
        self._pending.clear()
        if self._session is not None:
            await self._session.close()
            self._session = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def open(self) -> bool:
        """
        打开数据库

        数据库文件损坏时会被重命名为 `*.corrupt` 并重新创建

        :return: 是否恢复了已有状态，为 False 时调用方应当与 Transmission 对账
        """
        existed = self.path.exists()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                await self._connect()
                self.recovered = existed and await self._is_initialized()
            except DatabaseError as e:
                await self._dispose()
                corrupt_path = self.path.with_name(self.path.name + ".corrupt")
                logger.warning(f"Database {self.path} is corrupted ({e}), moved to {corrupt_path}")
                self.path.replace(corrupt_path)
                await self._connect()
                self.recovered = False
        except (SQLAlchemyError, OSError) as e:
            await self._dispose()
            raise StoreError(f"Failed to open database {self.path}: {e}") from e

        if self.recovered:
            logger.info("Database recovered")
        else:
            logger.info(f"Database {self.path} created")
        return self.recovered

    async def close(self) -> None:
        async with self._lock:
            await self._dispose()

    async def _rollback(self, session: AsyncSession) -> None:
        await session.rollback()
        SeenTorrentORM.restore(session, self._pending)

    def _require_session(self) -> AsyncSession:
        if self._session is None:
            raise StoreError("Store is not open")
        return self._session

    async def _is_initialized(self) -> bool:
        return await StoreMetaORM.get(self._require_session(), INITIALIZED_KEY) == "1"

    async def contains(self, fingerprint: str) -> bool:
        async with self._lock:
            session = self._require_session()
            try:
                return await SeenTorrentORM.exists(session, fingerprint.lower())
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to query {fingerprint}: {e}") from e

    async def insert(self, fingerprint: str) -> None:
        async with self._lock:
            session = self._require_session()
            try:
                fingerprint = fingerprint.lower()
                if await SeenTorrentORM.insert(session, fingerprint):
                    self._pending.add(fingerprint)
            except SQLAlchemyError as e:
                await self._rollback(session)
                raise StoreError(f"Failed to insert {fingerprint}: {e}") from e

    async def flush(self) -> None:
        """
        将未提交的修改写入磁盘
        """
        async with self._lock:
            session = self._require_session()
            try:
                await session.commit()
                self._pending.clear()
            except SQLAlchemyError as e:
                await self._rollback(session)
                raise StoreError(f"Failed to persist database {self.path}: {e}") from e

    async def mark_initialized(self) -> None:
        """
        记录对账已完成，之后打开数据库时视为恢复
        """
        async with self._lock:
            session = self._require_session()
            try:
                await StoreMetaORM.set(session, INITIALIZED_KEY, "1")
                await session.commit()
                self._pending.clear()
            except SQLAlchemyError as e:
                await self._rollback(session)
                raise StoreError(f"Failed to mark database {self.path} initialized: {e}") from e
        self.recovered = True

    async def count(self) -> int:
        async with self._lock:
            session = self._require_session()
            try:
                return await SeenTorrentORM.count(session)
            except SQLAlchemyError as e:
                raise StoreError(f"Failed to count records: {e}") from e
