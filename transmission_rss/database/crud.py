from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .orm_models import SeenTorrent, StoreMeta


class SeenTorrentORM:
    @staticmethod
    async def exists(session: AsyncSession, fingerprint: str) -> bool:
        result = await session.execute(
            select(SeenTorrent.fingerprint).where(SeenTorrent.fingerprint == fingerprint).limit(1)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def insert(session: AsyncSession, fingerprint: str) -> bool:
        """
        添加指纹，已存在时什么也不做

        :return: 是否新增了记录
        """
        if await SeenTorrentORM.exists(session, fingerprint):
            return False

        session.add(SeenTorrent(fingerprint=fingerprint))
        return True

    @staticmethod
    def restore(session: AsyncSession, fingerprints: Iterable[str]):
        """
        回滚后重新加入尚未提交的指纹，调用方保证它们不在数据库中
        """
        session.add_all(SeenTorrent(fingerprint=fingerprint) for fingerprint in fingerprints)

    @staticmethod
    async def count(session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(SeenTorrent))
        return result.scalar() or 0


class StoreMetaORM:
    @staticmethod
    async def get(session: AsyncSession, key: str) -> Optional[str]:
        result = await session.execute(select(StoreMeta.value).where(StoreMeta.key == key).limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    async def set(session: AsyncSession, key: str, value: str):
        meta = await session.get(StoreMeta, key)
        if meta is not None:
            meta.value = value
            return

        session.add(StoreMeta(key=key, value=value))
