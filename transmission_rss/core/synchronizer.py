import asyncio
from typing import Optional, Protocol, Sequence

from loguru import logger

from ..config import FeedSource
from ..exceptions import ResolveError
from ..rss import FeedItem, ResolvedItem, get_link
from ..transmission import Added, Duplicate, SubmissionOutcome


class SupportsFetch(Protocol):
    async def fetch(self, url: str) -> list[FeedItem]: ...


class SupportsResolve(Protocol):
    async def resolve(self, item: FeedItem, link: Optional[str] = None) -> ResolvedItem: ...


class SupportsSeenSet(Protocol):
    async def contains(self, fingerprint: str) -> bool: ...

    async def insert(self, fingerprint: str) -> None: ...

    async def flush(self) -> None: ...


class SupportsSubmit(Protocol):
    async def submit(self, resource: str, download_dir: str, metainfo: bool = False) -> SubmissionOutcome: ...


class SupportsNotify(Protocol):
    async def notify_all(self, message: str) -> int: ...


def matches_filters(title: str, filters: Sequence[str]) -> bool:
    """
    没有过滤词时全部接受，否则标题需要包含至少一个过滤词（区分大小写）
    """
    if not filters:
        return True
    return any(keyword in title for keyword in filters)


class FeedSynchronizer:
    """
    处理一个订阅：获取 -> 并发解析、去重、过滤 -> 逐个提交 -> 持久化
    """

    def __init__(
        self,
        source: FeedSource,
        feed_client: SupportsFetch,
        resolver: SupportsResolve,
        store: SupportsSeenSet,
        backend: SupportsSubmit,
        notifier: SupportsNotify,
    ):
        self.source = source
        self.feed_client = feed_client
        self.resolver = resolver
        self.store = store
        self.backend = backend
        self.notifier = notifier

    async def run(self) -> int:
        """
        :return: 本轮新添加的种子数
        :raise FetchError: 订阅获取失败
        :raise StoreError: 数据库读写失败
        """
        title = self.source.title
        logger.info(f"==> Processing [{title}]")

        items = await self.feed_client.fetch(self.source.url)

        results = await asyncio.gather(*(self._resolve_and_filter(item) for item in items), return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        accepted: list[ResolvedItem] = []
        fingerprints: set[str] = set()
        for result in results:
            if result is None or result.fingerprint in fingerprints:  # type: ignore[union-attr]
                continue
            fingerprints.add(result.fingerprint)  # type: ignore[union-attr]
            accepted.append(result)  # type: ignore[arg-type]

        logger.info(f"[{title}] {len(items)} torrents processed, {len(accepted)} to submit")

        count = 0
        for item in accepted:
            if await self._submit(item):
                count += 1

        await self.store.flush()
        logger.info(f"[{title}] {count} torrents added")
        return count

    async def _resolve_and_filter(self, item: FeedItem) -> Optional[ResolvedItem]:
        link = get_link(item)
        if not link:
            logger.warning(f"[{self.source.title}] Skipping '{item.title}': no torrent enclosure or link")
            return None

        try:
            resolved = await self.resolver.resolve(item, link)
        except ResolveError as e:
            logger.warning(f"Failed to process item '{item.title}': {e}")
            return None

        if await self.store.contains(resolved.fingerprint):
            return None

        if not matches_filters(resolved.title, self.source.filters):
            logger.debug(f"Skipping {resolved.title} as it doesn't match any filter")
            return None

        return resolved

    async def _submit(self, item: ResolvedItem) -> bool:
        # 其他订阅可能在本订阅解析期间添加了同一个种子
        if await self.store.contains(item.fingerprint):
            logger.debug(f"{item.fingerprint} was added by another feed, skipping {item.title}")
            return False

        outcome = await self.backend.submit(item.resource, self.source.download_dir, metainfo=item.is_metainfo)

        if isinstance(outcome, Added):
            await self._remember(item, outcome.fingerprint)
            await self.notifier.notify_all(f"Downloading: {item.title}")
            return True

        if isinstance(outcome, Duplicate):
            logger.warning(f"Torrent already exists: {outcome.fingerprint or item.fingerprint}")
            await self._remember(item, outcome.fingerprint)
            return False

        logger.warning(f"Failed to add torrent {item.title}: {outcome.reason}")
        return False

    async def _remember(self, item: ResolvedItem, backend_fingerprint: str) -> None:
        await self.store.insert(item.fingerprint)
        if backend_fingerprint and backend_fingerprint != item.fingerprint:
            await self.store.insert(backend_fingerprint)
