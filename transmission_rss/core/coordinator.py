import asyncio
from dataclasses import dataclass, field
from typing import Optional

from aiohttp import ClientSession, ClientTimeout
from loguru import logger

from ..config import Config, FeedSource
from ..database import SeenStore
from ..exceptions import RpcError, StoreError
from ..notification import Notifier
from ..rss import FeedClient, ItemResolver
from ..transmission import DownloadBackend, TransmissionClient
from .synchronizer import FeedSynchronizer


@dataclass
class FeedResult:
    source: FeedSource
    added: int = 0
    error: Optional[Exception] = None

    @property
    def succeed(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    results: list[FeedResult] = field(default_factory=list)
    reconciled: Optional[int] = None
    """对账时写入的指纹数，未对账时为 None"""

    @property
    def total_added(self) -> int:
        return sum(result.added for result in self.results)

    @property
    def failed(self) -> list[FeedResult]:
        return [result for result in self.results if not result.succeed]


class RunCoordinator:
    def __init__(
        self,
        config: Config,
        store: SeenStore,
        backend: DownloadBackend,
        feed_client: FeedClient,
        resolver: ItemResolver,
        notifier: Notifier,
    ):
        self.config = config
        self.store = store
        self.backend = backend
        self.feed_client = feed_client
        self.resolver = resolver
        self.notifier = notifier

    @classmethod
    def from_config(cls, config: Config, session: ClientSession, store: SeenStore) -> "RunCoordinator":
        network = config.network
        client = TransmissionClient(
            session,
            config.transmission.url,
            username=config.transmission.username,
            password=config.transmission.password,
        )
        return cls(
            config=config,
            store=store,
            backend=DownloadBackend(client, attempts=network.retry_attempts, delay=network.retry_delay),
            feed_client=FeedClient(session, attempts=network.retry_attempts, delay=network.retry_delay),
            resolver=ItemResolver(
                session,
                attempts=network.retry_attempts,
                delay=network.retry_delay,
                max_concurrent=network.max_concurrent_fetches,
                use_metainfo=config.transmission.use_metainfo,
            ),
            notifier=Notifier.from_config(config.notification, session),
        )

    async def reconcile(self) -> int:
        """
        用 Transmission 中现有的种子初始化数据库

        :raise RpcError: 无法获取种子列表
        :raise StoreError: 数据库写入失败
        """
        fingerprints = await self.backend.list_current()
        for fingerprint in fingerprints:
            await self.store.insert(fingerprint)
        await self.store.flush()
        await self.store.mark_initialized()
        logger.info(f"init db with {len(fingerprints)} items")
        return len(fingerprints)

    async def _run_feed(self, source: FeedSource) -> FeedResult:
        synchronizer = FeedSynchronizer(
            source,
            feed_client=self.feed_client,
            resolver=self.resolver,
            store=self.store,
            backend=self.backend,
            notifier=self.notifier,
        )
        try:
            return FeedResult(source, added=await synchronizer.run())
        except Exception as e:
            message = f"Failed to process {source.title} feed: {e}"
            logger.error(message)
            await self.notifier.notify_all(message)
            return FeedResult(source, error=e)

    async def run(self) -> RunReport:
        """
        执行一轮同步，单个订阅的失败不会影响其他订阅

        :raise RpcError: 首次运行时无法与 Transmission 对账
        :raise StoreError: 对账结果无法写入数据库
        """
        report = RunReport()

        if not self.store.recovered:
            try:
                report.reconciled = await self.reconcile()
            except (RpcError, StoreError) as e:
                message = f"Failed to initialize database from Transmission: {e}"
                logger.error(message)
                await self.notifier.notify_all(message)
                raise

        if not self.config.rss_list:
            logger.warning("No feeds configured")

        report.results = list(await asyncio.gather(*(self._run_feed(source) for source in self.config.rss_list)))
        return report


async def run_once(config: Config) -> RunReport:
    """
    打开数据库和 HTTP 会话，执行一轮同步
    """
    network = config.network
    async with ClientSession(
        timeout=ClientTimeout(total=network.timeout), headers={"User-Agent": network.user_agent}
    ) as session:
        async with SeenStore(config.persistence.path) as store:
            coordinator = RunCoordinator.from_config(config, session, store)
            return await coordinator.run()
