from aiohttp import ClientSession
from loguru import logger

from ..exceptions import FetchError, HTTPStatusError, NetworkError
from ..utils.retry import DEFAULT_ATTEMPTS, DEFAULT_DELAY, retry_async
from ._parser import fetch_web_content, parse_rss_feed
from ._schema import FeedItem


class FeedClient:
    def __init__(self, session: ClientSession, attempts: int = DEFAULT_ATTEMPTS, delay: float = DEFAULT_DELAY):
        self.session = session
        self.attempts = attempts
        self.delay = delay

    async def fetch(self, url: str) -> list[FeedItem]:
        """
        获取并解析订阅，网络错误会按固定次数重试，解析错误不会

        :raise FetchError: 获取或解析失败
        """
        logger.debug(f"Fetching feed: {url}")
        try:
            content = await retry_async(
                fetch_web_content,
                self.session,
                url,
                attempts=self.attempts,
                delay=self.delay,
                description=f"Fetch feed {url}",
            )
        except (NetworkError, HTTPStatusError) as e:
            raise FetchError(f"Failed to fetch feed {url}: {e}") from e

        items = parse_rss_feed(content)
        logger.debug(f"Fetched {len(items)} entries from {url}")
        return items
