import asyncio
from typing import Optional

import feedparser
from aiohttp import ClientError, ClientSession

from ..exceptions import FeedParseError, HTTPStatusError, NetworkError
from ._schema import TORRENT_MIME_TYPE, Enclosure, FeedItem


def _pick_enclosure(entry) -> Optional[Enclosure]:
    enclosures = [
        Enclosure(url=enc.get("href", ""), mime_type=enc.get("type", ""))
        for enc in entry.get("enclosures", [])
        if enc.get("href")
    ]
    if not enclosures:
        return None

    for enclosure in enclosures:
        if enclosure.mime_type == TORRENT_MIME_TYPE:
            return enclosure
    return enclosures[0]


def parse_rss_feed(rss_content: bytes | str) -> list[FeedItem]:
    """
    解析 RSS/Atom 内容，按文档顺序返回条目列表

    :param rss_content: RSS 内容的字节串或字符串
    :raise FeedParseError: 内容不是可识别的订阅文档
    """
    feed = feedparser.parse(rss_content)

    if not feed.entries and (feed.get("bozo") or not feed.get("version")):
        reason = feed.get("bozo_exception") or "not a syndication document"
        raise FeedParseError(f"Failed to parse feed: {reason}")

    return [
        FeedItem(
            title=entry.get("title", ""),  # type: ignore
            link=entry.get("link", ""),  # type: ignore
            enclosure=_pick_enclosure(entry),
        )
        for entry in feed.entries
    ]


def get_link(item: FeedItem) -> Optional[str]:
    """
    优先使用 MIME 类型为种子文件的 enclosure，其次是条目本身的链接
    """
    if item.enclosure and item.enclosure.mime_type == TORRENT_MIME_TYPE:
        return item.enclosure.url
    return item.link or None


async def fetch_web_content(session: ClientSession, link: str) -> bytes:
    """
    获取链接内容的字节串

    :raise NetworkError: 连接失败、超时、429 或 5xx，可以重试
    :raise HTTPStatusError: 其他非 200 响应
    """
    try:
        async with session.get(link) as response:
            if response.status == 429 or response.status >= 500:
                raise NetworkError(f"HTTP {response.status} from {link}")
            if response.status != 200:
                raise HTTPStatusError(link, response.status)
            return await response.read()
    except (ClientError, asyncio.TimeoutError) as e:
        raise NetworkError(f"Failed to fetch {link}: {e!r}") from e
