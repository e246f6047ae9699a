"""
Fakes for the pipeline collaborators, kept in memory so tests never touch the network.
"""

import hashlib
from typing import Optional

from transmission_rss.config import FeedSource
from transmission_rss.exceptions import FetchError, ResolveError, StoreError
from transmission_rss.rss import Enclosure, FeedItem, ResolvedItem, parse_magnet_hash
from transmission_rss.transmission import Added, Duplicate, Failed, SubmissionOutcome


def fingerprint(seed: str) -> str:
    return hashlib.sha1(seed.encode()).hexdigest()


def magnet(fp: str) -> str:
    return f"magnet:?xt=urn:btih:{fp}"


def _bencode(value) -> bytes:
    if isinstance(value, int):
        return b"i%de" % value
    if isinstance(value, str):
        value = value.encode()
    if isinstance(value, bytes):
        return b"%d:%s" % (len(value), value)
    if isinstance(value, list):
        return b"l" + b"".join(_bencode(v) for v in value) + b"e"
    if isinstance(value, dict):
        items = sorted((k.encode() if isinstance(k, str) else k, v) for k, v in value.items())
        return b"d" + b"".join(_bencode(k) + _bencode(v) for k, v in items) + b"e"
    raise TypeError(type(value))


def make_torrent(name: str = "file.txt", length: int = 12, piece_length: int = 16384, **extra) -> tuple[bytes, str]:
    """
    :return: (.torrent bytes, expected info hash)
    """
    info = {
        "length": length,
        "name": name,
        "piece length": piece_length,
        "pieces": hashlib.sha1(name.encode()).digest(),
        **extra,
    }
    data = _bencode({"announce": "http://tracker.example.org/announce", "info": info})
    return data, hashlib.sha1(_bencode(info)).hexdigest()


def make_source(title: str = "Show", filters: Optional[list[str]] = None, url: str = "") -> FeedSource:
    return FeedSource(
        title=title,
        url=url or f"https://feeds.example.org/{title}.xml",
        filters=filters or [],
        download_dir=f"/downloads/{title}",
    )


def torrent_item(title: str, link: str, mime_type: str = "application/x-bittorrent") -> FeedItem:
    return FeedItem(title=title, link=f"{link}.html", enclosure=Enclosure(url=link, mime_type=mime_type))


class FakeStore:
    def __init__(self, fingerprints=(), recovered: bool = True):
        self.fingerprints: set[str] = set(fingerprints)
        self.recovered = recovered
        self.inserts: list[str] = []
        self.flushes = 0
        self.fail_flush = False

    async def contains(self, fingerprint: str) -> bool:
        return fingerprint in self.fingerprints

    async def insert(self, fingerprint: str) -> None:
        self.inserts.append(fingerprint)
        self.fingerprints.add(fingerprint)

    async def flush(self) -> None:
        if self.fail_flush:
            raise StoreError("disk full")
        self.flushes += 1

    async def mark_initialized(self) -> None:
        self.recovered = True


class FakeFeedClient:
    def __init__(self, feeds: dict[str, list[FeedItem] | Exception]):
        self.feeds = feeds
        self.fetched: list[str] = []

    async def fetch(self, url: str) -> list[FeedItem]:
        self.fetched.append(url)
        result = self.feeds[url]
        if isinstance(result, Exception):
            raise result
        return result


class FakeResolver:
    """
    Resolves a link to the fingerprint registered for it; unknown links fail.
    """

    def __init__(self, links: dict[str, str]):
        self.links = links
        self.resolved: list[str] = []

    async def resolve(self, item: FeedItem, link: Optional[str] = None) -> ResolvedItem:
        link = link or item.link
        self.resolved.append(link)
        if link not in self.links:
            raise ResolveError(f"Failed to fetch the torrent file: HTTP 404 from {link}")
        fp = self.links[link]
        return ResolvedItem(title=item.title, fingerprint=fp, resource=magnet(fp), link=link)


class FakeBackend:
    def __init__(self, existing=(), failing=()):
        self.torrents: set[str] = set(existing)
        self.failing: set[str] = set(failing)
        self.submissions: list[tuple[str, str]] = []
        self.list_error: Optional[Exception] = None

    async def list_current(self) -> list[str]:
        if self.list_error:
            raise self.list_error
        return sorted(self.torrents)

    async def submit(self, resource: str, download_dir: str, metainfo: bool = False) -> SubmissionOutcome:
        self.submissions.append((resource, download_dir))
        fp = parse_magnet_hash(resource)
        if fp in self.failing:
            return Failed(reason="invalid or corrupt torrent file")
        if fp in self.torrents:
            return Duplicate(fingerprint=fp)
        self.torrents.add(fp)
        return Added(fingerprint=fp)


class FakeNotifier:
    def __init__(self):
        self.messages: list[str] = []

    async def notify_all(self, message: str) -> int:
        self.messages.append(message)
        return 1


def feed_error(url: str) -> FetchError:
    return FetchError(f"Failed to fetch feed {url}: HTTP 500 from {url}")
