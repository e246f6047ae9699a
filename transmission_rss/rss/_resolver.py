import asyncio
import base64
import binascii
import hashlib
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

import flatbencode
import torf
from aiohttp import ClientSession
from loguru import logger

from ..exceptions import HTTPStatusError, NetworkError, ResolveError
from ..utils.retry import DEFAULT_ATTEMPTS, DEFAULT_DELAY, retry_async
from ._parser import fetch_web_content, get_link
from ._schema import FeedItem, ResolvedItem, TorrentMeta

BTIH_PREFIX = "urn:btih:"


def parse_magnet_hash(magnet: str) -> str:
    """
    从磁力链接的 `xt=urn:btih:` 中取出 info hash，统一为小写十六进制

    支持 40 位十六进制和 32 位 base32 两种写法
    """
    query = parse_qs(urlsplit(magnet).query)
    for xt in query.get("xt", []):
        if not xt.lower().startswith(BTIH_PREFIX):
            continue
        value = xt[len(BTIH_PREFIX) :]
        if len(value) == 40:
            try:
                return bytes.fromhex(value).hex()
            except ValueError:
                break
        if len(value) == 32:
            try:
                return base64.b32decode(value.upper()).hex()
            except binascii.Error:
                break
        break
    raise ResolveError(f"No valid btih hash in magnet link: {magnet}")


def _text(value: Any, encoding: str) -> str:
    if isinstance(value, bytes):
        try:
            return value.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            return value.decode("utf-8", errors="replace")
    return str(value)


def decode_torrent(data: bytes) -> TorrentMeta:
    """
    解码种子文件，info hash 直接由原始 info 字典计算，不对其内容做额外校验

    piece length 不是 2 的幂等不规范但客户端可以接受的种子也能正常解析

    :raise ResolveError: 内容不是有效的种子文件
    """
    try:
        metainfo = flatbencode.decode(data)
    except (flatbencode.DecodingError, ValueError) as e:
        raise ResolveError(f"Malformed torrent file: {str(e) or 'invalid bencode'}") from e

    info = metainfo.get(b"info") if isinstance(metainfo, Mapping) else None
    if not isinstance(info, Mapping) or b"pieces" not in info or b"name" not in info:
        raise ResolveError("Malformed torrent file: missing info dictionary")

    try:
        infohash = hashlib.sha1(flatbencode.encode(info)).hexdigest()
    except ValueError as e:
        raise ResolveError(f"Malformed torrent file: {e}") from e

    encoding = _text(metainfo.get(b"encoding", b"utf-8"), "ascii")
    name = _text(info.get(b"name.utf-8", info[b"name"]), "utf-8" if b"name.utf-8" in info else encoding)

    trackers: list[str] = []
    announce_list = metainfo.get(b"announce-list")
    if isinstance(announce_list, list):
        for tier in announce_list:
            if isinstance(tier, list):
                trackers.extend(_text(url, "utf-8") for url in tier if isinstance(url, bytes))
    announce = metainfo.get(b"announce")
    if isinstance(announce, bytes) and _text(announce, "utf-8") not in trackers:
        trackers.insert(0, _text(announce, "utf-8"))

    return TorrentMeta(infohash=infohash, name=name, trackers=tuple(dict.fromkeys(trackers)))


def build_magnet(meta: TorrentMeta) -> str:
    """
    由种子信息构造磁力链接
    """
    xt = f"{BTIH_PREFIX}{meta.infohash}"
    dn = meta.name or None
    try:
        return str(torf.Magnet(xt=xt, dn=dn, tr=list(meta.trackers) or None))
    except torf.TorfError as e:
        # 无效的 tracker 地址不影响下载，去掉后重建
        logger.debug(f"Dropping trackers of {meta.infohash}: {e}")
        return str(torf.Magnet(xt=xt, dn=dn))


class ItemResolver:
    """
    下载条目对应的种子文件，计算其 info hash 作为指纹
    """

    def __init__(
        self,
        session: ClientSession,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_DELAY,
        max_concurrent: int = 8,
        use_metainfo: bool = False,
    ):
        self.session = session
        self.attempts = attempts
        self.delay = delay
        self.use_metainfo = use_metainfo
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def resolve(self, item: FeedItem, link: Optional[str] = None) -> ResolvedItem:
        """
        :param item: 订阅条目
        :param link: 已经选好的链接，为空时使用 `get_link`
        :raise ResolveError: 这个条目无法解析
        """
        link = link or get_link(item)
        if not link:
            raise ResolveError(f"Item '{item.title}' has neither a torrent enclosure nor a link")

        if link.startswith("magnet:"):
            return ResolvedItem(title=item.title, fingerprint=parse_magnet_hash(link), resource=link, link=link)

        data = await self._download(link)
        try:
            meta = decode_torrent(data)
        except ResolveError as e:
            raise ResolveError(f"{e} ({link})") from e

        fingerprint = meta.infohash
        if self.use_metainfo:
            resource = base64.b64encode(data).decode("ascii")
        else:
            resource = build_magnet(meta)

        logger.debug(f"Resolved '{item.title}' -> {fingerprint}")
        return ResolvedItem(
            title=item.title,
            fingerprint=fingerprint,
            resource=resource,
            is_metainfo=self.use_metainfo,
            link=link,
        )

    async def _download(self, link: str) -> bytes:
        async with self._semaphore:
            try:
                return await retry_async(
                    fetch_web_content,
                    self.session,
                    link,
                    attempts=self.attempts,
                    delay=self.delay,
                    description=f"Fetch torrent {link}",
                )
            except (NetworkError, HTTPStatusError) as e:
                raise ResolveError(f"Failed to fetch the torrent file: {e}") from e
