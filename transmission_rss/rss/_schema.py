from dataclasses import dataclass
from typing import Optional

TORRENT_MIME_TYPE = "application/x-bittorrent"


@dataclass(frozen=True)
class Enclosure:
    url: str
    mime_type: str


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    enclosure: Optional[Enclosure] = None


@dataclass(frozen=True)
class ResolvedItem:
    title: str
    fingerprint: str
    """种子的 info hash（小写十六进制），用作去重的键"""
    resource: str
    """提交给 Transmission 的资源：磁力链接，或 base64 编码的种子文件"""
    is_metainfo: bool = False
    link: str = ""
    """解析时使用的链接，仅用于日志"""


@dataclass(frozen=True)
class TorrentMeta:
    infohash: str
    """info 字典 bencode 编码后的 SHA-1（小写十六进制）"""
    name: str
    trackers: tuple[str, ...] = ()
