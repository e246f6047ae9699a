from ._client import FeedClient
from ._parser import fetch_web_content, get_link, parse_rss_feed
from ._resolver import ItemResolver, build_magnet, decode_torrent, parse_magnet_hash
from ._schema import TORRENT_MIME_TYPE, Enclosure, FeedItem, ResolvedItem, TorrentMeta

__all__ = [
    "FeedClient",
    "ItemResolver",
    "FeedItem",
    "Enclosure",
    "ResolvedItem",
    "TorrentMeta",
    "TORRENT_MIME_TYPE",
    "parse_rss_feed",
    "get_link",
    "fetch_web_content",
    "decode_torrent",
    "build_magnet",
    "parse_magnet_hash",
]
