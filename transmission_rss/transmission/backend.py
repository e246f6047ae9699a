from typing import Any, Optional

from loguru import logger

from ..exceptions import RpcError, RpcTransportError
from ..utils.retry import DEFAULT_ATTEMPTS, DEFAULT_DELAY, retry_async
from ._schema import Added, Duplicate, Failed, SubmissionOutcome
from .client import TransmissionClient


def _hash_of(torrent: Optional[dict[str, Any]]) -> str:
    return str((torrent or {}).get("hashString", "")).lower()


class DownloadBackend:
    """
    流水线所需的两个 Transmission 操作，带固定次数的重试
    """

    def __init__(self, client: TransmissionClient, attempts: int = DEFAULT_ATTEMPTS, delay: float = DEFAULT_DELAY):
        self.client = client
        self.attempts = attempts
        self.delay = delay

    async def list_current(self) -> list[str]:
        """
        返回 Transmission 中所有种子的指纹

        :raise RpcError: 重试用尽或被拒绝
        """
        torrents = await retry_async(
            self.client.torrent_get,
            ["hashString"],
            attempts=self.attempts,
            delay=self.delay,
            retry_on=(RpcTransportError,),
            description="torrent-get",
        )
        return [fingerprint for fingerprint in map(_hash_of, torrents) if fingerprint]

    async def submit(self, resource: str, download_dir: str, metainfo: bool = False) -> SubmissionOutcome:
        """
        添加种子，所有错误都转换为 `Failed`

        :param resource: 磁力链接，或 `metainfo` 为 True 时 base64 编码的种子文件
        """
        kwargs = {"metainfo": resource} if metainfo else {"filename": resource}
        try:
            arguments = await retry_async(
                self.client.torrent_add,
                download_dir=download_dir,
                attempts=self.attempts,
                delay=self.delay,
                retry_on=(RpcTransportError,),
                description="torrent-add",
                **kwargs,
            )
        except RpcError as e:
            return Failed(reason=str(e))

        if "torrent-added" in arguments:
            torrent = arguments["torrent-added"]
            return Added(fingerprint=_hash_of(torrent), name=torrent.get("name", ""))
        if "torrent-duplicate" in arguments:
            torrent = arguments["torrent-duplicate"]
            return Duplicate(fingerprint=_hash_of(torrent), name=torrent.get("name", ""))

        logger.debug(f"Unexpected torrent-add response: {arguments}")
        return Failed(reason="torrent-add returned neither torrent-added nor torrent-duplicate")
