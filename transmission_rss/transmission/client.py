import asyncio
import itertools
from typing import Any, Optional

from aiohttp import BasicAuth, ClientError, ClientSession
from loguru import logger

from ..exceptions import RpcRejectedError, RpcTransportError

SESSION_ID_HEADER = "X-Transmission-Session-Id"


class TransmissionClient:
    """
    Transmission RPC 客户端

    服务端用 HTTP 409 下发 `X-Transmission-Session-Id`，收到后带上该头重发一次。
    """

    def __init__(self, session: ClientSession, url: str, username: str = "", password: str = ""):
        self.session = session
        self.url = url
        self.auth = BasicAuth(username, password) if username or password else None
        self._session_id: Optional[str] = None
        self._tag = itertools.count(1)

    async def call(self, method: str, arguments: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        调用一个 RPC 方法，返回响应中的 `arguments`

        :raise RpcTransportError: 连接失败、超时、5xx 或响应无法解析，可以重试
        :raise RpcRejectedError: 认证失败或 `result` 不为 success，不应重试
        """
        payload = {"method": method, "arguments": arguments or {}, "tag": next(self._tag)}

        for _ in range(2):
            headers = {SESSION_ID_HEADER: self._session_id} if self._session_id else {}
            try:
                async with self.session.post(self.url, json=payload, headers=headers, auth=self.auth) as response:
                    if response.status == 409:
                        self._session_id = response.headers.get(SESSION_ID_HEADER)
                        if not self._session_id:
                            raise RpcTransportError(f"HTTP 409 without {SESSION_ID_HEADER} from {self.url}")
                        logger.debug("Transmission session id refreshed")
                        continue
                    if response.status in (401, 403):
                        raise RpcRejectedError(f"Authentication failed: HTTP {response.status}")
                    if response.status >= 500:
                        raise RpcTransportError(f"HTTP {response.status} from {self.url}")
                    if response.status != 200:
                        raise RpcRejectedError(f"HTTP {response.status} from {self.url}")
                    body = await response.json(content_type=None)
            except (ClientError, asyncio.TimeoutError) as e:
                raise RpcTransportError(f"{method} failed: {e!r}") from e
            except ValueError as e:
                raise RpcTransportError(f"{method} returned invalid JSON: {e}") from e

            if not isinstance(body, dict):
                raise RpcTransportError(f"{method} returned unexpected body: {body!r}")

            result = body.get("result")
            if result != "success":
                raise RpcRejectedError(f"{method} failed: {result}", result=result)
            return body.get("arguments") or {}

        raise RpcTransportError(f"{method} failed: session id handshake did not complete")

    async def torrent_get(self, fields: list[str]) -> list[dict[str, Any]]:
        arguments = await self.call("torrent-get", {"fields": fields})
        return arguments.get("torrents", [])

    async def torrent_add(
        self,
        filename: Optional[str] = None,
        metainfo: Optional[str] = None,
        download_dir: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        添加种子，`filename`（URL 或磁力链接）与 `metainfo`（base64 编码的种子文件）二选一
        """
        if (filename is None) == (metainfo is None):
            raise ValueError("exactly one of filename and metainfo is required")

        arguments: dict[str, Any] = {}
        if filename is not None:
            arguments["filename"] = filename
        if metainfo is not None:
            arguments["metainfo"] = metainfo
        if download_dir:
            arguments["download-dir"] = download_dir
        return await self.call("torrent-add", arguments)
