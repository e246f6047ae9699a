import asyncio

from aiohttp import ClientError, ClientSession

from ..config import FeishuConfig
from ._base import BaseChannel, NotificationError
from ._registry import register_channel


def build_message(text: str) -> dict:
    return {"msg_type": "text", "content": {"text": text}}


@register_channel("feishu")
class FeiShu(BaseChannel):
    config: FeishuConfig

    async def send(self, session: ClientSession, message: str) -> None:
        try:
            async with session.post(self.config.webhook, json=build_message(message)) as response:
                if response.status != 200:
                    raise NotificationError(f"Feishu webhook returned HTTP {response.status}: {await response.text()}")
                # 飞书在 HTTP 200 中用 code 字段表示业务错误
                body = await response.json(content_type=None)
        except (ClientError, asyncio.TimeoutError) as e:
            raise NotificationError(f"Failed to reach Feishu webhook: {e!r}") from e
        except ValueError as e:
            raise NotificationError(f"Feishu webhook returned invalid JSON: {e}") from e

        if isinstance(body, dict) and body.get("code", 0) != 0:
            raise NotificationError(f"Feishu webhook rejected the message: {body.get('msg')}")
