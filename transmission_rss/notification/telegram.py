import asyncio

from aiohttp import ClientError, ClientSession

from ..config import TelegramConfig
from ._base import BaseChannel, NotificationError
from ._registry import register_channel


@register_channel("telegram")
class Telegram(BaseChannel):
    config: TelegramConfig

    async def send(self, session: ClientSession, message: str) -> None:
        url = f"{self.config.api_base.rstrip('/')}/bot{self.config.bot_token}/sendMessage"
        payload = {"chat_id": self.config.chat_id, "text": message}
        try:
            async with session.post(url, json=payload) as response:
                if response.status != 200:
                    raise NotificationError(f"Telegram API returned HTTP {response.status}: {await response.text()}")
        except (ClientError, asyncio.TimeoutError) as e:
            raise NotificationError(f"Failed to reach Telegram API: {e!r}") from e
