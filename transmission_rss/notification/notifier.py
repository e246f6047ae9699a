import asyncio
from typing import Optional, Sequence

from aiohttp import ClientSession
from loguru import logger

from ..config import NotificationConfig
from ._base import BaseChannel, NotificationError
from ._registry import get_channel_class, list_channel_names


class Notifier:
    """
    向所有已配置的渠道发送消息，单个渠道失败只记录日志
    """

    def __init__(self, session: Optional[ClientSession], channels: Sequence[BaseChannel] = ()):
        self.session = session
        self.channels = list(channels)

    @classmethod
    def from_config(cls, config: NotificationConfig, session: ClientSession) -> "Notifier":
        channels = []
        for name in list_channel_names():
            channel_config = getattr(config, name, None)
            if channel_config is None:
                continue
            channel_class = get_channel_class(name)
            if channel_class is None:
                continue
            channels.append(channel_class(channel_config))

        if channels:
            logger.debug(f"Notification channels: {', '.join(c.name for c in channels)}")
        return cls(session, channels)

    async def _send(self, channel: BaseChannel, message: str) -> bool:
        try:
            await channel.send(self.session, message)  # type: ignore[arg-type]
        except NotificationError as e:
            logger.warning(f"Failed to send {channel.name} message: {e}")
            return False
        except Exception as e:
            logger.error(f"{channel.name} notification crashed: {e!r}")
            return False

        logger.info(f"{channel.name} notification sent!")
        return True

    async def notify_all(self, message: str) -> int:
        """
        :return: 发送成功的渠道数
        """
        if not self.channels:
            return 0

        results = await asyncio.gather(*(self._send(channel, message) for channel in self.channels))
        return sum(results)
