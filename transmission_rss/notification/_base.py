from abc import ABC, abstractmethod
from typing import Any

from aiohttp import ClientSession

from ..exceptions import TransmissionRSSError


class NotificationError(TransmissionRSSError):
    pass


class BaseChannel(ABC):
    def __init__(self, config: Any):
        self.config = config

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def send(self, session: ClientSession, message: str) -> None:
        """
        发送一条文本消息

        :raise NotificationError: 发送失败
        """
