from ._base import BaseChannel, NotificationError
from ._registry import get_channel_class, list_channel_names, register_channel
from .feishu import FeiShu
from .notifier import Notifier
from .telegram import Telegram

__all__ = [
    "BaseChannel",
    "NotificationError",
    "Notifier",
    "FeiShu",
    "Telegram",
    "register_channel",
    "get_channel_class",
    "list_channel_names",
]
