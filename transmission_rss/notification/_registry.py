from typing import Callable, Dict, Optional, Type, TypeVar

from ._base import BaseChannel

TChannel = TypeVar("TChannel", bound=Type[BaseChannel])

_registry: Dict[str, Type[BaseChannel]] = {}


def register_channel(name: str) -> Callable[[TChannel], TChannel]:
    def decorator(cls: TChannel) -> TChannel:
        if name in _registry:
            raise ValueError(f"Channel '{name}' is already registered")
        _registry[name] = cls
        return cls

    return decorator


def get_channel_class(name: str) -> Optional[Type[BaseChannel]]:
    return _registry.get(name)


def list_channel_names() -> list[str]:
    return sorted(_registry.keys())
