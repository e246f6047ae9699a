from .store import SeenStore

__all__ = ["SeenStore"]
