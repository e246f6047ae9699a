from .log import init_logger
from .retry import retry_async

__all__ = ["init_logger", "retry_async"]
