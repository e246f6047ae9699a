import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from ..exceptions import RetryableError

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_DELAY = 1.0


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args,
    attempts: int = DEFAULT_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
    retry_on: tuple[type[BaseException], ...] = (RetryableError,),
    description: Optional[str] = None,
    **kwargs,
) -> T:
    """
    以固定次数、固定间隔重试一个协程函数

    只有 `retry_on` 中的异常会被重试，其余异常立即抛出。
    重试次数用尽后抛出最后一次捕获的异常。

    :param func: 要调用的协程函数
    :param attempts: 最大尝试次数（包含第一次）
    :param delay: 两次尝试之间的等待秒数
    :param retry_on: 视为可重试的异常类型
    :param description: 日志中使用的操作描述
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    name = description or getattr(func, "__qualname__", repr(func))

    for attempt in range(1, attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt == attempts:
                logger.warning(f"{name} failed after {attempts} attempts: {e}")
                raise
            logger.debug(f"{name} failed (attempt {attempt}/{attempts}): {e}, retrying in {delay}s")
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
