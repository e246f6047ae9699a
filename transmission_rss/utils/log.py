import sys

from loguru import logger

LOG_FORMAT = (
    "<g>{time:MM-DD HH:mm:ss}</g> [<lvl>{level}</lvl>] <c><u>{name}</u></c> | {message}"
)


def init_logger(level: str = "INFO") -> None:
    """
    替换 loguru 的默认输出，统一日志格式
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, diagnose=False)
