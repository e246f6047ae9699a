from typing import Optional


class TransmissionRSSError(Exception):
    """所有错误的基类"""


class RetryableError(TransmissionRSSError):
    """
    传输层错误，可以被 `retry_async` 重试
    """


class ConfigError(TransmissionRSSError):
    pass


class NetworkError(RetryableError):
    """连接失败、超时或服务端 5xx"""


class HTTPStatusError(TransmissionRSSError):
    """非 200 且不值得重试的 HTTP 响应"""

    def __init__(self, url: str, status: int):
        super().__init__(f"HTTP {status} from {url}")
        self.url = url
        self.status = status


class FetchError(TransmissionRSSError):
    """获取 RSS 订阅失败，整个订阅的本轮处理作废"""


class FeedParseError(FetchError):
    pass


class ResolveError(TransmissionRSSError):
    """单个条目无法解析，只影响这一个条目"""


class RpcError(TransmissionRSSError):
    pass


class RpcTransportError(RpcError, RetryableError):
    pass


class RpcRejectedError(RpcError):
    def __init__(self, message: str, result: Optional[str] = None):
        super().__init__(message)
        self.result = result


class StoreError(TransmissionRSSError):
    pass
