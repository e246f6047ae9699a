import tomllib
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigError
from .version import __version__


def _resolve_secret(data: Any, field: str) -> Any:
    """
    将 `<field>` / `<field>_file` 两种写法统一为 `<field>`

    文件内容会去除首尾空白，只在加载配置时读取一次
    """
    if not isinstance(data, dict):
        return data

    file_key = f"{field}_file"
    has_inline = field in data
    has_file = file_key in data

    if has_inline and has_file:
        raise ValueError(f"'{field}' and '{file_key}' are mutually exclusive")
    if not has_file:
        return data

    data = dict(data)
    secret_path = Path(data.pop(file_key))
    try:
        data[field] = secret_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ValueError(f"cannot read {file_key} '{secret_path}': {e}") from e
    return data


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PersistenceConfig(_Frozen):
    path: str
    """已见种子数据库 (SQLite) 的路径"""


class TransmissionConfig(_Frozen):
    url: str
    """Transmission RPC 地址，例如 http://localhost:9091/transmission/rpc"""
    username: str = ""
    password: str = ""
    """可以用 password_file 代替，从文件中读取"""
    use_metainfo: bool = False
    """提交 base64 编码的种子文件而不是磁力链接"""

    @model_validator(mode="before")
    @classmethod
    def resolve_password(cls, data: Any) -> Any:
        return _resolve_secret(data, "password")


class NetworkConfig(_Frozen):
    retry_attempts: int = Field(3, ge=1)
    """网络请求的最大尝试次数"""
    retry_delay: float = Field(1.0, ge=0)
    """两次尝试之间的固定间隔（秒）"""
    max_concurrent_fetches: int = Field(8, ge=1)
    """同时下载种子文件的最大数量"""
    timeout: float = Field(30.0, gt=0)
    """单次 HTTP 请求的超时时间（秒）"""
    user_agent: str = f"transmission-rss/{__version__}"


class FeedSource(_Frozen):
    title: str
    url: str
    filters: List[str] = []
    """标题关键词，空列表表示全部接受"""
    download_dir: str


class TelegramConfig(_Frozen):
    bot_token: str
    """可以用 bot_token_file 代替"""
    chat_id: int
    api_base: str = "https://api.telegram.org"

    @model_validator(mode="before")
    @classmethod
    def resolve_token(cls, data: Any) -> Any:
        return _resolve_secret(data, "bot_token")


class FeishuConfig(_Frozen):
    webhook: str
    """可以用 webhook_file 代替"""

    @model_validator(mode="before")
    @classmethod
    def resolve_webhook(cls, data: Any) -> Any:
        return _resolve_secret(data, "webhook")


class NotificationConfig(_Frozen):
    telegram: Optional[TelegramConfig] = None
    feishu: Optional[FeishuConfig] = None


class Config(_Frozen):
    persistence: PersistenceConfig
    transmission: TransmissionConfig
    rss_list: List[FeedSource] = []
    notification: NotificationConfig = NotificationConfig()
    network: NetworkConfig = NetworkConfig()


def load_config(path: str | Path) -> Config:
    """
    读取并校验 TOML 配置文件
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}:\n{e}") from e
