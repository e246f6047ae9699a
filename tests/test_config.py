import pytest

from transmission_rss.config import Config, load_config
from transmission_rss.exceptions import ConfigError

BASE_CONFIG = """
[persistence]
path = "./data/seen.db"

[transmission]
url = "http://localhost:9091/transmission/rpc"
username = "admin"
{password}

[[rss_list]]
title = "Frieren"
url = "https://example.org/rss.xml"
filters = ["1080p", "HEVC"]
download_dir = "/downloads/frieren"

[[rss_list]]
title = "All"
url = "https://example.org/all.xml"
filters = []
download_dir = "/downloads/all"
"""


def write_config(tmp_path, password='password = "secret"', extra=""):
    path = tmp_path / "config.toml"
    path.write_text(BASE_CONFIG.format(password=password) + extra, encoding="utf-8")
    return path


def test_load_inline_password(tmp_path):
    config = load_config(write_config(tmp_path))

    assert config.transmission.password == "secret"
    assert config.transmission.use_metainfo is False
    assert [source.title for source in config.rss_list] == ["Frieren", "All"]
    assert config.rss_list[0].filters == ["1080p", "HEVC"]
    assert config.rss_list[1].filters == []
    assert config.notification.telegram is None
    assert config.network.retry_attempts == 3
    assert config.network.retry_delay == 1.0


def test_password_file_is_resolved_and_stripped(tmp_path):
    secret = tmp_path / "password"
    secret.write_text("  from-file\n", encoding="utf-8")

    config = load_config(write_config(tmp_path, password=f'password_file = "{secret.as_posix()}"'))

    assert config.transmission.password == "from-file"


def test_password_and_password_file_are_exclusive(tmp_path):
    secret = tmp_path / "password"
    secret.write_text("x", encoding="utf-8")
    password = f'password = "a"\npassword_file = "{secret.as_posix()}"'

    with pytest.raises(ConfigError):
        load_config(write_config(tmp_path, password=password))


def test_missing_secret_file(tmp_path):
    with pytest.raises(ConfigError, match="password_file"):
        load_config(write_config(tmp_path, password='password_file = "/nonexistent/secret"'))


def test_notification_secrets(tmp_path):
    token = tmp_path / "token"
    token.write_text("123:ABC\n", encoding="utf-8")
    extra = f"""
[notification.telegram]
bot_token_file = "{token.as_posix()}"
chat_id = 42

[notification.feishu]
webhook = "https://open.feishu.cn/open-apis/bot/v2/hook/abc"
"""
    config = load_config(write_config(tmp_path, extra=extra))

    assert config.notification.telegram is not None
    assert config.notification.telegram.bot_token == "123:ABC"
    assert config.notification.telegram.chat_id == 42
    assert config.notification.feishu is not None
    assert config.notification.feishu.webhook.endswith("/abc")


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.toml")


def test_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[persistence\npath = 1", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(path)


def test_missing_required_section():
    with pytest.raises(ValueError):
        Config.model_validate({"persistence": {"path": "x"}})
