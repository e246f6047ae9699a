import pytest

from transmission_rss import cli
from transmission_rss.core import FeedResult, RunReport
from transmission_rss.exceptions import FetchError, RpcTransportError

from .fakes import make_source

CONFIG = """
[persistence]
path = "seen.db"

[transmission]
url = "http://localhost:9091/transmission/rpc"
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def fake_run(result):
    async def run_once(config):
        if isinstance(result, Exception):
            raise result
        return result

    return run_once


def test_config_error_exit_code(tmp_path):
    assert cli.main(["-c", str(tmp_path / "missing.toml")]) == 2


def test_successful_run(config_path, monkeypatch):
    report = RunReport(results=[FeedResult(make_source("show"), added=2)])
    monkeypatch.setattr(cli, "run_once", fake_run(report))

    assert cli.main(["-c", str(config_path)]) == 0


def test_failed_feed_exit_code(config_path, monkeypatch):
    report = RunReport(results=[FeedResult(make_source("show"), error=FetchError("HTTP 500"))])
    monkeypatch.setattr(cli, "run_once", fake_run(report))

    assert cli.main(["-c", str(config_path), "-v"]) == 1


def test_aborted_run_exit_code(config_path, monkeypatch):
    monkeypatch.setattr(cli, "run_once", fake_run(RpcTransportError("Cannot connect")))

    assert cli.main(["-c", str(config_path)]) == 1


def test_config_is_required():
    with pytest.raises(SystemExit):
        cli.main([])
