"""Tests for the worker entry point."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from profilereview import main as main_module
from profilereview.configuration.app_configuration import AppConfig
from profilereview.datatypes.review_datatypes import BatchSummary
from profilereview.realtime.transport import NullRealtimeTransport


def test_parse_args_defaults():
    args = main_module.parse_args([])
    assert args.user_id is None
    assert args.once is False
    assert args.debug is False


def test_parse_args_modes_are_exclusive():
    with pytest.raises(SystemExit):
        main_module.parse_args(["--once", "--user-id", "3"])


def test_parse_args_config_path():
    args = main_module.parse_args(["--user-id", "3", "--config", "/tmp/x.yml"])
    assert args.user_id == 3
    assert args.config == Path("/tmp/x.yml")


def test_build_runtime_wires_components(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    config = AppConfig(tmp_path / "missing.yml")

    runtime = main_module.build_runtime(config)

    assert isinstance(runtime.transport, NullRealtimeTransport)
    assert runtime.scheduler.page_size == 5000
    assert runtime.scheduler.interval == 5.0
    runtime.client.close()


def fake_runtime(summary=None, outcome=None):
    runtime = MagicMock()
    runtime.database.initialize = AsyncMock(return_value=True)
    runtime.database.shutdown = AsyncMock()
    runtime.transport.close = AsyncMock()
    runtime.scheduler.process_batch = AsyncMock(return_value=summary or BatchSummary())
    runtime.scheduler.review_user = AsyncMock(return_value=outcome)
    runtime.scheduler.shutdown = AsyncMock()
    return runtime


@pytest.mark.asyncio
async def test_once_mode_returns_failure_code(tmp_path: Path):
    runtime = fake_runtime(summary=BatchSummary(failed=1))
    args = main_module.parse_args(["--once", "--config", str(tmp_path / "c.yml")])

    with patch.object(main_module, "build_runtime", return_value=runtime), \
            patch.object(main_module, "load_environment"):
        code = await main_module.async_main(args)

    assert code == 1
    runtime.scheduler.shutdown.assert_awaited_once()
    runtime.database.shutdown.assert_awaited_once()


@pytest.mark.asyncio
async def test_user_mode_missing_user(tmp_path: Path):
    runtime = fake_runtime(outcome=None)
    args = main_module.parse_args(["--user-id", "8", "--config", str(tmp_path / "c.yml")])

    with patch.object(main_module, "build_runtime", return_value=runtime), \
            patch.object(main_module, "load_environment"):
        code = await main_module.async_main(args)

    assert code == 1
    runtime.scheduler.review_user.assert_awaited_once_with(8)


@pytest.mark.asyncio
async def test_database_failure_aborts(tmp_path: Path):
    runtime = fake_runtime()
    runtime.database.initialize.return_value = False
    args = main_module.parse_args(["--once", "--config", str(tmp_path / "c.yml")])

    with patch.object(main_module, "build_runtime", return_value=runtime), \
            patch.object(main_module, "load_environment"):
        code = await main_module.async_main(args)

    assert code == 1
    runtime.scheduler.process_batch.assert_not_awaited()
