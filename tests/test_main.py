"""Tests for relaybot.__main__ entrypoint functions."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_removes_default_handler_and_adds_stderr(self, monkeypatch):
        """setup_logging configures loguru with the correct level."""
        # Arrange
        from relaybot.__main__ import setup_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)

        # Act
        with patch("relaybot.__main__.logger") as mock_logger, patch("relaybot.__main__._intercept_logging"):
            setup_logging(verbose=False)

            # Assert
            mock_logger.remove.assert_called_once()
            mock_logger.add.assert_called_once()
            assert mock_logger.add.call_args[1]["level"] == "INFO"

    def test_verbose_sets_debug_level(self):
        from relaybot.__main__ import setup_logging

        with patch("relaybot.__main__.logger") as mock_logger, patch("relaybot.__main__._intercept_logging"):
            setup_logging(verbose=True)
            assert mock_logger.add.call_args[1]["level"] == "DEBUG"

    def test_log_level_env(self, monkeypatch):
        from relaybot.__main__ import setup_logging

        monkeypatch.setenv("LOG_LEVEL", "warning")
        with patch("relaybot.__main__.logger") as mock_logger, patch("relaybot.__main__._intercept_logging"):
            setup_logging()
            assert mock_logger.add.call_args[1]["level"] == "WARNING"

    def test_format_includes_time_and_level(self):
        from relaybot.__main__ import setup_logging

        with patch("relaybot.__main__.logger") as mock_logger, patch("relaybot.__main__._intercept_logging"):
            setup_logging()
            fmt = mock_logger.add.call_args[1]["format"]
            assert "{time:" in fmt
            assert "{level:" in fmt
            assert "{message}" in fmt


def test_safe_message_filter_escapes_braces():
    from relaybot.__main__ import _safe_message_filter

    record = {"message": "payload {x} <tag>"}
    assert _safe_message_filter(record) is True
    assert record["message"] == "payload {{x}} \\<tag>"


# ---------------------------------------------------------------------------
# reload_config
# ---------------------------------------------------------------------------


class TestReloadConfig:
    def test_reload_config_calls_load_and_cfg_reload(self, tmp_path):
        from relaybot.__main__ import reload_config

        config_file = tmp_path / "config.yaml"
        fake_data = {"command_prefix": "!"}

        with (
            patch("relaybot.__main__.load_config_with_env", return_value=fake_data) as mock_load,
            patch("relaybot.__main__.cfg") as mock_cfg,
        ):
            result = reload_config(config_file)

        mock_load.assert_called_once_with(config_file)
        mock_cfg.reload.assert_called_once_with(fake_data)
        assert result is mock_cfg


# ---------------------------------------------------------------------------
# _run
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.asyncio
    async def test_run_exits_when_adapter_disabled(self):
        from relaybot.__main__ import _run

        adapter = MagicMock()
        adapter.start = AsyncMock()
        adapter.stop = AsyncMock()
        adapter.controller = None

        code = await _run(adapter)

        assert code == 1
        adapter.start.assert_awaited_once()
        adapter.stop.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_run_stops_adapter_on_cancel(self):
        import asyncio

        from relaybot.__main__ import _run

        adapter = MagicMock()
        adapter.start = AsyncMock()
        adapter.stop = AsyncMock()
        adapter.controller = MagicMock()
        adapter.wait_closed = AsyncMock(side_effect=asyncio.Event().wait)

        task = asyncio.create_task(_run(adapter))
        for _ in range(3):
            await asyncio.sleep(0)
        task.cancel()
        code = await task

        assert code == 0
        adapter.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_run_exits_nonzero_when_bot_task_ends(self):
        from relaybot.__main__ import _run

        adapter = MagicMock()
        adapter.start = AsyncMock()
        adapter.stop = AsyncMock()
        adapter.controller = MagicMock()
        adapter.wait_closed = AsyncMock(return_value=None)

        code = await _run(adapter)

        assert code == 1
        adapter.wait_closed.assert_awaited_once()
        adapter.stop.assert_awaited_once()
