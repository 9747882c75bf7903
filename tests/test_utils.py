"""
Phantom Guard - Utility Tests
=============================

Tests for HTTP error helpers, DM delivery and the error handler.
"""

import json
import sqlite3
from unittest.mock import AsyncMock, MagicMock

import pytest

from phantom_guard.core.config import ConfigValidationError
from phantom_guard.core.logger import logger
from phantom_guard.utils import error_handler as error_handler_module
from phantom_guard.utils.discord_rate_limit import describe_http_error
from phantom_guard.utils.dm_helpers import safe_send_dm
from phantom_guard.utils.error_handler import ErrorHandler

from conftest import forbidden, not_found


class TestDescribeHttpError:
    """Tests for HTTP error descriptions."""

    def test_forbidden(self):
        assert describe_http_error(forbidden("Missing Permissions")) == "403 Forbidden: Missing Permissions"

    def test_not_found(self):
        assert describe_http_error(not_found("Unknown Member")) == "404 Not Found: Unknown Member"


class TestErrorHandler:
    """Tests for error categorization and storage."""

    @pytest.mark.parametrize("error,category", [
        (ConfigValidationError("missing"), "config"),
        (forbidden(), "discord"),
        (sqlite3.OperationalError("locked"), "database"),
        (ConnectionError("reset"), "network"),
        (ValueError("bad"), "general"),
    ])
    def test_categorize(self, error, category):
        """Test each error lands in its category."""
        assert ErrorHandler.categorize_error(error) == category

    def test_critical_error_saved(self, tmp_path, monkeypatch):
        """Test critical errors are written as JSON."""
        monkeypatch.setattr(error_handler_module, "ERROR_DIR", tmp_path)

        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            ErrorHandler.handle(e, location="tests.critical", critical=True, guild=1)

        files = list(tmp_path.glob("error_*.json"))
        assert len(files) == 1
        payload = json.loads(files[0].read_text(encoding="utf-8"))
        assert payload["location"] == "tests.critical"
        assert payload["error_type"] == "RuntimeError"
        assert payload["context"] == {"guild": 1}
        assert "boom" in payload["traceback"]

    def test_non_critical_not_saved(self, tmp_path, monkeypatch):
        """Test non-critical errors are only logged."""
        monkeypatch.setattr(error_handler_module, "ERROR_DIR", tmp_path)

        ErrorHandler.handle(ValueError("bad"), location="tests.warning")

        assert list(tmp_path.iterdir()) == []

    def test_unwritable_error_dir_logged_critical(self, tmp_path, monkeypatch):
        """Test a failed dump is logged as critical instead of raising."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        monkeypatch.setattr(error_handler_module, "ERROR_DIR", blocker / "errors")
        critical = MagicMock()
        monkeypatch.setattr(logger, "critical", critical)

        ErrorHandler.handle(RuntimeError("boom"), location="tests.critical", critical=True)

        critical.assert_called_once()
        assert "Failed to save error details" in critical.call_args.args[0]


class TestSafeSendDm:
    """Tests for DM delivery."""

    @pytest.mark.asyncio
    async def test_delivered(self):
        user = MagicMock(id=1)
        user.send = AsyncMock()

        assert await safe_send_dm(user, content="hi", context="Test") is True
        user.send.assert_awaited_once_with(content="hi", embed=None)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [forbidden("Cannot send messages to this user"), not_found("Unknown User")])
    async def test_failures_return_false(self, error):
        """Test closed DMs and API errors are reported, not raised."""
        user = MagicMock(id=1)
        user.send = AsyncMock(side_effect=error)

        assert await safe_send_dm(user, content="hi") is False
