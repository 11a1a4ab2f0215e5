"""Tests for the CLI and the deployment shells."""

import importlib
import sys
from unittest.mock import patch

from click.testing import CliRunner

from capture_api.cli import main
from capture_api.providers import EphemeralPageProvider, PooledPageProvider


def test_cli_runs_uvicorn_on_requested_port():
    with patch("capture_api.cli.uvicorn.run") as run:
        result = CliRunner().invoke(main, ["--port", "3001", "--host", "127.0.0.1"])

    assert result.exit_code == 0
    run.assert_called_once_with("capture_api.main:app", host="127.0.0.1", port=3001)


def test_cli_rejects_non_numeric_port():
    with patch("capture_api.cli.uvicorn.run") as run:
        result = CliRunner().invoke(main, ["-p", "abc"])

    assert result.exit_code != 0
    run.assert_not_called()


def test_pooled_app_uses_pooled_provider():
    from capture_api.main import app

    assert isinstance(app.state.screenshot_service.provider, PooledPageProvider)


def test_serverless_app_uses_ephemeral_provider():
    from capture_api.serverless import app

    assert isinstance(app.state.screenshot_service.provider, EphemeralPageProvider)


def test_serverless_import_builds_only_its_own_app(monkeypatch):
    monkeypatch.delitem(sys.modules, "capture_api.serverless", raising=False)
    monkeypatch.delitem(sys.modules, "capture_api.main", raising=False)

    with patch.object(PooledPageProvider, "from_settings") as pooled_from_settings, patch(
        "capture_api.config.setup_logging"
    ) as setup_logging:
        serverless = importlib.import_module("capture_api.serverless")

    pooled_from_settings.assert_not_called()
    setup_logging.assert_called_once()
    assert "capture_api.main" not in sys.modules
    assert isinstance(serverless.app.state.screenshot_service.provider, EphemeralPageProvider)
