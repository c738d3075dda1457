"""Hooks the pytest plugin calls into conftest files and other plugins."""

import pytest

from trx_reporter.capture import ScreenshotCapture


@pytest.hookspec(firstresult=True)
def pytest_trx_capture(config: pytest.Config) -> ScreenshotCapture | None:
    """Return the object taking screenshots for TRX results.

    Called once while the reporter is configured. Implement it in a
    ``conftest.py`` to enable the ``takeScreenshot`` options.

    Args:
        config: The pytest config

    Returns:
        A screenshot capture, or None to skip capturing

    """
