"""Screenshot capture interface."""

from typing import Protocol


class ScreenshotCapture(Protocol):
    """Anything able to capture the current screen, e.g. a browser driver."""

    async def take_screenshot(self) -> str | bytes:
        """Capture the screen and return the base64 encoded image."""
        ...
