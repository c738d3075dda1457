"""Screenshots and extra files attached to test results."""

import asyncio
import base64
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from trx_reporter.capture import ScreenshotCapture
from trx_reporter.fs import copy_file, ensure_folder_exists, write_bytes
from trx_reporter.models.run import UnitTestResult, new_identifier

log = logging.getLogger(__name__)

# Attachments of a result live under <attachments folder>/In/<execution id>/
RESULTS_SUBFOLDER = "In"
ATTACHMENT_SUFFIX = ".png"


@dataclass(frozen=True, kw_only=True)
class AttachmentManager:
    """Stores attachment files for results and registers them as result files."""

    capture: ScreenshotCapture | None = None
    timeout: float | None = None

    def execution_folder(
        self, attachments_folder: Path, result: UnitTestResult
    ) -> Path:
        """Return the folder of a result, assigning its execution id if needed."""
        if result.execution_id is None:
            result.execution_id = new_identifier()
        return attachments_folder / RESULTS_SUBFOLDER / result.execution_id

    async def attach_screenshot(
        self, attachments_folder: Path, result: UnitTestResult
    ) -> None:
        """Capture a screenshot into the result's folder.

        The file name is registered before the capture runs. Without a
        capture object nothing is written.
        """
        folder = self.execution_folder(attachments_folder, result)
        await ensure_folder_exists(folder)

        file_name = new_identifier() + ATTACHMENT_SUFFIX
        result.result_files.append(file_name)

        if self.capture is None:
            log.debug("No screenshot capture available, skipping %s", file_name)
            return

        async with asyncio.timeout(self.timeout):
            payload = await self.capture.take_screenshot()
        await write_bytes(folder / file_name, base64.b64decode(payload))
        log.debug("Saved screenshot %s", folder / file_name)

    async def attach_extras(
        self,
        attachments_folder: Path,
        result: UnitTestResult,
        extra_files: Sequence[Path],
    ) -> None:
        """Copy extra files into the result's folder.

        A failed copy raises and leaves the remaining files uncopied.
        """
        if not extra_files:
            return

        folder = self.execution_folder(attachments_folder, result)
        await ensure_folder_exists(folder)

        for source in extra_files:
            file_name = new_identifier() + ATTACHMENT_SUFFIX
            async with asyncio.timeout(self.timeout):
                await copy_file(Path(source), folder / file_name)
            result.result_files.append(file_name)
            log.debug("Attached %s as %s", source, folder / file_name)
