"""Tests for screenshots and extra files attached to results."""

import asyncio
import base64
from datetime import datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest

from trx_reporter.attachments import AttachmentManager
from trx_reporter.capture import ScreenshotCapture
from trx_reporter.models.config import ReporterConfig
from trx_reporter.models.events import FailedExpectation, SuiteInfo
from trx_reporter.models.run import UnitTest, UnitTestResult
from trx_reporter.reporter import TrxReporter
from trx_reporter.testing.factories import CaseInfoFactory

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


@pytest.fixture
def capture_mock() -> Mock:
    """Create a capture returning a base64 encoded image."""
    capture = Mock(spec=ScreenshotCapture)
    capture.take_screenshot = AsyncMock(
        return_value=base64.b64encode(PNG_BYTES).decode()
    )
    return capture


@pytest.fixture
def extra_files(tmp_path: Path) -> list[Path]:
    """Create two files a case wants attached."""
    sources = tmp_path / "sources"
    sources.mkdir()
    log_file = sources / "browser.log"
    log_file.write_text("console output")
    trace = sources / "trace.json"
    trace.write_text("{}")
    return [log_file, trace]


def make_result() -> UnitTestResult:
    """Create a bare result."""
    return UnitTestResult(
        test=UnitTest(
            name="Login - opens - ",
            method_name="opens",
            method_class_name="Login",
            method_code_base="trx-reporter",
            description="opens - ",
        ),
        computer_name="build-agent",
        outcome="Passed",
        duration="00:00:00.001",
        start_time=None,
        end_time=datetime(2024, 5, 17, 10, 30, 0),
    )


async def finish_case(
    folder: Path,
    capture: ScreenshotCapture | None = None,
    failed: bool = False,
    extras: list[Path] | None = None,
    **options: Any,
) -> TrxReporter:
    """Run one case through a reporter and return it."""
    reporter = TrxReporter(
        config=ReporterConfig(folder=folder / "out", **options), capture=capture
    )
    await reporter.suite_started(SuiteInfo(description="Login"))
    case = CaseInfoFactory.build(
        failed_expectations=[FailedExpectation(message="boom")] if failed else [],
        extra_files=extras or [],
    )
    await reporter.case_started(case)
    await reporter.case_done(case)
    return reporter


def attachment_paths(reporter: TrxReporter) -> list[Path]:
    """Return where the result files of the only result live."""
    assert reporter.run is not None
    assert reporter.attachments_folder is not None
    result = reporter.run.results[0]
    assert result.execution_id is not None
    folder = reporter.attachments_folder / "In" / result.execution_id
    return [folder / name for name in result.result_files]


class TestScreenshotPolicy:
    """Tests for when screenshots are taken."""

    async def test_only_on_failures_skips_passing_case(
        self, tmp_path: Path, capture_mock: Mock
    ) -> None:
        """Adds no attachment to a passing case."""
        reporter = await finish_case(
            tmp_path, capture_mock, take_screenshots_only_on_failures=True
        )

        assert reporter.run is not None
        assert reporter.run.results[0].result_files == []
        capture_mock.take_screenshot.assert_not_called()

    async def test_only_on_failures_captures_failing_case(
        self, tmp_path: Path, capture_mock: Mock
    ) -> None:
        """Adds exactly one screenshot to a failing case."""
        reporter = await finish_case(
            tmp_path,
            capture_mock,
            failed=True,
            take_screenshots_only_on_failures=True,
        )

        (path,) = attachment_paths(reporter)
        assert path.suffix == ".png"
        assert path.read_bytes() == PNG_BYTES
        capture_mock.take_screenshot.assert_awaited_once()

    async def test_always_captures_passing_case(
        self, tmp_path: Path, capture_mock: Mock
    ) -> None:
        """Captures every case when screenshots are always taken."""
        reporter = await finish_case(tmp_path, capture_mock, take_screenshot=True)

        (path,) = attachment_paths(reporter)
        assert path.read_bytes() == PNG_BYTES

    async def test_never_captures(self, tmp_path: Path, capture_mock: Mock) -> None:
        """Takes no screenshot without a screenshot option."""
        reporter = await finish_case(tmp_path, capture_mock, failed=True)

        assert reporter.run is not None
        assert reporter.run.results[0].result_files == []
        capture_mock.take_screenshot.assert_not_called()

    async def test_missing_capture_keeps_reference(self, tmp_path: Path) -> None:
        """Registers the screenshot name even when nothing can capture it."""
        reporter = await finish_case(tmp_path, None, take_screenshot=True)

        (path,) = attachment_paths(reporter)
        assert path.parent.is_dir()
        assert not path.exists()

    async def test_capture_timeout_raises(self, tmp_path: Path) -> None:
        """Gives up on a capture that takes longer than the timeout."""

        async def hang() -> str:
            await asyncio.sleep(10)
            return ""

        capture = Mock(spec=ScreenshotCapture)
        capture.take_screenshot = AsyncMock(side_effect=hang)

        with pytest.raises(TimeoutError):
            await finish_case(
                tmp_path, capture, take_screenshot=True, attachment_timeout=0.01
            )


class TestExtraAttachments:
    """Tests for copying extra files."""

    async def test_copies_extra_files(
        self, tmp_path: Path, extra_files: list[Path]
    ) -> None:
        """Copies every extra file under the result's folder."""
        reporter = await finish_case(
            tmp_path, extras=extra_files, extra_attachments=True
        )

        paths = attachment_paths(reporter)
        assert len(paths) == 2
        assert [p.read_text() for p in paths] == ["console output", "{}"]
        assert all(p.suffix == ".png" for p in paths)

    async def test_extras_follow_screenshot(
        self, tmp_path: Path, capture_mock: Mock, extra_files: list[Path]
    ) -> None:
        """Appends extra files after the screenshot in the same folder."""
        reporter = await finish_case(
            tmp_path,
            capture_mock,
            extras=extra_files,
            take_screenshot=True,
            extra_attachments=True,
        )

        paths = attachment_paths(reporter)
        assert len(paths) == 3
        assert paths[0].read_bytes() == PNG_BYTES
        assert [p.read_text() for p in paths[1:]] == ["console output", "{}"]
        assert len({p.parent for p in paths}) == 1
        assert all(p.exists() for p in paths)

    async def test_extras_ignored_when_disabled(
        self, tmp_path: Path, extra_files: list[Path]
    ) -> None:
        """Leaves extra files alone unless extra attachments are enabled."""
        reporter = await finish_case(tmp_path, extras=extra_files)

        assert reporter.run is not None
        assert reporter.run.results[0].result_files == []
        assert not (tmp_path / "out" / "Login").exists()

    async def test_copy_failure_aborts_case(
        self, tmp_path: Path, extra_files: list[Path]
    ) -> None:
        """Stops at the first failed copy without recording the result."""
        missing = tmp_path / "sources" / "missing.png"
        reporter = TrxReporter(
            config=ReporterConfig(folder=tmp_path / "out", extra_attachments=True)
        )
        await reporter.suite_started(SuiteInfo(description="Login"))
        case = CaseInfoFactory.build(
            extra_files=[extra_files[0], missing, extra_files[1]]
        )
        await reporter.case_started(case)

        with pytest.raises(FileNotFoundError):
            await reporter.case_done(case)

        assert reporter.run is not None
        assert reporter.run.results == []
        copied = list((tmp_path / "out" / "Login" / "In").glob("*/*"))
        assert len(copied) == 1


class TestAttachmentManager:
    """Tests for AttachmentManager."""

    def test_execution_folder_reuses_execution_id(self, tmp_path: Path) -> None:
        """Assigns the execution id once and reuses it."""
        manager = AttachmentManager()
        result = make_result()

        first = manager.execution_folder(tmp_path, result)
        second = manager.execution_folder(tmp_path, result)

        assert result.execution_id is not None
        assert first == second == tmp_path / "In" / result.execution_id

    async def test_screenshot_then_extras_share_folder(
        self, tmp_path: Path, capture_mock: Mock, extra_files: list[Path]
    ) -> None:
        """Writes both kinds of attachments under one execution id."""
        manager = AttachmentManager(capture=capture_mock)
        result = make_result()

        await manager.attach_screenshot(tmp_path / "report", result)
        execution_id = result.execution_id
        await manager.attach_extras(tmp_path / "report", result, extra_files[:1])

        assert result.execution_id == execution_id
        folder = tmp_path / "report" / "In" / str(execution_id)
        assert sorted(p.name for p in folder.iterdir()) == sorted(result.result_files)

    async def test_accepts_bytes_payload(self, tmp_path: Path) -> None:
        """Decodes captures that return base64 bytes."""
        capture = Mock(spec=ScreenshotCapture)
        capture.take_screenshot = AsyncMock(return_value=base64.b64encode(PNG_BYTES))
        manager = AttachmentManager(capture=capture)
        result = make_result()

        await manager.attach_screenshot(tmp_path, result)

        (name,) = result.result_files
        assert (tmp_path / "In" / str(result.execution_id) / name).read_bytes() == (
            PNG_BYTES
        )

    async def test_no_extras_creates_nothing(self, tmp_path: Path) -> None:
        """Leaves the result untouched for an empty file list."""
        manager = AttachmentManager()
        result = make_result()

        await manager.attach_extras(tmp_path, result, [])

        assert result.execution_id is None
        assert list(tmp_path.iterdir()) == []
