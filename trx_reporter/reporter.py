"""Reporter turning runner lifecycle events into TRX documents."""

import logging
import os
import socket
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from trx_reporter.attachments import AttachmentManager
from trx_reporter.base import LifecycleReporter
from trx_reporter.capture import ScreenshotCapture
from trx_reporter.fs import ensure_folder_exists, write_document
from trx_reporter.models.config import ReporterConfig
from trx_reporter.models.events import (
    CaseInfo,
    FailedExpectation,
    RunInfo,
    SuiteInfo,
)
from trx_reporter.models.run import RunTimes, TestRun, UnitTest, UnitTestResult
from trx_reporter.timing import calculate_run_time
from trx_reporter.trx import render_run

log = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".trx"
METHOD_CODE_BASE = "trx-reporter"
FAILURE_SEPARATOR = " - "


class ReporterStateError(Exception):
    """Raised when a case event arrives while no run is open."""


def attachments_folder_for(output_file: Path) -> Path:
    """Derive the attachments folder from a document path.

    Only a trailing document suffix is stripped, so a document named `.trx`
    keeps its attachments beside it. The folder never takes the document's
    own name.
    """
    name = output_file.name.removesuffix(DOCUMENT_SUFFIX)
    if name == output_file.name:
        name = output_file.stem if output_file.suffix else f"{name}_files"
    return output_file.parent / name


def combine_properties(expectations: list[FailedExpectation], prop: str) -> str:
    """Join one property of every failed expectation, in order."""
    return FAILURE_SEPARATOR.join(getattr(e, prop) for e in expectations)


@dataclass(kw_only=True)
class TrxReporter(LifecycleReporter):
    """Records runner events and writes them as TRX documents.

    In grouping mode one document is written when the run is done,
    otherwise one document is written per suite.
    """

    config: ReporterConfig
    capture: ScreenshotCapture | None = None
    clock: Callable[[], datetime] = datetime.now
    computer_name: str = field(default_factory=socket.gethostname)
    run_user: str = field(
        default_factory=lambda: os.environ.get("USERNAME", os.environ.get("USER", ""))
    )

    run: TestRun | None = field(default=None, init=False)
    output_file: Path | None = field(default=None, init=False)
    attachments_folder: Path | None = field(default=None, init=False)
    suite_name: str = field(default="", init=False)
    attachments: AttachmentManager = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.attachments = AttachmentManager(
            capture=self.capture, timeout=self.config.attachment_timeout
        )
        if self.config.output_file:
            self.output_file = self.build_output_path(self.config.output_file)

    @property
    def grouping(self) -> bool:
        """Whether all suites go into a single document."""
        return self.config.group_suites_into_single_file

    def build_output_path(self, file_name: str) -> Path:
        """Place a file name in the output folder, prefixed with the browser."""
        if self.config.browser:
            file_name = f"{self.config.browser}_{file_name}"
        if self.config.folder is None:
            return Path(file_name)
        return self.config.folder / file_name

    def begin_test_run(self) -> None:
        """Open a new run, replacing any run held in memory."""
        self.run = TestRun(
            name=self.config.report_name,
            run_user=self.run_user,
            times=RunTimes.at(self.clock()),
        )

    async def run_started(self, info: RunInfo) -> None:
        """Open the single run when grouping suites."""
        log.debug("Run started: %d case(s) defined", info.total_cases_defined)
        if self.grouping:
            await ensure_folder_exists(self.config.folder)
            self.begin_test_run()

    async def suite_started(self, suite: SuiteInfo) -> None:
        """Resolve output paths and open a run for the suite if not grouping."""
        log.debug("Suite started: %s", suite.full_name or suite.description)
        await ensure_folder_exists(self.config.folder)

        if self.output_file is None:
            self.output_file = self.build_output_path(
                suite.description + DOCUMENT_SUFFIX
            )
        self.attachments_folder = attachments_folder_for(self.output_file)

        if not self.grouping:
            self.begin_test_run()

        self.suite_name = suite.description

    async def case_started(self, case: CaseInfo) -> None:
        """Stamp the case start time and mirror it into the run."""
        run = self._require_run()
        case.start_time = self.clock()
        run.times.start = case.start_time

    async def case_done(self, case: CaseInfo) -> None:
        """Record the finished case, attaching files per configuration."""
        run = self._require_run()
        finished_at = self.clock()
        case.finished_at = finished_at
        browser = self.config.browser

        result = UnitTestResult(
            test=UnitTest(
                name=f"{self.suite_name} - {case.description} - {browser}",
                method_name=case.description,
                method_class_name=self.suite_name,
                method_code_base=METHOD_CODE_BASE,
                description=f"{case.description} - {browser}",
            ),
            computer_name=self.computer_name,
            outcome="Passed" if case.passed else "Failed",
            duration=calculate_run_time(case.start_time, finished_at),
            start_time=case.start_time,
            end_time=finished_at,
        )
        if not case.passed:
            messages = combine_properties(case.failed_expectations, "message")
            result.output = messages
            result.error_message = messages
            result.error_stacktrace = combine_properties(
                case.failed_expectations, "stack"
            )

        await self._attach(case, result)
        run.add_result(result)
        log.debug(
            "Case done: %s (%s)", case.full_name or result.test.name, result.outcome
        )

    async def suite_done(self, suite: SuiteInfo) -> None:
        """Write the suite's document when not grouping."""
        log.debug("Suite done: %s", suite.full_name or suite.description)
        if not self.grouping:
            self.write_result_file()
            self.output_file = None

    async def run_done(self, info: RunInfo) -> None:
        """Write the single document when grouping."""
        log.debug("Run done")
        if self.grouping:
            self.write_result_file()

    def write_result_file(self) -> None:
        """Finish the current run and write it to the output file.

        Does nothing when no output file is resolved or no run is open.
        """
        if self.output_file is None or self.run is None:
            return
        self.run.times.finish = self.clock()
        folder = attachments_folder_for(self.output_file)
        self.run.deployment_root = (
            folder.name if folder != self.output_file.parent else ""
        )
        write_document(self.output_file, render_run(self.run))
        log.info(
            "Wrote %d result(s) to %s", len(self.run.results), self.output_file
        )

    async def _attach(self, case: CaseInfo, result: UnitTestResult) -> None:
        policy = self.config.screenshot_policy
        wants_screenshot = policy == "always" or (
            policy == "on-failure" and not case.passed
        )
        wants_extras = self.config.extra_attachments and bool(case.extra_files)
        if not (wants_screenshot or wants_extras):
            return

        if self.attachments_folder is None:
            log.warning(
                "No output file resolved, skipping attachments for %s",
                case.description,
            )
            return

        if wants_screenshot:
            await self.attachments.attach_screenshot(self.attachments_folder, result)
        if wants_extras:
            await self.attachments.attach_extras(
                self.attachments_folder, result, case.extra_files
            )

    def _require_run(self) -> TestRun:
        if self.run is None:
            raise ReporterStateError("No test run is open")
        return self.run
