"""pytest plugin writing TRX reports through the reporter.

Each test module is reported as a suite, each test item as a case.
"""

import asyncio
import json
import logging
from collections.abc import Callable, Coroutine, Generator
from pathlib import Path
from typing import Any

import pytest

from trx_reporter import hookspecs
from trx_reporter.models.config import ReporterConfig
from trx_reporter.models.events import CaseInfo, FailedExpectation, RunInfo, SuiteInfo
from trx_reporter.reporter import TrxReporter

log = logging.getLogger(__name__)

PLUGIN_NAME = "trx-reporter"

extra_files_key = pytest.StashKey[list[Path]]()


def pytest_addhooks(pluginmanager: pytest.PytestPluginManager) -> None:
    """Register the hooks implemented by users of the plugin."""
    pluginmanager.add_hookspecs(hookspecs)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the command line options."""
    group = parser.getgroup("trx", "TRX report")
    group.addoption(
        "--trx-folder",
        dest="trx_folder",
        default=None,
        help="Write TRX reports into this folder",
    )
    group.addoption(
        "--trx-config",
        dest="trx_config",
        default=None,
        help="JSON reporter configuration (camelCase keys)",
    )
    group.addoption(
        "--trx-output-file",
        dest="trx_output_file",
        default=None,
        help="Report file name (default: one file per test module)",
    )
    group.addoption(
        "--trx-report-name",
        dest="trx_report_name",
        default=None,
        help="Report title",
    )
    group.addoption(
        "--trx-browser",
        dest="trx_browser",
        default=None,
        help="Label appended to test names and report file names",
    )
    group.addoption(
        "--trx-group-suites",
        dest="trx_group_suites",
        action="store_true",
        default=None,
        help="Write a single report for the whole session",
    )
    group.addoption(
        "--trx-extra-attachments",
        dest="trx_extra_attachments",
        action="store_true",
        default=None,
        help="Attach files registered with the trx_attach fixture",
    )


def build_config(config: pytest.Config) -> ReporterConfig | None:
    """Build the reporter configuration, None when reporting is disabled."""
    raw = config.getoption("trx_config")
    folder = config.getoption("trx_folder")
    if raw is None and folder is None:
        return None

    options: dict[str, Any] = json.loads(raw) if raw else {}
    overrides = {
        "folder": folder,
        "outputFile": config.getoption("trx_output_file"),
        "reportName": config.getoption("trx_report_name"),
        "browser": config.getoption("trx_browser"),
        "groupSuitesIntoSingleFile": config.getoption("trx_group_suites"),
        "extraAttachments": config.getoption("trx_extra_attachments"),
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    return ReporterConfig.model_validate(options)


def pytest_configure(config: pytest.Config) -> None:
    """Enable the reporter when a folder or configuration is given."""
    # xdist workers would each write partial documents
    if hasattr(config, "workerinput"):
        return
    reporter_config = build_config(config)
    if reporter_config is None:
        return
    capture = config.hook.pytest_trx_capture(config=config)
    if capture is None and reporter_config.screenshot_policy != "never":
        log.warning("Screenshots enabled but no pytest_trx_capture hook returned one")
    reporter = TrxReporter(config=reporter_config, capture=capture)
    config.pluginmanager.register(TrxPlugin(reporter=reporter), PLUGIN_NAME)


def pytest_unconfigure(config: pytest.Config) -> None:
    """Close and drop the reporter plugin."""
    plugin = config.pluginmanager.get_plugin(PLUGIN_NAME)
    if plugin is not None:
        plugin.close()
        config.pluginmanager.unregister(plugin)


@pytest.fixture
def trx_attach(request: pytest.FixtureRequest) -> Callable[[str | Path], None]:
    """Register a file to attach to the running test's TRX result."""
    files = request.node.stash.setdefault(extra_files_key, [])

    def attach(path: str | Path) -> None:
        files.append(Path(path))

    return attach


def suite_description(item: pytest.Item) -> str:
    """Name the suite of an item after its module."""
    module = getattr(item, "module", None)
    if module is not None:
        return module.__name__
    return Path(item.nodeid.split("::")[0]).stem


def failed_expectation(report: pytest.TestReport) -> FailedExpectation:
    """Turn a failed report into a failed expectation."""
    crash = getattr(report.longrepr, "reprcrash", None)
    message = crash.message if crash is not None else report.longreprtext
    return FailedExpectation(message=message, stack=report.longreprtext)


class TrxPlugin:
    """Translates pytest hooks into reporter lifecycle events."""

    def __init__(self, reporter: TrxReporter) -> None:
        self.reporter = reporter
        self._runner = asyncio.Runner(loop_factory=asyncio.new_event_loop)
        self._suite: SuiteInfo | None = None
        self._cases: dict[str, CaseInfo] = {}

    def close(self) -> None:
        """Close the event loop driving the reporter."""
        self._runner.close()

    def _run(self, coro: Coroutine[Any, Any, None]) -> None:
        self._runner.run(coro)

    def _enter_suite(self, description: str) -> None:
        if self._suite is not None and self._suite.description == description:
            return
        self._leave_suite()
        self._suite = SuiteInfo(description=description, full_name=description)
        self._run(self.reporter.suite_started(self._suite))

    def _leave_suite(self) -> None:
        if self._suite is not None:
            self._run(self.reporter.suite_done(self._suite))
            self._suite = None

    def pytest_collection_finish(self, session: pytest.Session) -> None:
        """Start the run once the items are known."""
        info = RunInfo(total_cases_defined=len(session.items))
        self._run(self.reporter.run_started(info))

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_protocol(
        self, item: pytest.Item, nextitem: pytest.Item | None
    ) -> Generator[None, object, object]:
        """Report the item as a case of its module's suite."""
        self._enter_suite(suite_description(item))
        case = CaseInfo(description=item.name, full_name=item.nodeid)
        self._cases[item.nodeid] = case
        self._run(self.reporter.case_started(case))

        outcome = yield

        del self._cases[item.nodeid]
        case.extra_files.extend(item.stash.get(extra_files_key, []))
        self._run(self.reporter.case_done(case))
        return outcome

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        """Collect failures of any phase of a running case."""
        case = self._cases.get(report.nodeid)
        if case is not None and report.failed:
            case.failed_expectations.append(failed_expectation(report))

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        """Close the last suite and finish the run."""
        self._leave_suite()
        info = RunInfo(total_cases_defined=session.testscollected)
        self._run(self.reporter.run_done(info))
        log.debug("TRX reporting finished")
