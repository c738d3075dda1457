"""Abstract base class for reporters driven by a test runner."""

from abc import ABC, abstractmethod

from trx_reporter.models.events import CaseInfo, RunInfo, SuiteInfo


class LifecycleReporter(ABC):
    """Receives test runner lifecycle events.

    The runner awaits each call before delivering the next event, so
    implementations never see overlapping calls.
    """

    @abstractmethod
    async def run_started(self, info: RunInfo) -> None:
        """Handle the start of the whole run.

        Args:
            info: Information about the run

        """

    @abstractmethod
    async def suite_started(self, suite: SuiteInfo) -> None:
        """Handle the start of a suite.

        Args:
            suite: The suite about to run its cases

        """

    @abstractmethod
    async def case_started(self, case: CaseInfo) -> None:
        """Handle the start of a case.

        Args:
            case: The case about to run

        """

    @abstractmethod
    async def case_done(self, case: CaseInfo) -> None:
        """Handle a finished case.

        Args:
            case: The finished case with its failed expectations

        """

    @abstractmethod
    async def suite_done(self, suite: SuiteInfo) -> None:
        """Handle a finished suite.

        Args:
            suite: The finished suite

        """

    @abstractmethod
    async def run_done(self, info: RunInfo) -> None:
        """Handle the end of the whole run.

        Args:
            info: Information about the run

        """
