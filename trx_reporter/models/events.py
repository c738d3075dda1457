"""Event info objects handed to the reporter by the host runner."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class FailedExpectation:
    """A single failed assertion reported for a case."""

    message: str = ""
    stack: str = ""


@dataclass(frozen=True, kw_only=True)
class RunInfo:
    """Information about the whole test run."""

    total_cases_defined: int = 0


@dataclass(frozen=True, kw_only=True)
class SuiteInfo:
    """A group of cases, one report document in per-suite mode."""

    description: str
    full_name: str = ""


@dataclass(kw_only=True)
class CaseInfo:
    """A single test case.

    ``start_time`` and ``finished_at`` are stamped by the reporter; the host
    fills ``failed_expectations`` and may register ``extra_files`` to attach.
    """

    description: str
    full_name: str = ""
    failed_expectations: list[FailedExpectation] = field(default_factory=list)
    extra_files: list[Path] = field(default_factory=list)
    start_time: datetime | None = None
    finished_at: datetime | None = None

    @property
    def passed(self) -> bool:
        """Whether no expectation failed."""
        return not self.failed_expectations
