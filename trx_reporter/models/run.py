"""In-memory model of a TRX test run."""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, TypeAlias

Outcome: TypeAlias = Literal["Passed", "Failed"]


def new_identifier() -> str:
    """Return a random identifier for test ids, execution ids and file names."""
    return str(uuid.uuid4())


@dataclass(kw_only=True)
class RunTimes:
    """Timestamps of a run."""

    creation: datetime
    queuing: datetime
    start: datetime
    finish: datetime

    @classmethod
    def at(cls, moment: datetime) -> "RunTimes":
        """Create times with every field set to ``moment``."""
        return cls(creation=moment, queuing=moment, start=moment, finish=moment)


@dataclass(frozen=True, kw_only=True)
class UnitTest:
    """Definition of an executed test method."""

    name: str
    method_name: str
    method_class_name: str
    method_code_base: str
    description: str
    id: str = field(default_factory=new_identifier)


@dataclass(kw_only=True)
class UnitTestResult:
    """Recorded outcome of one executed case."""

    test: UnitTest
    computer_name: str
    outcome: Outcome
    duration: str
    start_time: datetime | None
    end_time: datetime
    output: str | None = None
    error_message: str | None = None
    error_stacktrace: str | None = None
    execution_id: str | None = None
    result_files: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class TestRun:
    """One logical test execution, serialized as one document."""

    __test__ = False

    name: str
    run_user: str
    times: RunTimes
    deployment_root: str | None = None
    id: str = field(default_factory=new_identifier)
    results: list[UnitTestResult] = field(default_factory=list)

    def add_result(self, result: UnitTestResult) -> None:
        """Append a result, giving it an execution id if it has none yet."""
        if result.execution_id is None:
            result.execution_id = new_identifier()
        self.results.append(result)

    @property
    def passed(self) -> Sequence[UnitTestResult]:
        """Results with a ``Passed`` outcome."""
        return [r for r in self.results if r.outcome == "Passed"]

    @property
    def failed(self) -> Sequence[UnitTestResult]:
        """Results with a ``Failed`` outcome."""
        return [r for r in self.results if r.outcome == "Failed"]
