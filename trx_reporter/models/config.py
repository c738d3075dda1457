"""Configuration for the TRX reporter."""

from pathlib import Path
from typing import Any, Literal, TypeAlias

from pydantic import AliasChoices, Field, field_validator

from trx_reporter.models.base import Model

ScreenshotPolicy: TypeAlias = Literal["always", "on-failure", "never"]


class ReporterConfig(Model):
    """Options supplied once when the reporter is constructed.

    Keys may be given in camelCase (``groupSuitesIntoSingleFile``) or as
    field names (``group_suites_into_single_file``).
    """

    folder: Path | None = Field(
        default=None, description="Output directory, created when missing"
    )
    output_file: str | None = Field(
        default=None,
        description="Document file name (derived from each suite when unset)",
    )
    report_name: str = Field(default="", description="Document title")
    browser: str = Field(
        default="", description="Label appended to case names and file names"
    )
    group_suites_into_single_file: bool = Field(
        default=False, description="Write one document for the whole run"
    )
    take_screenshot: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "takeScreenshot", "takeScreenshots", "take_screenshot"
        ),
        description="Capture a screenshot after every case",
    )
    take_screenshots_only_on_failures: bool = Field(
        default=False, description="Capture a screenshot after failing cases"
    )
    extra_attachments: bool = Field(
        default=False, description="Copy files registered by the case itself"
    )
    attachment_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds allowed per capture or copy (None waits forever)",
    )

    @field_validator("folder", "output_file", mode="before")
    @classmethod
    def _blank_as_unset(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @property
    def screenshot_policy(self) -> ScreenshotPolicy:
        """When screenshots are taken for a completed case."""
        if self.take_screenshot:
            return "always"
        if self.take_screenshots_only_on_failures:
            return "on-failure"
        return "never"
