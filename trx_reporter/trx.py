"""Rendering of test runs as Visual Studio TRX documents."""

import re
import xml.etree.ElementTree as ET

from trx_reporter.models.run import TestRun, UnitTestResult
from trx_reporter.timing import format_timestamp

TRX_NAMESPACE = "http://microsoft.com/schemas/VisualStudio/TeamTest/2010"
UNIT_TEST_TYPE = "13cdc9d9-ddb5-4fa4-a97d-d965ccfc6d4b"
UNIT_TEST_ADAPTER = "Microsoft.VisualStudio.TestTools.TestTypes.Unit.UnitTestAdapter"
RESULTS_NOT_IN_A_LIST_ID = "8c84fa94-04c1-424b-9868-57a2d4851a1d"
ALL_LOADED_RESULTS_ID = "19431567-8539-422a-85d7-44ee4e166bda"

# Counters written as zero, the reporter only knows passed and failed cases
ZERO_COUNTERS = (
    "error",
    "timeout",
    "aborted",
    "inconclusive",
    "passedButRunAborted",
    "notRunnable",
    "notExecuted",
    "disconnected",
    "warning",
    "completed",
    "inProgress",
    "pending",
)

# Characters outside the XML 1.0 Char production
INVALID_XML_CHARS = re.compile(
    "[^\u0009\u000a\u000d\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def xml_text(value: str) -> str:
    """Replace characters XML 1.0 cannot carry, such as ANSI escapes."""
    return INVALID_XML_CHARS.sub("\ufffd", value)


def render_run(run: TestRun) -> str:
    """Render a run as a TRX document.

    Args:
        run: The run to render

    Returns:
        XML text with declaration

    """
    root = ET.Element(
        "TestRun",
        {
            "id": run.id,
            "name": xml_text(run.name),
            "runUser": run.run_user,
            "xmlns": TRX_NAMESPACE,
        },
    )
    ET.SubElement(
        root,
        "Times",
        {
            "creation": format_timestamp(run.times.creation),
            "queuing": format_timestamp(run.times.queuing),
            "start": format_timestamp(run.times.start),
            "finish": format_timestamp(run.times.finish),
        },
    )

    settings = ET.SubElement(root, "TestSettings", {"name": "Default", "id": run.id})
    deployment = ET.SubElement(settings, "Deployment")
    if run.deployment_root:
        deployment.set("runDeploymentRoot", run.deployment_root)

    _add_summary(root, run)

    definitions = ET.SubElement(root, "TestDefinitions")
    for result in run.results:
        _add_unit_test(definitions, result)

    lists = ET.SubElement(root, "TestLists")
    for list_name, list_id in (
        ("Results Not in a List", RESULTS_NOT_IN_A_LIST_ID),
        ("All Loaded Results", ALL_LOADED_RESULTS_ID),
    ):
        ET.SubElement(lists, "TestList", {"name": list_name, "id": list_id})

    entries = ET.SubElement(root, "TestEntries")
    for result in run.results:
        ET.SubElement(
            entries,
            "TestEntry",
            {
                "testId": result.test.id,
                "executionId": result.execution_id or "",
                "testListId": RESULTS_NOT_IN_A_LIST_ID,
            },
        )

    results = ET.SubElement(root, "Results")
    for result in run.results:
        _add_result(results, result)

    ET.indent(root)
    xml_declaration = '<?xml version="1.0" encoding="UTF-8"?>\n'
    return xml_declaration + ET.tostring(root, encoding="unicode")


def _add_summary(root: ET.Element, run: TestRun) -> None:
    failed = len(run.failed)
    summary = ET.SubElement(
        root, "ResultSummary", {"outcome": "Failed" if failed else "Completed"}
    )
    counters = {
        "total": str(len(run.results)),
        "executed": str(len(run.results)),
        "passed": str(len(run.passed)),
        "failed": str(failed),
    }
    counters.update({name: "0" for name in ZERO_COUNTERS})
    ET.SubElement(summary, "Counters", counters)


def _add_unit_test(definitions: ET.Element, result: UnitTestResult) -> None:
    test = result.test
    unit_test = ET.SubElement(
        definitions,
        "UnitTest",
        {
            "name": xml_text(test.name),
            "storage": test.method_code_base,
            "id": test.id,
        },
    )
    ET.SubElement(unit_test, "Description").text = xml_text(test.description)
    ET.SubElement(unit_test, "Execution", {"id": result.execution_id or ""})
    ET.SubElement(
        unit_test,
        "TestMethod",
        {
            "codeBase": test.method_code_base,
            "adapterTypeName": UNIT_TEST_ADAPTER,
            "className": xml_text(test.method_class_name),
            "name": xml_text(test.method_name),
        },
    )


def _add_result(results: ET.Element, result: UnitTestResult) -> None:
    attributes = {
        "executionId": result.execution_id or "",
        "testId": result.test.id,
        "testName": xml_text(result.test.name),
        "computerName": result.computer_name,
        "duration": result.duration,
        "endTime": format_timestamp(result.end_time),
        "testType": UNIT_TEST_TYPE,
        "outcome": result.outcome,
        "testListId": RESULTS_NOT_IN_A_LIST_ID,
    }
    if result.start_time is not None:
        attributes["startTime"] = format_timestamp(result.start_time)
    element = ET.SubElement(results, "UnitTestResult", attributes)

    if result.output is not None or result.error_message is not None:
        output = ET.SubElement(element, "Output")
        if result.output is not None:
            ET.SubElement(output, "StdOut").text = xml_text(result.output)
        if result.error_message is not None or result.error_stacktrace is not None:
            error_info = ET.SubElement(output, "ErrorInfo")
            message = xml_text(result.error_message or "")
            ET.SubElement(error_info, "Message").text = message
            ET.SubElement(error_info, "StackTrace").text = xml_text(
                result.error_stacktrace or ""
            )

    if result.result_files:
        files = ET.SubElement(element, "ResultFiles")
        for path in result.result_files:
            ET.SubElement(files, "ResultFile", {"path": path})
