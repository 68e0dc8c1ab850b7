"""Tests for the format_result dispatcher and OutputSettings."""

import json

from cmdbgraph.output.formatters import OutputSettings, format_result
from cmdbgraph.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="NOT_FOUND", message=msg),
    )


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResult:
    def test_default_is_rich(self) -> None:
        assert format_result(_ok(key="value")).startswith("OK")

    def test_json(self) -> None:
        output = format_result(_ok(key="value"), settings=OutputSettings(json_output=True))
        parsed = json.loads(output)
        assert parsed["ok"] is True
        assert parsed["data"] == {"key": "value"}

    def test_json_error(self) -> None:
        output = format_result(_err(msg="missing"), settings=OutputSettings(json_output=True))
        assert json.loads(output)["error"]["message"] == "missing"

    def test_json_beats_quiet(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        assert json.loads(format_result(_ok(), settings=settings))["op"] == "test"

    def test_quiet(self) -> None:
        assert format_result(_ok(), settings=OutputSettings(quiet=True)) == "OK: test"
