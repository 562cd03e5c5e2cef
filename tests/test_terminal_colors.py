"""Tests for terminal colour helpers used in error messages."""

import pytest

from scimitar.environment import terminal
from scimitar.environment.exceptions import ExecutionError, ParseError, TemplateNotFoundError
from scimitar._types import SourcePosition


@pytest.fixture
def colors_on(monkeypatch):
    monkeypatch.setattr(terminal, "_USE_COLORS", True)


@pytest.fixture
def colors_off(monkeypatch):
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


class TestColorDetection:
    """Environment variables decide whether colours are used."""

    def test_no_color(self, monkeypatch):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        monkeypatch.setenv("NO_COLOR", "1")
        assert not terminal._should_use_colors()

    def test_force_color_wins(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert terminal._should_use_colors()

    def test_supports_color_reflects_cached_value(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert not terminal.supports_color()
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        assert terminal.supports_color()


class TestColorize:
    def test_plain_when_disabled(self, colors_off):
        result = terminal.colorize("Error", "bright_red", "bold")
        assert result == "Error"

    def test_codes_when_enabled(self, colors_on):
        result = terminal.colorize("Error", "bright_red", "bold")
        assert result == "\033[91m\033[1mError\033[0m"

    def test_no_colors_requested(self, colors_on):
        assert terminal.colorize("text") == "text"

    def test_strip_colors(self):
        assert terminal.strip_colors("\033[91m\033[1mError\033[0m") == "Error"


class TestSemanticHelpers:
    @pytest.mark.parametrize(
        ("helper", "code"),
        [
            (terminal.location, "\033[36m"),
            (terminal.hint, "\033[32m"),
            (terminal.dim_text, "\033[2m"),
            (terminal.error_text, "\033[91m"),
        ],
    )
    def test_helper_colour(self, colors_on, helper, code):
        result = helper("page.html:3")
        assert result.startswith(code)
        assert terminal.strip_colors(result) == "page.html:3"

    def test_error_code_is_bold(self, colors_on):
        result = terminal.error_code("S-RUN-001")
        assert "\033[1m" in result
        assert terminal.strip_colors(result) == "S-RUN-001"

    def test_source_line(self, colors_on):
        normal = terminal.format_source_line(42, "@Model.Name")
        error = terminal.format_source_line(42, "@Model.Nme", is_error=True)
        assert terminal.strip_colors(normal) == "  42 | @Model.Name"
        assert terminal.strip_colors(error) == "> 42 | @Model.Nme"
        assert "\033[91m" in error


class TestPlainTextMessages:
    """Error messages stay readable with colours off."""

    def test_helpers_return_plain_text(self, colors_off):
        assert terminal.error_code("S-RUN-001") == "S-RUN-001"
        assert terminal.location("page.html") == "page.html"
        assert terminal.hint("Hint:") == "Hint:"

    def test_parse_error(self, colors_off):
        error = ParseError(
            "Section 'Foot' is never closed",
            SourcePosition(1, 0),
            template_key="page.html",
            source="@section Foot {",
            suggestion="Add the matching '}'",
        )
        text = str(error)
        assert "\033[" not in text
        assert "--> page.html:1:0" in text
        assert ">  1 | @section Foot {" in text
        assert "Suggestion: Add the matching '}'" in text

    def test_execution_error(self, colors_off):
        error = ExecutionError("ZeroDivisionError: division by zero", template_key="page.html")
        assert str(error) == "Runtime Error: ZeroDivisionError: division by zero\n  Location: page.html"

    def test_format_compact(self, colors_off):
        assert TemplateNotFoundError("Template 'x' not found").format_compact() == (
            "S-TPL-001: Template 'x' not found"
        )
