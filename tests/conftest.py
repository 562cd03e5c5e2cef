"""Pytest configuration and fixtures for scimitar tests."""

import pytest

from scimitar import DictLoader, Engine, EngineConfig


@pytest.fixture
def engine():
    """Create an Engine with no loader (templates are added at runtime)."""
    return Engine()


@pytest.fixture
def engine_raw():
    """Create an Engine that writes values without HTML encoding."""
    return Engine(config=EngineConfig(encoding="raw"))


@pytest.fixture
def engine_with_loader():
    """Create an Engine with a DictLoader holding a small site."""
    loader = DictLoader(
        {
            "_layout.html": (
                "<html>"
                "<head><title>@ViewBag.Title</title>@render_section('Head')</head>"
                "<body>@render_body()</body>"
                "</html>"
            ),
            "index.html": (
                "@layout '_layout.html'\n"
                "@{ ViewBag.Title = 'Home' }\n"
                "Hello @Model.Name"
                "@section Head {<meta name=\"page\" content=\"index\">}"
            ),
            "partial.html": "<p>Partial @Model.Name</p>",
            "plain.html": "Plain text",
        }
    )
    return Engine(loader)


def assert_template_equal(template_result: str, expected: str) -> None:
    """Assert template result equals expected, normalizing whitespace.

    Args:
        template_result: The actual template rendering result.
        expected: The expected output.
    """
    actual_normalized = " ".join(template_result.split())
    expected_normalized = " ".join(expected.split())
    assert actual_normalized == expected_normalized, (
        f"Template output mismatch:\n"
        f"  Actual: {actual_normalized!r}\n"
        f"  Expected: {expected_normalized!r}"
    )


def assert_contains(template_result: str, *expected_parts: str) -> None:
    """Assert template result contains all expected parts.

    Args:
        template_result: The actual template rendering result.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in template_result, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {template_result!r}"
        )
