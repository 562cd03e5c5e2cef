from __future__ import annotations

import importlib.metadata as importlib_metadata
import json
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

from scimitar import DictLoader, Engine

BASE_DIR = Path(__file__).resolve().parent
BENCHMARK_OUTPUT_DIR = BASE_DIR.parent / ".benchmarks"

TEMPLATES = {
    "minimal.html": "Hello @Model.name",
    "list.html": """\
<ul>
@for item in Model.items {
    <li class="@(item.active and 'active' or '')">@item.name: @item.description</li>
}
</ul>
""",
    "_site.html": """\
<html><head><title>@render_section('Title')</title></head>
<body>@render_body()<footer>@render_section('Footer')</footer></body></html>
""",
    "_section.html": """\
@layout '_site.html'
<nav>@ViewBag.Section</nav><main>@render_body()</main>
""",
    "page.html": """\
@layout '_section.html'
@{ ViewBag.Section = Model.section }
@section Title {@Model.title}
@for item in Model.items {
<p>@item.name</p>
}
@include('_card.html')
@section Footer {&copy; @Model.year}
""",
    "_card.html": "<div class=\"card\">@Model.title</div>",
}


@dataclass
class Item:
    name: str
    description: str
    active: bool


def _version(dist: str) -> str:
    try:
        return importlib_metadata.version(dist)
    except importlib_metadata.PackageNotFoundError:
        return "unknown"


def collect_environment_metadata() -> dict[str, object]:
    """Capture reproducibility metadata for each benchmark run."""
    return {
        "python": {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable,
        },
        "os": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "cpu": {
            "processor": platform.processor(),
            "count": os.cpu_count(),
        },
        "scimitar": _version("scimitar"),
    }


@pytest.fixture(scope="session")
def environment_metadata() -> dict[str, object]:
    """Write environment metadata to .benchmarks for ingestion."""
    metadata = collect_environment_metadata()
    BENCHMARK_OUTPUT_DIR.mkdir(exist_ok=True)
    (BENCHMARK_OUTPUT_DIR / "environment.json").write_text(json.dumps(metadata, indent=2))
    return metadata


@pytest.fixture(scope="session")
def engine() -> Engine:
    return Engine(DictLoader(TEMPLATES))


@pytest.fixture(scope="session")
def items() -> list[Item]:
    return [Item(f"item-{i}", f"Description <{i}>", i % 3 == 0) for i in range(100)]


@pytest.fixture(scope="session")
def page_model(items: list[Item]) -> dict[str, object]:
    return {"section": "Docs", "title": "Benchmarks", "items": items, "year": 2026}
