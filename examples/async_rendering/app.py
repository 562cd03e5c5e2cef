"""Async rendering -- awaiting renders from an event loop.

``Engine.run_async`` runs a render in a worker thread, so an async
application can render many pages at once without blocking its loop. The
pages share one compiled template per (key, model type).

Run:
    python app.py
"""

import asyncio
from dataclasses import dataclass, field

from scimitar import DictLoader, Engine


@dataclass
class Feature:
    id: int
    title: str


@dataclass
class FeaturePage:
    heading: str
    features: list[Feature] = field(default_factory=list)


templates = {
    "features.html": """\
<h1>@Model.heading</h1>
<p>Total: @len(Model.features) features</p>
<ul>
@for feature in Model.features {
    <li>#@feature.id: @feature.title</li>
}
</ul>
""",
}

engine = Engine(DictLoader(templates))

pages = [
    FeaturePage(
        heading=f"Release {n}",
        features=[Feature(1, "Layouts & sections"), Feature(2, "Concurrent compilation"), Feature(3, "Includes")],
    )
    for n in range(1, 4)
]


async def render_all() -> list[str]:
    """Render every page concurrently."""
    return await asyncio.gather(*(engine.run_async("features.html", page) for page in pages))


outputs = asyncio.run(render_all())
output = outputs[0]


def main() -> None:
    for html in outputs:
        print(html)


if __name__ == "__main__":
    main()
