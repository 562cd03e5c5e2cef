"""Concurrent rendering -- 8 threads sharing one Engine.

The compiled template class is shared read-only; every render gets its own
template instance and execute context, so simultaneous renders never see
each other's state. The first renders race to compile and the cache makes
sure exactly one of them does.

Run:
    python app.py
"""

from concurrent.futures import ThreadPoolExecutor

from scimitar import Engine

engine = Engine()

TEMPLATE_SOURCE = """\
<article id="page-@Model.page_id">
  <h1>@Model.title</h1>
  <ul>
  @for tag in Model.tags {
    <li>@tag</li>
  }
  </ul>
</article>"""

template = engine.from_string(TEMPLATE_SOURCE, "article.html")

pages = [
    {"page_id": i, "title": f"Page {i}", "tags": [f"tag-{i}-a", f"tag-{i}-b", f"tag-{i}-c"]}
    for i in range(8)
]


def render_page(page: dict) -> str:
    """Render a single page -- called from a worker thread."""
    return template.render(page)


with ThreadPoolExecutor(max_workers=8) as pool:
    results = list(pool.map(render_page, pages))

output = "\n".join(results)


def main() -> None:
    print(f"Rendered {len(results)} pages across 8 threads:\n")
    for i, html in enumerate(results):
        print(f"--- Thread {i} ---")
        print(html)
        print()
    print(engine.cache_info())


if __name__ == "__main__":
    main()
