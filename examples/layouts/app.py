"""Layouts and sections -- nested layouts with in-memory templates.

A page renders inside ``_section.html``, which itself renders inside
``_site.html``. Sections defined by the page (``Title``, ``Scripts``) are
visible to both layouts; the view bag carries values upwards.

Run:
    python app.py
"""

from scimitar import DictLoader, Engine

templates = {
    "_site.html": """\
<!DOCTYPE html>
<html>
<head><title>@render_section('Title')</title></head>
<body class="@ViewBag.BodyClass">
@render_body()
@if is_section_defined('Scripts') {
<script>@render_section('Scripts')</script>
}
</body>
</html>
""",
    "_section.html": """\
@layout '_site.html'
@{ ViewBag.BodyClass = "docs" }
<aside>@ViewBag.Section</aside>
<main>@render_body()</main>
""",
    "page.html": """\
@layout '_section.html'
@{ ViewBag.Section = Model.section }
@section Title {@Model.heading &ndash; Docs}
<h1>@Model.heading</h1>
@for paragraph in Model.paragraphs {
<p>@paragraph</p>
}
@section Scripts {highlight();}
""",
}

engine = Engine(DictLoader(templates))

output = engine.run(
    "page.html",
    {
        "section": "Guides",
        "heading": "Layouts",
        "paragraphs": ["Layouts wrap a page.", "Sections <fill> named holes."],
    },
)


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
