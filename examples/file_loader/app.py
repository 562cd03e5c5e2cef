"""File-based templates -- the most common real-world pattern.

Loads templates from disk with FileSystemLoader. ``_imports.html`` gives
every page a default layout and a shared helper method; the layout includes
the navigation and renders an optional footer section.

Run:
    python app.py
"""

from pathlib import Path

from scimitar import Engine, FileSystemLoader

templates_dir = Path(__file__).parent / "templates"
engine = Engine(FileSystemLoader(templates_dir))

site = {
    "site_name": "My Site",
    "nav_items": [
        {"url": "/", "label": "Home"},
        {"url": "/about", "label": "About"},
    ],
}

home_output = engine.run(
    "home.html",
    {**site, "message": "This is a scimitar-powered site with layouts & sections."},
)

about_output = engine.run(
    "about.html",
    {**site, "description": "Razor-style templates compiled to Python classes."},
)


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)


if __name__ == "__main__":
    main()
