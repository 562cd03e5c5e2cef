"""Hello World -- the simplest scimitar example.

Register a template from a string and render it with a dynamic model.
No templates directory needed.

Run:
    python app.py
"""

from scimitar import Engine

engine = Engine()

# Register from string
template = engine.from_string("Hello, @Model.Name!")

# Render with a mapping model
output = template.render({"Name": "World"})


def main() -> None:
    print(output)
    print()

    # Multiple renders with different models, one compilation
    for name in ["Scimitar", "Razor", "Python"]:
        print(template.render({"Name": name}))
    print(engine.cache_info())


if __name__ == "__main__":
    main()
