"""DictLoader -- in-memory templates without filesystem.

Templates from a dictionary. No templates directory needed.
Use case: tests, generated templates, single-file apps.

Run:
    python app.py
"""

from etch import DictLoader, Environment

templates = {
    "layout.html": """\
<!DOCTYPE html>
<html>
<head><title><%= title %></title></head>
<body>
    <nav>
    <% for item in nav_items: %>
        <a href="<%= item.url %>"><%= item.label %></a>
    <% end %>
    </nav>
    <main><%- body %></main>
</body>
</html>
""",
    "page.html": """\
<h1><%= heading %></h1>
<p><%= message %></p>""",
}

env = Environment(loader=DictLoader(templates), layout="layout")

output = env.render_file(
    "page",
    title="DictLoader Demo",
    nav_items=[
        {"url": "/", "label": "Home"},
        {"url": "/about", "label": "About"},
    ],
    heading="In-Memory Templates",
    message="No filesystem required. Templates loaded from a dict.",
)


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
