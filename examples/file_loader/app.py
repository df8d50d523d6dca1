"""File-based templates -- the most common real-world pattern.

Loads templates from disk relative to ``root``, wraps every page in a layout
and pulls the navigation in with an include.

Run:
    python app.py
"""

from pathlib import Path

from etch import Environment

templates_dir = Path(__file__).parent / "templates"
env = Environment(root=templates_dir, layout="layout", cache=True)

nav_items = [
    {"url": "/", "label": "Home"},
    {"url": "/about", "label": "About"},
]

home_output = env.render_file(
    "home",
    site_name="My Site",
    nav_items=nav_items,
    title="Welcome",
    message="This is an etch-powered site with a layout & includes.",
)

about_output = env.render_file(
    "about",
    site_name="My Site",
    nav_items=nav_items,
    title="About Us",
    description="Built with etch, embedded tags for Python.",
)


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)


if __name__ == "__main__":
    main()
