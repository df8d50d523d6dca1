"""Hello World -- the simplest etch example.

Compile a template from a string and render it with context variables.
No templates directory needed.

Run:
    python app.py
"""

import etch
from etch import Environment

env = Environment()

# Compile from string
template = env.from_string("Hello, <%= name %>!")

# Render with context
output = template.render(name="World")

# Output tags escape HTML; raw tags do not
escaped = env.render("<%= html %> | <%- html %>", html="<b>hi</b>")

# Module-level shortcut through the shared default environment
greeting = etch.render("Hi <%= name %>", name="tobi", cache=True, filename="greeting.html")


def main() -> None:
    print(output)
    print(escaped)
    print(greeting)
    print()

    # Multiple renders with different context
    for name in ["Etch", "Tobi", "Python"]:
        print(template.render(name=name))


if __name__ == "__main__":
    main()
