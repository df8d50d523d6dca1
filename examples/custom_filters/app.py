"""Custom filters -- extending etch's filter chains.

Demonstrates the ``filters`` option, assignment into ``env.filters`` and
per-render filters, all usable in ``<%=: value | name:args %>`` chains.

Run:
    python app.py
"""

from etch import Environment


def money(amount: float, currency: str = "$") -> str:
    """Format amount as currency."""
    return f"{currency}{amount:,.2f}"


def pluralize(n: int, singular: str, plural: str) -> str:
    """Return singular or plural form based on count."""
    return singular if n == 1 else plural


env = Environment(filters={"money": money})
env.filters["pluralize"] = pluralize

TEMPLATE_SOURCE = """\
<h1>Invoice</h1>
<p><%= item_count %> <%=: item_count | pluralize:"item","items" %></p>
<ul>
<% for item in items: -%>
  <li><%= item.name %>: <%=: item.price * item.qty | money %></li>
<% end -%>
</ul>
<p>Total: <%=: total | money %> (<%=: total | money:"€" %>)</p>
<p><%=: items | map:"name" | join:", " | shout %></p>
"""

output = env.render(
    TEMPLATE_SOURCE,
    total=1234.56,
    item_count=3,
    items=[
        {"name": "Widget A", "price": 19.99, "qty": 2},
        {"name": "Widget B", "price": 5.00, "qty": 1},
    ],
    filters={"shout": lambda s: s.upper() + "!"},
)


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
