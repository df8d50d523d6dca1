"""Template caching -- compile once per filename, render many times.

With ``cache=True`` a template is compiled the first time its filename is
seen; later renders reuse the compiled program (even if different source is
passed) until the cache is cleared.

Run:
    python app.py
"""

from etch import Environment

env = Environment(cache=True)

DASHBOARD = "<h1>Dashboard</h1><p>Visitors: <%= visitors %></p>"

first_output = env.render(DASHBOARD, filename="dashboard.html", visitors=10)
second_output = env.render(DASHBOARD, filename="dashboard.html", visitors=9999)
stats_after_two = env.cache.stats()

# Same filename, new source: the cached program wins
stale_output = env.render("<h1>Changed</h1>", filename="dashboard.html", visitors=42)

env.clear_cache()
fresh_output = env.render("<h1>Changed</h1>", filename="dashboard.html", visitors=42)


def main() -> None:
    print(first_output)
    print(second_output)
    print(stats_after_two)
    print(stale_output)
    print(fresh_output)


if __name__ == "__main__":
    main()
