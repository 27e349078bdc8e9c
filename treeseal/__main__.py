"""Allow ``python -m treeseal``."""

from treeseal.cli.commands import app

app(prog_name="treeseal")
