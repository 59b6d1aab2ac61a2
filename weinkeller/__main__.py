"""Allow ``python -m weinkeller``."""

from weinkeller.cli.main import app

app()
