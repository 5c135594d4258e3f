import typer

from deep_populate.cli.db import db_app
from deep_populate.cli.populate import plan, query, sanitize
from deep_populate.cli.serve import serve_app

app = typer.Typer(
    name="deep-populate",
    help="Deep Populate CLI: build populate plans and query sanitized content.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("plan")(plan)
app.command("sanitize")(sanitize)
app.command("query")(query)
app.add_typer(db_app, name="db")
app.add_typer(serve_app, name="serve")


def main() -> None:
    app()
