"""``smartfile`` command line.

    smartfile serve --port 8080     run the API
    smartfile cache clear           drop every cached response
    smartfile cache stats           backend, reachability and entry count
    smartfile version
"""

import typer

from smartfile import __version__
from smartfile.cli.cache_cmd import app as cache_app
from smartfile.cli.serve import app as serve_app

app = typer.Typer(
    name="smartfile",
    help="Smart File API: file management with response caching",
    no_args_is_help=True,
)
app.add_typer(serve_app, name="serve")
app.add_typer(cache_app, name="cache")


@app.command()
def version() -> None:
    """Print the installed version."""
    typer.echo(__version__)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
