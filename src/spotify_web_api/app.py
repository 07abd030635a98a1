"""Typer application and CLI entry point for spotify-web-api.

This module wires the top-level Typer application: the ``auth`` sub-command
group from :mod:`spotify_web_api.commands.auth` and a handful of API
commands that run on the cached token:

* ``get PATH`` -- call any GET endpoint and print the JSON response,
  optionally following its pages.
* ``me`` -- the current user's profile.
* ``playlists`` -- the current user's playlists as a table.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.

See Also:
    :mod:`spotify_web_api.output`: Output formatting initialised in
    :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import Any, Optional

import typer
from pydantic import BaseModel

from spotify_web_api import __version__
from spotify_web_api.api.endpoint import RawEndpoint
from spotify_web_api.api.paged import Pagination
from spotify_web_api.api.playlists import GetCurrentUserPlaylists
from spotify_web_api.api.users import GetCurrentUserProfile
from spotify_web_api.commands.auth import auth_app
from spotify_web_api.commands.session import handle_errors, open_client
from spotify_web_api.exceptions import ConfigurationError
from spotify_web_api.exit_codes import EXIT_GENERIC_FAILURE
from spotify_web_api.output import format_response, print_table

app = typer.Typer(
    name="spotify-web-api",
    help="Call the Spotify Web API from the command line.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(auth_app, name="auth", help="Obtain, inspect and forget tokens.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"spotify-web-api {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every request to stderr."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~spotify_web_api.output.OutputManager`
    built from the flags and routes library logging through it.
    """
    from spotify_web_api.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.install_logging()
    set_output(output)


# ------------------------------------------------------------------ #
# API commands
# ------------------------------------------------------------------ #


def parse_params(pairs: Optional[list[str]]) -> list[tuple[str, str]]:
    """Split ``key=value`` strings into query pairs, keeping their order.

    Raises:
        ConfigurationError: If an entry has no ``=`` or an empty key.
    """
    params: list[tuple[str, str]] = []
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"Invalid parameter '{pair}', expected key=value")
        params.append((key, value))
    return params


def _to_data(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, list):
        return [_to_data(item) for item in value]
    return value


@app.command("get")
def get_command(
    path: str = typer.Argument(..., help="Path relative to the API base, e.g. 'browse/categories'."),
    params: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Query parameter as key=value (repeatable)."
    ),
    all_pages: bool = typer.Option(
        False, "--all", help="Follow 'next' links and print every item."
    ),
    limit: Optional[int] = typer.Option(
        None, "--limit", help="Follow 'next' links until this many items (at most 50) were printed."
    ),
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
) -> None:
    """GET an arbitrary API path and print the response.

    With ``--all`` or ``--limit`` the response must be a page envelope;
    the items of every fetched page are printed as one list.

    Example::

        spotify-web-api get artists/0TnOYISbd1XYRBk9myaseg/albums -p include_groups=album --all
    """
    with handle_errors():
        endpoint = RawEndpoint(raw_path=path, params=parse_params(params))
        with open_client(cache_name) as client:
            if limit is not None:
                data = client.paged(endpoint, pagination=Pagination.limit(limit)).all()
            elif all_pages:
                data = client.paged(endpoint).all()
            else:
                data = client.execute(endpoint)
        format_response(_to_data(data))


@app.command("me")
def me_command(
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
) -> None:
    """Show the current user's profile."""
    with handle_errors():
        with open_client(cache_name) as client:
            profile = client.execute(GetCurrentUserProfile())
        format_response(_to_data(profile))


@app.command("playlists")
def playlists_command(
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", help="Show at most this many playlists (at most 50)."
    ),
    cache_name: str = typer.Option("default", "--cache", help="Token cache name."),
) -> None:
    """List the current user's playlists."""
    with handle_errors():
        pagination = Pagination.limit(limit) if limit is not None else Pagination.all()
        with open_client(cache_name) as client:
            playlists = client.paged(GetCurrentUserPlaylists(), pagination=pagination).all()
        rows = [
            [
                playlist.id,
                playlist.name,
                playlist.owner.display_name or playlist.owner.id if playlist.owner else "-",
                str(playlist.tracks.total) if playlist.tracks else "-",
            ]
            for playlist in playlists
        ]
        print_table(["id", "name", "owner", "tracks"], rows, title="Playlists")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``spotify-web-api`` console script.

    :class:`~spotify_web_api.exceptions.SpotifyError` instances escaping
    a command cause a clean exit with the error's ``exit_code``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from spotify_web_api.exceptions import SpotifyError
        from spotify_web_api.output import error

        if isinstance(exc, SpotifyError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
