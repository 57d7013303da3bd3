"""Config commands -- manage client profiles.

Provides the ``httpchain config`` sub-command group for listing, showing,
saving and deleting :class:`~httpchain.models.ClientProfile` files, and
for choosing the default profile stored in the global configuration.
"""

from __future__ import annotations

from typing import Optional

import typer

from httpchain.exceptions import HttpChainError, InvalidUsageError
from httpchain.exit_codes import EXIT_INVALID_USAGE
from httpchain.output import error, format_response, info, print_table, success, suggest, warning

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    name: Optional[str] = typer.Argument(
        None, help="Profile to show. Shows the global config when omitted."
    ),
) -> None:
    """Show a profile, or the global configuration.

    Example::

        httpchain config show
        httpchain config show billing --json
    """
    from httpchain.config import get_config_dir, load_global_config, load_profile

    try:
        if name is None:
            info(f"Config directory: {get_config_dir()}")
            format_response(load_global_config().model_dump(mode="json"))
        else:
            format_response(load_profile(name).model_dump(mode="json", exclude_none=True))
    except HttpChainError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@config_app.command("list")
def config_list() -> None:
    """List saved profiles.

    The default profile is marked with ``*``.
    """
    from httpchain.config import list_profiles, load_global_config, load_profile

    names = list_profiles()
    if not names:
        info("No profiles saved yet.")
        return

    default = load_global_config().default_profile
    rows = []
    for name in names:
        try:
            base_url = load_profile(name).base_url or ""
        except HttpChainError as exc:
            base_url = f"<invalid: {exc}>"
        rows.append([name, base_url, "*" if name == default else ""])
    print_table(["name", "base_url", "default"], rows, title="Profiles")


@config_app.command("save")
def config_save(
    name: str = typer.Argument(help="Profile name."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Base URL relative paths resolve against."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Default header 'Key: Value' (repeatable)."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-q", help="Default query parameter key=value (repeatable)."
    ),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", help="Content-Type used to encode request bodies."
    ),
    accept: Optional[list[str]] = typer.Option(
        None, "--accept", help="Accept header value (repeatable)."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
    ignore_404: bool = typer.Option(
        False, "--ignore-404", help="Do not treat 404 as an error."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Use this profile when none is given."
    ),
) -> None:
    """Create or replace a profile.

    Example::

        httpchain config save billing --base-url https://billing.internal/api \\
            -H "Authorization: Bearer $TOKEN" --timeout 10 --default
    """
    from pydantic import ValidationError

    from httpchain.commands.request import parse_header, parse_query
    from httpchain.config import load_global_config, save_global_config, save_profile
    from httpchain.models import ClientProfile

    try:
        profile = ClientProfile(
            name=name,
            base_url=base_url,
            headers=dict(parse_header(h) for h in header or []),
            query=dict(parse_query(q) for q in query or []),
            content_type=content_type,
            accept=list(accept or []),
            timeout=timeout,
            ignore_404=ignore_404,
        )
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_profile(profile)
    if make_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)
    success(f"Saved profile '{name}'.")


@config_app.command("delete")
def config_delete(
    name: str = typer.Argument(help="Profile name."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Delete a profile."""
    from httpchain.config import (
        delete_profile,
        load_global_config,
        profile_exists,
        save_global_config,
    )

    if not profile_exists(name):
        error(f"Profile '{name}' not found.")
        suggest("Run 'httpchain config list' to see saved profiles.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    if not yes:
        confirmed = typer.confirm(f"Delete profile '{name}'?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    delete_profile(name)
    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
        warning(f"'{name}' was the default profile; no default profile is set now.")
    success(f"Deleted profile '{name}'.")
