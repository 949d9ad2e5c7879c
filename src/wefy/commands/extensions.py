"""Extensions commands -- inspect entry-point extensions."""

from __future__ import annotations

import typer

from wefy.output import get_output

extensions_app = typer.Typer(no_args_is_help=True)


@extensions_app.command("list")
def extensions_list() -> None:
    """List extensions published under the ``wefy.extensions`` entry-point group.

    The ``status`` column reflects the ``extensions.enabled`` and
    ``extensions.disabled`` lists of the user configuration.
    """
    from wefy.config import load_user_config
    from wefy.exceptions import ConfigError
    from wefy.extensions.discovery import ENTRY_POINT_GROUP, available_extensions
    from wefy.models import ExtensionsConfig

    output = get_output()
    try:
        settings = ExtensionsConfig.model_validate(load_user_config().get("extensions") or {})
    except (ConfigError, ValueError) as exc:
        output.error(str(exc))
        raise typer.Exit(code=1) from None

    entries = available_extensions()
    if not entries:
        output.info(f"No extensions registered under '{ENTRY_POINT_GROUP}'.")
        return

    rows = []
    for entry in entries:
        name = entry["name"]
        if name in settings.disabled or (settings.enabled and name not in settings.enabled):
            status = "disabled"
        else:
            status = "enabled"
        rows.append([name, entry["value"], status])
    output.print_table(["name", "target", "status"], rows, title="Extensions")
