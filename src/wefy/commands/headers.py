"""Headers commands -- preview how two header sets reconcile.

``wefy headers merge`` runs :func:`~wefy.headers.merge_headers` on
``Name: value`` arguments and prints the result, which is handy for
checking what a call would actually send::

    wefy headers merge \\
        --base "Accept: text/html" --base "Cookie: a=1" \\
        --incoming "Accept: application/json;q=0.9" --incoming "Cookie: a=2; b=3"
"""

from __future__ import annotations

from typing import Optional

import typer

from wefy.headers import (
    HeaderStrategy,
    header_items,
    merge_headers,
    parse_header_lines,
    resolve_strategy,
)
from wefy.output import get_output

headers_app = typer.Typer(no_args_is_help=True)


@headers_app.command("merge")
def headers_merge(
    base: Optional[list[str]] = typer.Option(
        None, "--base", "-b", help="Base header as 'Name: value'. Repeatable."
    ),
    incoming: Optional[list[str]] = typer.Option(
        None, "--incoming", "-i", help="Incoming header as 'Name: value'. Repeatable."
    ),
    show_strategy: bool = typer.Option(
        False, "--strategy", help="Print the merge strategy of each header to stderr."
    ),
) -> None:
    """Merge two header sets and print the result."""
    output = get_output()
    base_pairs = parse_header_lines(base or [])
    incoming_pairs = parse_header_lines(incoming or [])

    merged = merge_headers(base_pairs, incoming_pairs)
    if show_strategy:
        names: dict[str, str] = {}
        for name, _ in [*base_pairs, *incoming_pairs]:
            names.setdefault(name.lower(), name)
        for lower, name in names.items():
            strategy: HeaderStrategy = resolve_strategy(lower)
            output.info(f"{name}: {strategy.value}")
    output.print_headers(header_items(merged))
