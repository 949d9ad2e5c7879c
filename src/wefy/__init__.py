"""wefy -- async HTTP client with lifecycle extensions and header reconciliation.

Every call runs through a fixed sequence of extension hooks
(``before_request`` ... ``after_request``), and client-level headers are
merged with call-level headers per header family (override, multi-value
or merge) rather than simply overwritten.

Typical usage::

    from wefy import Client, Extension, HookName

    def stamp(event, ctx):
        event.config.headers["X-Client"] = "wefy"

    async with Client("https://api.example.com", [Extension("stamp", {HookName.BEFORE_REQUEST: stamp})]) as api:
        users = await api.get("/users")

Modules:
    app: Typer application and CLI entry point.
    client: :class:`Client`, the request pipeline, transport and codec.
    extensions: Extension descriptors, registry, state and hook scheduling.
    headers: Header reconciliation.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting for the CLI.
"""

__version__ = "0.1.0"

from wefy.client import Client  # noqa: E402
from wefy.extensions import Extension, ExtensionContext, HookName  # noqa: E402
from wefy.headers import HeaderStrategy, merge_headers  # noqa: E402
from wefy.models import ClientConfig, RequestOptions, ResponseSummary  # noqa: E402

__all__ = [
    "__version__",
    "Client",
    "ClientConfig",
    "Extension",
    "ExtensionContext",
    "HeaderStrategy",
    "HookName",
    "RequestOptions",
    "ResponseSummary",
    "merge_headers",
]
