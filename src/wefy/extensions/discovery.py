"""Entry-point discovery of third-party extensions.

Packages publish extensions under the ``wefy.extensions`` entry-point
group. The entry point may name an :class:`~wefy.extensions.base.Extension`
object or a zero-argument factory returning one::

    [project.entry-points."wefy.extensions"]
    tracing = "my_package.tracing:tracing_extension"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Optional

from wefy.extensions.base import Extension
from wefy.models import ExtensionsConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "wefy.extensions"
"""The entry-point group name used for extension discovery."""


def _entry_points() -> list[importlib.metadata.EntryPoint]:
    return list(importlib.metadata.entry_points(group=ENTRY_POINT_GROUP))


def _is_selected(name: str, config: ExtensionsConfig) -> bool:
    if config.enabled and name not in config.enabled:
        logger.debug("Extension '%s' not in enabled list, skipping", name)
        return False
    if name in config.disabled:
        logger.debug("Extension '%s' is disabled, skipping", name)
        return False
    return True


def available_extensions() -> list[dict[str, str]]:
    """List every entry point in the group without loading it.

    Returns:
        Dicts with ``"name"`` and ``"value"`` (the ``module:attr`` target).
    """
    return [{"name": ep.name, "value": ep.value} for ep in _entry_points()]


def discover_extensions(config: Optional[ExtensionsConfig] = None) -> list[Extension]:
    """Load the extensions published under :data:`ENTRY_POINT_GROUP`.

    When ``config.enabled`` is non-empty only those entry points are
    loaded; otherwise every entry point not in ``config.disabled`` is.

    Args:
        config: Allow/deny lists. Defaults to loading everything.

    Returns:
        The loaded extensions in entry-point order. Entry points that fail
        to import, or that do not produce an :class:`Extension`, are
        logged as warnings and skipped.
    """
    config = config or ExtensionsConfig()
    loaded: list[Extension] = []

    for ep in _entry_points():
        if not _is_selected(ep.name, config):
            continue
        try:
            target = ep.load()
            extension = target if isinstance(target, Extension) else target()
        except Exception as exc:
            logger.warning("Failed to load extension '%s': %s", ep.name, exc)
            continue
        if not isinstance(extension, Extension):
            logger.warning(
                "Entry point '%s' produced %s, not an Extension",
                ep.name,
                type(extension).__name__,
            )
            continue
        loaded.append(extension)
        logger.info("Loaded extension '%s' from entry point '%s'", extension.name, ep.name)

    return loaded
