"""Contributor discovery for building the process-wide registry.

A contributor is any callable taking the open registry and registering facts
and preconditions on it. Contributors are found in three places, invoked in
this order:

1. The built-in catalog (``preconditions.facts.builtins``)
2. Entry points in the ``preconditions.contributors`` group, sorted by name
3. ``discovery.contributors`` from configuration, as "module.path:function"

Example pyproject.toml of a project contributing its own preconditions:

    [project.entry-points."preconditions.contributors"]
    signing = "signing_testing.preconditions:contribute"
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Iterable
from importlib.metadata import EntryPoint, entry_points

from preconditions.config import PreconditionsConfig
from preconditions.exceptions import DiscoveryError, RegistryError
from preconditions.facts.builtins import BUILTIN_CONTRIBUTOR, builtin_contributor
from preconditions.logging import get_logger
from preconditions.registry import PreconditionRegistry

__all__ = [
    "Contributor",
    "ENTRY_POINT_GROUP",
    "resolve_contributor",
    "discover_contributors",
    "load_registry",
]

logger = get_logger(__name__)

Contributor = Callable[[PreconditionRegistry], None]

ENTRY_POINT_GROUP = "preconditions.contributors"


def resolve_contributor(reference: str) -> Contributor:
    """Import a contributor from a "module.path:function" reference.

    Args:
        reference: The reference, e.g. "myproject.testing:contribute".

    Returns:
        The contributor callable.

    Raises:
        DiscoveryError: If the module or attribute cannot be loaded, or the
            attribute is not callable.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise DiscoveryError(
            f"Contributor '{reference}' must look like 'module.path:function'",
            contributor=reference,
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise DiscoveryError(
            f"Cannot import contributor module '{module_name}': {e}",
            contributor=reference,
            cause=e,
        ) from e

    target: object = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise DiscoveryError(
                f"Module '{module_name}' has no attribute '{attr}'",
                contributor=reference,
                cause=e,
            ) from e

    if not callable(target):
        raise DiscoveryError(
            f"Contributor '{reference}' is not callable",
            contributor=reference,
        )
    return target  # type: ignore[return-value]


def _load_entry_point(entry_point: EntryPoint) -> Contributor:
    try:
        target = entry_point.load()
    except Exception as e:
        raise DiscoveryError(
            f"Cannot load contributor entry point '{entry_point.name}': {e}",
            contributor=entry_point.name,
            cause=e,
        ) from e
    if not callable(target):
        raise DiscoveryError(
            f"Contributor entry point '{entry_point.name}' is not callable",
            contributor=entry_point.name,
        )
    return target  # type: ignore[no-any-return]


def discover_contributors(
    config: PreconditionsConfig,
) -> list[tuple[str, Contributor]]:
    """List the contributors to invoke, in invocation order.

    Args:
        config: Configuration selecting the discovery sources.

    Returns:
        (name, contributor) pairs.

    Raises:
        DiscoveryError: If a contributor cannot be loaded.
    """
    found: list[tuple[str, Contributor]] = []

    if config.discovery.builtins:
        found.append((BUILTIN_CONTRIBUTOR, builtin_contributor(config.probe)))

    if config.discovery.entry_points:
        for entry_point in sorted(
            entry_points(group=ENTRY_POINT_GROUP), key=lambda ep: ep.name
        ):
            found.append((entry_point.name, _load_entry_point(entry_point)))

    for reference in config.discovery.contributors:
        found.append((reference, resolve_contributor(reference)))

    return found


def load_registry(
    config: PreconditionsConfig | None = None,
    *,
    contributors: Iterable[tuple[str, Contributor]] | None = None,
) -> PreconditionRegistry:
    """Run the discovery phase and return a frozen registry.

    Args:
        config: Configuration; defaults are used when omitted.
        contributors: Explicit (name, contributor) pairs, replacing discovery.

    Returns:
        A frozen PreconditionRegistry.

    Raises:
        DiscoveryError: If a contributor cannot be loaded or raises.
        RegistryError: If a contributor registers a duplicate, or the catalog
            fails validation at freeze time.
    """
    if contributors is None:
        contributors = discover_contributors(config or PreconditionsConfig())

    registry = PreconditionRegistry()
    for name, contribute in contributors:
        logger.debug(f"Invoking precondition contributor: {name}")
        with registry.contributing(name):
            try:
                contribute(registry)
            except RegistryError:
                raise
            except Exception as e:
                raise DiscoveryError(
                    f"Contributor '{name}' failed: {e}",
                    contributor=name,
                    cause=e,
                ) from e

    registry.freeze()
    logger.info(
        "precondition_registry_loaded",
        preconditions=len(registry.list_all()),
        facts=len(registry.list_facts()),
    )
    return registry
