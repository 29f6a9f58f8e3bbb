"""Default discovery collaborator.

Imports a package (and every sub-module) and turns each class decorated with
``@component`` into a :class:`ComponentDescriptor`. Hosts with their own
discovery can skip this module and hand descriptors to the scheduler directly.
"""
from __future__ import annotations
import importlib
import inspect
import logging
import pkgutil
import types
from typing import Any, Dict, Iterable, List, Mapping

from compound.components.decorators import component_info
from compound.components.descriptor import ComponentDescriptor

_log = logging.getLogger(__name__)


def _iter_modules(package: types.ModuleType) -> Iterable[types.ModuleType]:
    yield package
    path = getattr(package, '__path__', None)
    if path is None:
        return
    prefix = package.__name__ + '.'

    def _on_error(name: str) -> None:
        _log.error("component scan failed to import package=%s", name, exc_info=True)

    for info in pkgutil.walk_packages(path, prefix, onerror=_on_error):
        try:
            yield importlib.import_module(info.name)
        except Exception:
            _log.error("component scan failed to import module=%s", info.name, exc_info=True)


def scan_package(package: str | types.ModuleType) -> List[type]:
    """Return component classes defined in ``package`` and its sub-modules."""
    root = importlib.import_module(package) if isinstance(package, str) else package
    found: List[type] = []
    seen: set[int] = set()
    for module in _iter_modules(root):
        for _, obj in inspect.getmembers(module, inspect.isclass):
            # Only classes defined here; re-exports are picked up at their origin.
            if obj.__module__ != module.__name__ or id(obj) in seen:
                continue
            if component_info(obj) is None:
                continue
            seen.add(id(obj))
            found.append(obj)
    return found


def descriptors_from(classes: Iterable[type]) -> Dict[str, ComponentDescriptor]:
    """Build a name -> descriptor mapping; a duplicated name keeps the last class."""
    descriptors: Dict[str, ComponentDescriptor] = {}
    for cls in classes:
        info = component_info(cls)
        if info is None:
            _log.warning("class %s.%s has no component metadata; skipped", cls.__module__, cls.__qualname__)
            continue
        if info.name in descriptors:
            _log.warning("component name=%s declared more than once; keeping %s", info.name, cls.__qualname__)
            descriptors.pop(info.name)
        descriptors[info.name] = ComponentDescriptor(
            name=info.name,
            description=info.description,
            dependencies=info.depends,
            implementation=cls,
        )
    return descriptors


def discover(source: Any) -> Dict[str, ComponentDescriptor]:
    """Resolve ``source`` into descriptors.

    ``source`` may be a package name, a module, an iterable of component
    classes or descriptors, or a ready ``name -> descriptor`` mapping.
    """
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, (str, types.ModuleType)):
        return descriptors_from(scan_package(source))
    items = list(source)
    if items and all(isinstance(item, ComponentDescriptor) for item in items):
        descriptors: Dict[str, ComponentDescriptor] = {}
        for item in items:
            descriptors.pop(item.name, None)
            descriptors[item.name] = item
        return descriptors
    return descriptors_from(items)
