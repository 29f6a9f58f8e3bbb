"""Declarative field binding metadata and the per-type field table.

Fields opt in to configuration with ``typing.Annotated`` metadata::

    @config_file('economy.yml')
    class Economy:
        start_balance: Annotated[float, Config(key='balance.start')] = 0.0
        motd: Annotated[str, Config(colorize=True, required=False)] = ''
        accent: Annotated[Color, Config(), Resolve(HexColor, from_type=str)] = None

The field table for a class is built once and cached; the binder only ever
walks these tables.
"""
from __future__ import annotations
import inspect
import logging
import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union, get_args, get_origin

_log = logging.getLogger(__name__)

CONFIG_FILE_ATTR = '__compound_config_file__'


@dataclass(frozen=True)
class Config:
    key: str = ''
    path: str = ''
    required: bool = True
    colorize: bool = False


@dataclass(frozen=True)
class Resolve:
    resolver: type
    from_type: Any = None


def config_file(path: str):
    """Class decorator naming the default document for fields declared on that class."""
    if not path:
        raise ValueError('config_file path is required')

    def decorator(cls):
        setattr(cls, CONFIG_FILE_ATTR, path)
        return cls
    return decorator


def declared_config_file(cls: type) -> Optional[str]:
    value = vars(cls).get(CONFIG_FILE_ATTR)
    return value if isinstance(value, str) and value else None


def accepted_types(tp: Any) -> Optional[Tuple[type, ...]]:
    """Reduce an annotation to the runtime classes a value must be an instance of.

    ``None`` means any value is accepted.
    """
    if tp is Any or tp is object or isinstance(tp, typing.TypeVar):
        return None
    origin = get_origin(tp)
    if origin is Annotated:
        return accepted_types(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        out: list[type] = []
        for arg in get_args(tp):
            if arg is type(None):
                continue
            sub = accepted_types(arg)
            if sub is None:
                return None
            out.extend(sub)
        return tuple(out) or None
    if origin is Literal:
        return tuple({type(v) for v in get_args(tp)}) or None
    if origin is not None:
        return (origin,) if isinstance(origin, type) else None
    if isinstance(tp, type):
        return (tp,)
    return None


@dataclass(frozen=True)
class FieldBinding:
    name: str
    owner: type
    annotation: Any
    accepts: Optional[Tuple[type, ...]]
    config: Config
    resolve: Optional[Resolve] = None

    @property
    def key(self) -> str:
        return self.config.key or self.name

    def full_key(self, base_key: str | None = None) -> str:
        return f"{base_key}.{self.key}" if base_key else self.key

    @property
    def owner_name(self) -> str:
        return f"{self.owner.__module__}.{self.owner.__qualname__}"

    def assign(self, target: Any, value: Any) -> None:
        # object.__setattr__ skips property setters, frozen dataclasses and
        # custom __setattr__ guards on the target.
        object.__setattr__(target, self.name, value)


@dataclass(frozen=True)
class TypeBindings:
    owner: type
    path: Optional[str]
    fields: Tuple[FieldBinding, ...]


BINDINGS_ATTR = '__compound_bindings__'

# Types that reject attribute assignment (builtins, extension types).
_STATIC_TABLES: Dict[type, Tuple[TypeBindings, ...]] = {}


def _own_hints(klass: type) -> Dict[str, Any]:
    try:
        own = inspect.get_annotations(klass)
    except Exception:
        _log.warning("could not read annotations of %s.%s", klass.__module__, klass.__qualname__, exc_info=True)
        return {}
    if not own:
        return {}
    try:
        resolved = typing.get_type_hints(klass, include_extras=True)
    except Exception:
        _log.warning(
            "could not resolve annotations of %s.%s; unresolved fields are not bindable",
            klass.__module__, klass.__qualname__, exc_info=True,
        )
        resolved = {}
    return {name: resolved.get(name, own[name]) for name in own}


def _field_binding(klass: type, name: str, hint: Any) -> Optional[FieldBinding]:
    if get_origin(hint) is not Annotated:
        return None
    base, *metadata = get_args(hint)
    cfg = next((m for m in metadata if isinstance(m, Config)), None)
    res = next((m for m in metadata if isinstance(m, Resolve)), None)
    if cfg is None:
        if res is not None:
            _log.warning("field %s of %s declares Resolve without Config; ignored", name, klass.__qualname__)
        return None
    return FieldBinding(
        name=name,
        owner=klass,
        annotation=base,
        accepts=accepted_types(base),
        config=cfg,
        resolve=res,
    )


def bindings_for(cls: type) -> Tuple[TypeBindings, ...]:
    """Field tables for ``cls`` and its ancestors, most-derived first.

    A field redeclared on a subclass is only bound at the most-derived level.
    """
    cached = vars(cls).get(BINDINGS_ATTR) or _STATIC_TABLES.get(cls)
    if cached is not None:
        return cached
    seen: set[str] = set()
    tables: list[TypeBindings] = []
    for klass in cls.__mro__:
        if klass is object:
            continue
        fields: list[FieldBinding] = []
        for name, hint in _own_hints(klass).items():
            if name in seen:
                continue
            binding = _field_binding(klass, name, hint)
            if binding is None:
                continue
            seen.add(name)
            fields.append(binding)
        tables.append(TypeBindings(owner=klass, path=declared_config_file(klass), fields=tuple(fields)))
    result = tuple(tables)
    try:
        type.__setattr__(cls, BINDINGS_ATTR, result)
    except TypeError:
        _STATIC_TABLES[cls] = result
    return result
