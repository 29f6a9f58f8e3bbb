"""Configuration binder.

Walks the field tables of a target object (most-derived class first) and
assigns values read from configuration documents. A ``required`` field that
cannot be satisfied fails the whole bind; optional fields that cannot be
satisfied are skipped with a warning.
"""
from __future__ import annotations
import inspect
import logging
import numbers
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from compound.config.binding import FieldBinding, TypeBindings, accepted_types, bindings_for
from compound.config.store import ConfigDocument, ConfigStore
from compound.core.errors import BindingError
from compound.utils.text import format_trace, translate_color_codes

_log = logging.getLogger(__name__)


@dataclass
class BindOutcome:
    ok: bool
    reason: Optional[str] = None
    trace: Optional[str] = None
    bound: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.ok


class _Skip(Exception):
    """An optional field could not be satisfied."""


def coerce_number(value: Any, accepts: Optional[Tuple[type, ...]]) -> Any:
    """Convert a numeric ``value`` to the single numeric type in ``accepts``.

    Non-numeric values, bools, and conversions that fail are returned unchanged.
    """
    if not accepts or len(accepts) != 1:
        return value
    target = accepts[0]
    if target is bool or not issubclass(target, numbers.Number):
        return value
    if isinstance(value, bool) or not isinstance(value, numbers.Number):
        return value
    if type(value) is target:
        return value
    try:
        return target(value)
    except (TypeError, ValueError, OverflowError):
        return value


def _matches(value: Any, accepts: Optional[Tuple[type, ...]]) -> bool:
    if accepts is None:
        return True
    if isinstance(value, bool) and bool not in accepts:
        # bool is an int subclass; it only satisfies bool-typed fields
        if any(t is not object and issubclass(t, numbers.Number) for t in accepts):
            return False
    return isinstance(value, accepts)


def _type_name(accepts: Optional[Tuple[type, ...]]) -> str:
    if not accepts:
        return 'Any'
    return ' | '.join(t.__name__ for t in accepts)


class ConfigBinder:
    """Populates annotated fields from a :class:`ConfigStore`."""

    def __init__(self, store: ConfigStore, *, colorizer: Callable[[str], str] | None = None,
                 color_char: str = '&'):
        self.store = store
        self.color_char = color_char
        self._colorizer = colorizer

    def colorize(self, text: str) -> str:
        if self._colorizer is not None:
            return self._colorizer(text)
        return translate_color_codes(text, self.color_char)

    def bind(self, target: Any, default_document: ConfigDocument | None = None,
             default_path: str | None = None, base_key: str | None = None) -> BindOutcome:
        """Bind every annotated field of ``target``.

        When ``default_path`` is given without a ``default_document`` the
        document is loaded from the store.
        """
        if default_document is None and default_path:
            default_document = self.store.load(default_path)
        outcome = BindOutcome(ok=True)
        documents: Dict[str, Optional[ConfigDocument]] = {}
        try:
            for table in bindings_for(type(target)):
                self._bind_table(target, table, default_document, default_path, base_key, documents, outcome)
        except BindingError as e:
            outcome.ok = False
            outcome.reason = str(e)
            outcome.trace = e.trace
            _log.warning(str(e))
        return outcome

    def _document(self, path: str, documents: Dict[str, Optional[ConfigDocument]]) -> Optional[ConfigDocument]:
        if path not in documents:
            documents[path] = self.store.load(path)
        return documents[path]

    def _bind_table(self, target: Any, table: TypeBindings, default_document: ConfigDocument | None,
                    default_path: str | None, base_key: str | None,
                    documents: Dict[str, Optional[ConfigDocument]], outcome: BindOutcome) -> None:
        if not table.fields:
            return
        type_document = self._document(table.path, documents) if table.path else None
        for binding in table.fields:
            if binding.config.path:
                path = binding.config.path
                document = self._document(path, documents)
            elif table.path:
                path = table.path
                document = type_document
            else:
                path = default_path
                document = default_document
            try:
                value = self._resolve_field(binding, document, path, base_key)
            except _Skip as skip:
                _log.warning("%s (optional, skipped)", skip)
                outcome.skipped.append(binding.name)
                continue
            try:
                binding.assign(target, value)
            except Exception as e:
                self._fail(
                    binding,
                    f"Could not assign key '{binding.full_key(base_key)}' to field '{binding.name}' "
                    f"in class '{binding.owner_name}': {e}",
                    trace=format_trace(e),
                )
                outcome.skipped.append(binding.name)
                continue
            outcome.bound.append(binding.name)

    def _fail(self, binding: FieldBinding, message: str, trace: str | None = None):
        if binding.config.required:
            raise BindingError(message, trace=trace)
        _log.warning("%s (optional, skipped)", message)

    def _resolve_field(self, binding: FieldBinding, document: ConfigDocument | None,
                       path: str | None, base_key: str | None) -> Any:
        key = binding.full_key(base_key)
        where = f"field '{binding.name}' in class '{binding.owner_name}'"

        def fail(message: str, trace: str | None = None):
            if binding.config.required:
                raise BindingError(message, trace=trace)
            raise _Skip(message)

        if document is None:
            if path:
                fail(f"Could not load config file '{path}' for key '{key}' of {where}.")
            fail(f"No config document for key '{key}' of {where}.")
        source = path or document.source or '<default>'
        raw = document.get(key)
        if raw is None:
            fail(f"Config '{source}' does not contain key '{key}' for {where}.")

        value = raw
        if binding.resolve is not None:
            value = self._apply_resolver(binding, raw, key, where, fail)
        value = coerce_number(value, binding.accepts)

        if isinstance(value, str) and binding.config.colorize:
            value = self.colorize(value)

        if not _matches(value, binding.accepts):
            fail(
                f"Invalid value for key '{key}' of {where} from config '{source}': "
                f"expected {_type_name(binding.accepts)}, got {type(value).__name__}."
            )
        return value

    def _apply_resolver(self, binding: FieldBinding, raw: Any, key: str, where: str, fail) -> Any:
        resolver = binding.resolve.resolver
        apply = getattr(resolver, 'apply', None)
        if not callable(apply):
            fail(f"Invalid resolver {getattr(resolver, '__name__', resolver)!r} for key '{key}' of {where}: no apply method.")
        try:
            sig = inspect.signature(apply)
        except (TypeError, ValueError):
            sig = None
        params = list(sig.parameters.values()) if sig is not None else []
        if not isinstance(inspect.getattr_static(resolver, 'apply', None), (staticmethod, classmethod)):
            params = params[1:]
        if sig is None or len(params) != 1:
            fail(f"Invalid resolver {resolver.__name__!r} for key '{key}' of {where}: apply must take one argument.")
        hints = self._resolver_hints(resolver, apply)

        returns = hints.get('return', inspect.Signature.empty)
        if returns is not inspect.Signature.empty and binding.accepts is not None:
            produced = accepted_types(returns)
            if produced is not None and not all(issubclass(p, binding.accepts) for p in produced):
                fail(f"Resolver for key '{key}' of {where} does not match target class.")

        from_type = binding.resolve.from_type
        if from_type is None:
            from_type = hints.get(params[0].name)
        expected = accepted_types(from_type) if from_type is not None else None
        if not _matches(raw, expected):
            fail(f"Invalid or missing value for key '{key}' of {where}: resolver expects {_type_name(expected)}.")

        try:
            instance = resolver()
            return instance.apply(raw)
        except Exception as e:
            fail(f"Resolver {resolver.__name__!r} failed for key '{key}' of {where}: {e}", trace=format_trace(e))

    @staticmethod
    def _resolver_hints(resolver: type, apply: Any) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(apply)
        except Exception:
            _log.debug("could not resolve annotations of %s.apply", getattr(resolver, '__qualname__', resolver))
            return {}
