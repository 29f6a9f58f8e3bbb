"""Static component metadata and the mutable per-component runtime record."""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from compound.core.errors import InvalidTransitionError
from compound.utils.text import clean_name_list


class ComponentState(str, Enum):
    PENDING = 'pending'
    LOADED = 'loaded'
    FAILED = 'failed'

    @property
    def terminal(self) -> bool:
        return self is not ComponentState.PENDING


class FailureKind(str, Enum):
    MISSING_DEPENDENCY = 'missing_dependency'
    DEPENDENCY_FAILED = 'dependency_failed'
    BINDING = 'binding'
    HOOK = 'hook'
    UNEXPECTED = 'unexpected'


class ComponentDescriptor:
    """Discovery-time metadata for one component.

    Everything is read-only except the implementation handle, which is dropped
    exactly once via :meth:`release` when the load outcome is known.
    """

    __slots__ = ('_name', '_description', '_dependencies', '_implementation', '_released')

    def __init__(
        self,
        name: str,
        description: str = '',
        dependencies: Any = (),
        implementation: Callable[[], Any] | None = None,
    ) -> None:
        if not name or not str(name).strip():
            raise ValueError('component name is required')
        self._name = str(name).strip()
        self._description = description or ''
        self._dependencies: Tuple[str, ...] = tuple(clean_name_list(dependencies))
        self._implementation = implementation
        self._released = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def dependencies(self) -> Tuple[str, ...]:
        return self._dependencies

    @property
    def implementation(self) -> Callable[[], Any] | None:
        return self._implementation

    @property
    def released(self) -> bool:
        return self._released

    def instantiate(self) -> Any:
        if self._implementation is None:
            state = 'released' if self._released else 'missing'
            raise RuntimeError(f"component '{self._name}' has no implementation ({state})")
        return self._implementation()

    def release(self) -> None:
        self._implementation = None
        self._released = True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentDescriptor):
            return NotImplemented
        return self._name == other._name

    def __hash__(self) -> int:
        return hash(self._name)

    def __repr__(self) -> str:
        return f"ComponentDescriptor(name={self._name!r}, dependencies={list(self._dependencies)!r})"


@dataclass(eq=False)
class ComponentRecord:
    descriptor: ComponentDescriptor
    state: ComponentState = ComponentState.PENDING
    instance: Any = None
    fail_reasons: List[str] = field(default_factory=list)
    fail_trace: Optional[str] = None
    failure_kind: Optional[FailureKind] = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def loaded(self) -> bool:
        return self.state is ComponentState.LOADED

    @property
    def failed(self) -> bool:
        return self.state is ComponentState.FAILED

    def add_fail_reason(self, message: str) -> None:
        # most recent first
        self.fail_reasons.insert(0, message)

    def mark_loaded(self) -> None:
        self._leave_pending(ComponentState.LOADED)

    def mark_failed(
        self,
        reason: str,
        kind: FailureKind = FailureKind.UNEXPECTED,
        trace: str | None = None,
    ) -> None:
        self._leave_pending(ComponentState.FAILED)
        self.add_fail_reason(reason)
        self.failure_kind = kind
        if trace:
            self.fail_trace = trace

    def _leave_pending(self, target: ComponentState) -> None:
        if self.state is not ComponentState.PENDING:
            raise InvalidTransitionError(
                f"component '{self.name}' cannot move from {self.state.value} to {target.value}"
            )
        self.state = target
        self.descriptor.release()

    def summary(self) -> dict:
        return {
            'name': self.name,
            'description': self.descriptor.description,
            'dependencies': list(self.descriptor.dependencies),
            'state': self.state.value,
            'failure_kind': self.failure_kind.value if self.failure_kind else None,
            'fail_reasons': list(self.fail_reasons),
            'has_trace': self.fail_trace is not None,
        }
