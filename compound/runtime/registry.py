"""Runtime table of component records."""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, List, Optional

from compound.components.descriptor import ComponentDescriptor, ComponentRecord, ComponentState
from compound.core.errors import ComponentNotLoadedError
from compound.utils.text import format_trace

_log = logging.getLogger(__name__)


class ComponentRegistry:
    """Owns one :class:`ComponentRecord` per descriptor.

    Lookups of instances are only valid for loaded components; check
    :meth:`state` first when the outcome is not known.
    """

    def __init__(self) -> None:
        self._records: Dict[str, ComponentRecord] = {}
        self._load_order: List[str] = []
        self._torn_down = False

    def add(self, descriptor: ComponentDescriptor) -> ComponentRecord:
        if descriptor.name in self._records:
            raise ValueError(f"component '{descriptor.name}' is already registered")
        record = ComponentRecord(descriptor=descriptor)
        self._records[descriptor.name] = record
        return record

    def record(self, name: str) -> Optional[ComponentRecord]:
        return self._records.get(name)

    def get_record(self, name: str) -> ComponentRecord:
        record = self._records.get(name)
        if record is None:
            raise ComponentNotLoadedError(name)
        return record

    def state(self, name: str) -> Optional[ComponentState]:
        record = self._records.get(name)
        return record.state if record else None

    def get(self, name: str) -> Any:
        record = self._records.get(name)
        if record is None:
            raise ComponentNotLoadedError(name)
        if not record.loaded:
            raise ComponentNotLoadedError(name, record.state.value)
        return record.instance

    def mark_loaded(self, record: ComponentRecord) -> None:
        record.mark_loaded()
        self._load_order.append(record.name)

    def records(self) -> List[ComponentRecord]:
        return list(self._records.values())

    def names(self, state: ComponentState | None = None) -> List[str]:
        return [n for n, r in self._records.items() if state is None or r.state is state]

    def loaded(self) -> List[str]:
        return list(self._load_order)

    def failed(self) -> List[str]:
        return self.names(ComponentState.FAILED)

    def pending(self) -> List[str]:
        return self.names(ComponentState.PENDING)

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def teardown(self) -> List[str]:
        """Invoke unload hooks of loaded components in reverse load order.

        Failures are recorded on the component's record and never stop the
        sweep. Returns the names whose unload failed. Runs once; later calls
        are no-ops.
        """
        if self._torn_down:
            _log.warning("registry teardown requested again; ignored")
            return []
        self._torn_down = True
        failures: List[str] = []
        for name in reversed(self._load_order):
            record = self._records[name]
            hook = getattr(record.instance, 'unload', None)
            if not callable(hook):
                continue
            _log.info("component name=%s status=unloading", name)
            try:
                ok = hook()
            except Exception as e:
                _log.error("component name=%s status=unload_error", name, exc_info=True)
                record.add_fail_reason(f"Error when unloading component '{name}': {e}")
                record.fail_trace = format_trace(e)
                failures.append(name)
                continue
            if not ok:
                _log.warning("component name=%s status=unload_failed", name)
                record.add_fail_reason(f"Unload failed for component '{name}'.")
                failures.append(name)
        return failures

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ComponentRecord]:
        return iter(list(self._records.values()))
