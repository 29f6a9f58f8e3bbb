"""Dependency-ordered load scheduler.

Repeats passes over pending components until each one is loaded or failed.
A component is attempted only once all its dependencies are loaded; a failed
dependency fails its dependents without an attempt. A pass that changes no
state means the remaining components wait on each other: they are reported as
deadlocked, left pending, and scheduling stops.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

from compound.components.descriptor import ComponentDescriptor, ComponentRecord, ComponentState, FailureKind
from compound.config.binder import ConfigBinder
from compound.runtime.graph import DependencyGraph
from compound.runtime.registry import ComponentRegistry
from compound.utils.text import format_trace

_log = logging.getLogger(__name__)


@dataclass
class LoadReport:
    loaded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    deadlocked: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    passes: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed and not self.deadlocked


class LoadScheduler:
    def __init__(self, registry: ComponentRegistry, binder: ConfigBinder, *, strict_config: bool = True):
        self.registry = registry
        self.binder = binder
        self.strict_config = strict_config
        self.graph: DependencyGraph | None = None

    def run(self, descriptors: Mapping[str, ComponentDescriptor] | Iterable[ComponentDescriptor]) -> LoadReport:
        if isinstance(descriptors, Mapping):
            items = list(descriptors.values())
        else:
            by_name: Dict[str, ComponentDescriptor] = {}
            for descriptor in descriptors:
                if descriptor.name in by_name:
                    _log.warning("component name=%s status=duplicate; keeping the last descriptor", descriptor.name)
                    by_name.pop(descriptor.name)
                by_name[descriptor.name] = descriptor
            items = list(by_name.values())
        records = [self.registry.add(d) for d in items]
        graph = DependencyGraph.build(items)
        self.graph = graph

        for record in records:
            dep = graph.missing_dependency(record.name)
            if dep is not None:
                record.mark_failed(
                    f"Component '{record.name}' has a missing dependency '{dep}'.",
                    FailureKind.MISSING_DEPENDENCY,
                )

        report = LoadReport()
        pending = [r for r in records if r.state is ComponentState.PENDING]
        while pending:
            report.passes += 1
            progressed = False
            for record in pending:
                if record.state is not ComponentState.PENDING:
                    continue
                waiting = graph.dependencies_of(record.name)
                ordered = [d for d in graph.declared(record.name) if d in waiting]
                failed_dep = next((d for d in ordered if self.registry.state(d) is ComponentState.FAILED), None)
                if failed_dep is not None:
                    _log.error("component name=%s status=blocked dep=%s", record.name, failed_dep)
                    record.mark_failed(f"blocked by failed dependency '{failed_dep}'", FailureKind.DEPENDENCY_FAILED)
                    progressed = True
                    continue
                if ordered:
                    continue
                progressed = True
                if self.load_component(record):
                    graph.mark_resolved(record.name)
                    _log.info("component name=%s status=loaded", record.name)
                else:
                    _log.error("component name=%s status=failed reason=%s", record.name, record.fail_reasons[0])
            pending = [r for r in pending if r.state is ComponentState.PENDING]
            if pending and not progressed:
                names = [r.name for r in pending]
                report.deadlocked = names
                report.cycles = graph.find_cycles(names)
                _log.error(
                    "component loading deadlocked status=deadlocked pending=[%s] cycles=%s",
                    ', '.join(names),
                    [' -> '.join(c) for c in report.cycles],
                )
                break

        report.loaded = self.registry.loaded()
        report.failed = self.registry.failed()
        return report

    def load_component(self, record: ComponentRecord) -> bool:
        """Instantiate, bind configuration, then run the load hook.

        Every failure is recorded on ``record``; nothing propagates except
        non-``Exception`` errors such as ``KeyboardInterrupt``.
        """
        name = record.name
        try:
            instance = record.descriptor.instantiate()
        except Exception as e:
            _log.error("component name=%s status=instantiate_error", name, exc_info=True)
            record.mark_failed(
                f"Unexpected error when loading component '{name}': {e}",
                FailureKind.UNEXPECTED,
                format_trace(e),
            )
            return False
        record.instance = instance

        try:
            outcome = self.binder.bind(instance)
        except Exception as e:
            _log.error("component name=%s status=bind_error", name, exc_info=True)
            record.mark_failed(
                f"Unexpected error when injecting config into component '{name}': {e}",
                FailureKind.UNEXPECTED,
                format_trace(e),
            )
            return False
        if not outcome:
            if self.strict_config:
                record.add_fail_reason(outcome.reason or 'configuration binding failed')
                record.mark_failed(
                    f"Unable to inject config into component '{name}'.",
                    FailureKind.BINDING,
                    outcome.trace,
                )
                return False
            _log.warning("component name=%s status=config_incomplete reason=%s", name, outcome.reason)

        hook = getattr(instance, 'load', None)
        if callable(hook):
            try:
                ok = hook()
            except Exception as e:
                _log.error("component name=%s status=load_error", name, exc_info=True)
                record.mark_failed(
                    f"Load failed for component '{name}': {e}",
                    FailureKind.HOOK,
                    format_trace(e),
                )
                return False
            if not ok:
                record.mark_failed(f"Load failed for component '{name}'.", FailureKind.HOOK)
                return False

        self.registry.mark_loaded(record)
        return True
