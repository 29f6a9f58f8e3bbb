"""
Tests for the dependency-ordered load scheduler.

The property tests generate random dependency graphs and check that every
component ends in a state consistent with its dependencies.
"""

import logging
from typing import Annotated

import pytest
from hypothesis import given, settings as hyp_settings, strategies as st

from compound.components.descriptor import ComponentDescriptor, ComponentState, FailureKind
from compound.config import Config, ConfigBinder, ConfigStore, config_file
from compound.runtime.registry import ComponentRegistry
from compound.runtime.scheduler import LoadScheduler
from tests.conftest import make_descriptor


def probe(name, calls, ok=True, error=None):
    """Component class that records load attempts into ``calls``."""
    class Probe:
        def __init__(self):
            calls.append(('init', name))

        def load(self):
            calls.append(('load', name))
            if error is not None:
                raise error
            return ok
    Probe.__qualname__ = f"Probe[{name}]"
    return Probe


class NeedsPort:
    port: Annotated[int, Config(key='db.port')] = 0

    def load(self):
        return True


def run(descriptors, strict_config=True, store_root='.'):
    registry = ComponentRegistry()
    scheduler = LoadScheduler(registry, ConfigBinder(ConfigStore(store_root)), strict_config=strict_config)
    report = scheduler.run(descriptors)
    return registry, report


def test_loads_in_dependency_order():
    calls = []
    registry, report = run([
        make_descriptor('c', ['b'], probe('c', calls)),
        make_descriptor('b', ['a'], probe('b', calls)),
        make_descriptor('a', [], probe('a', calls)),
    ])
    assert report.ok
    assert report.loaded == ['a', 'b', 'c']
    assert [n for kind, n in calls if kind == 'load'] == ['a', 'b', 'c']
    assert report.passes <= 4
    assert all(r.state is ComponentState.LOADED for r in registry)


def test_component_without_hooks_is_loaded():
    registry, report = run([make_descriptor('plain')])
    assert report.loaded == ['plain']
    assert isinstance(registry.get('plain'), object)


def test_missing_dependency_fails_without_attempt():
    calls = []
    registry, report = run([
        make_descriptor('a', [], probe('a', calls)),
        make_descriptor('b', ['a', 'ghost'], probe('b', calls)),
    ])
    record = registry.get_record('b')
    assert record.failed
    assert record.failure_kind is FailureKind.MISSING_DEPENDENCY
    assert "missing dependency 'ghost'" in record.fail_reasons[0]
    assert ('init', 'b') not in calls
    assert report.failed == ['b']
    assert report.loaded == ['a']


def test_failed_dependency_cascades():
    calls = []
    registry, report = run([
        make_descriptor('a', [], probe('a', calls, ok=False)),
        make_descriptor('b', ['a'], probe('b', calls)),
        make_descriptor('c', ['b'], probe('c', calls)),
    ])
    assert registry.get_record('a').failure_kind is FailureKind.HOOK
    for name, blocker in (('b', 'a'), ('c', 'b')):
        record = registry.get_record(name)
        assert record.failure_kind is FailureKind.DEPENDENCY_FAILED
        assert record.fail_reasons == [f"blocked by failed dependency '{blocker}'"]
        assert ('init', name) not in calls
    assert report.loaded == []
    assert sorted(report.failed) == ['a', 'b', 'c']


def test_pure_cycle_deadlocks_and_stays_pending(caplog):
    calls = []
    with caplog.at_level(logging.ERROR, logger='compound.runtime.scheduler'):
        registry, report = run([
            make_descriptor('a', ['b'], probe('a', calls)),
            make_descriptor('b', ['a'], probe('b', calls)),
            make_descriptor('free', [], probe('free', calls)),
        ])
    assert report.deadlocked == ['a', 'b']
    assert report.cycles == [['a', 'b', 'a']]
    assert registry.state('a') is ComponentState.PENDING
    assert registry.state('b') is ComponentState.PENDING
    assert registry.pending() == ['a', 'b']
    assert report.loaded == ['free']
    assert not report.ok
    assert calls == [('init', 'free'), ('load', 'free')]
    assert 'deadlocked' in caplog.text


def test_dependent_of_cycle_is_deadlocked_too():
    registry, report = run([
        make_descriptor('a', ['b']),
        make_descriptor('b', ['a']),
        make_descriptor('c', ['a']),
    ])
    assert report.deadlocked == ['a', 'b', 'c']
    assert report.cycles == [['a', 'b', 'a']]


def test_constructor_error_is_recorded():
    def boom():
        raise RuntimeError('kaboom')

    registry, report = run([make_descriptor('x', [], boom)])
    record = registry.get_record('x')
    assert record.failure_kind is FailureKind.UNEXPECTED
    assert 'kaboom' in record.fail_reasons[0]
    assert 'RuntimeError' in record.fail_trace
    assert record.instance is None


def test_load_hook_error_is_recorded():
    calls = []
    registry, _ = run([make_descriptor('x', [], probe('x', calls, error=ValueError('bad hook')))])
    record = registry.get_record('x')
    assert record.failure_kind is FailureKind.HOOK
    assert 'bad hook' in record.fail_reasons[0]
    assert 'ValueError' in record.fail_trace


def test_keyboard_interrupt_propagates():
    calls = []
    with pytest.raises(KeyboardInterrupt):
        run([make_descriptor('x', [], probe('x', calls, error=KeyboardInterrupt()))])


def test_strict_config_blocks_load():
    registry, report = run([make_descriptor('db', [], NeedsPort)])
    record = registry.get_record('db')
    assert record.failure_kind is FailureKind.BINDING
    assert record.fail_reasons[0] == "Unable to inject config into component 'db'."
    assert 'db.port' in record.fail_reasons[1]
    assert report.failed == ['db']


def test_lenient_config_warns_and_loads(caplog):
    with caplog.at_level(logging.WARNING, logger='compound.runtime.scheduler'):
        registry, report = run([make_descriptor('db', [], NeedsPort)], strict_config=False)
    assert report.loaded == ['db']
    assert registry.get('db').port == 0
    assert 'config_incomplete' in caplog.text


def test_config_bound_from_type_document(tmp_path):
    (tmp_path / 'db.yml').write_text('db:\n  port: 5432\n', encoding='utf-8')

    @config_file('db.yml')
    class Bound:
        port: Annotated[int, Config(key='db.port')] = 0

    registry, report = run([make_descriptor('db', [], Bound)], store_root=tmp_path)
    assert report.loaded == ['db']
    assert registry.get('db').port == 5432


def test_duplicate_names_keep_last_descriptor(caplog):
    class First:
        pass

    class Second:
        pass

    with caplog.at_level(logging.WARNING, logger='compound.runtime.scheduler'):
        registry, report = run([
            make_descriptor('x', [], First),
            make_descriptor('y', ['x']),
            make_descriptor('x', [], Second),
        ])
    assert isinstance(registry.get('x'), Second)
    assert sorted(report.loaded) == ['x', 'y']
    assert len(registry.records()) == 2
    assert 'status=duplicate' in caplog.text


def test_descriptors_released_after_outcome():
    descriptors = [make_descriptor('a'), make_descriptor('b', ['ghost']), make_descriptor('c', ['c'])]
    run(descriptors)
    assert descriptors[0].released
    assert descriptors[1].released
    assert not descriptors[2].released


# -- property tests -------------------------------------------------------------

@st.composite
def acyclic_graphs(draw):
    size = draw(st.integers(min_value=1, max_value=8))
    names = [f"c{i}" for i in range(size)]
    deps = {}
    for i, name in enumerate(names):
        deps[name] = draw(st.lists(st.sampled_from(names[:i]), unique=True)) if i else []
    failing = draw(st.sets(st.sampled_from(names)))
    missing = draw(st.sets(st.sampled_from(names)))
    order = draw(st.permutations(names))
    return names, deps, failing, missing, order


@hyp_settings(max_examples=75, deadline=None)
@given(acyclic_graphs())
def test_acyclic_runs_terminate_consistently(graph):
    names, deps, failing, missing, order = graph
    calls = []
    descriptors = []
    for name in order:
        declared = list(deps[name]) + (['ghost'] if name in missing else [])
        descriptors.append(ComponentDescriptor(name, '', declared, probe(name, calls, ok=name not in failing)))
    registry, report = run(descriptors)

    assert report.deadlocked == []
    assert report.passes <= len(names) + 1
    loaded_at = {}
    for idx, (kind, name) in enumerate(calls):
        if kind == 'load':
            loaded_at[name] = idx
    for name in names:
        record = registry.get_record(name)
        assert record.state.terminal
        if record.loaded:
            assert all(registry.get_record(d).loaded for d in deps[name])
            assert all(loaded_at[d] < loaded_at[name] for d in deps[name])
        if name in missing:
            assert record.failed
            assert ('init', name) not in calls
        if any(registry.get_record(d).failed for d in deps[name]) and name not in missing:
            assert record.failure_kind is FailureKind.DEPENDENCY_FAILED
            assert ('load', name) not in calls
        if record.failed:
            assert record.fail_reasons


@hyp_settings(max_examples=25, deadline=None)
@given(st.integers(min_value=1, max_value=6))
def test_ring_deadlocks(size):
    names = [f"r{i}" for i in range(size)]
    descriptors = [make_descriptor(n, [names[(i + 1) % size]]) for i, n in enumerate(names)]
    registry, report = run(descriptors)
    assert sorted(report.deadlocked) == names
    assert report.cycles
    assert all(registry.state(n) is ComponentState.PENDING for n in names)
    assert report.loaded == [] and report.failed == []
