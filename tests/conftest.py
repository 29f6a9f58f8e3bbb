import sys
import pathlib

import pytest
import yaml

# Ensure the repo root (containing the 'compound' and 'tests' packages) is on sys.path
REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from compound.components.descriptor import ComponentDescriptor
from compound.config.binder import ConfigBinder
from compound.config.store import ConfigStore
from compound.core.config import Settings


@pytest.fixture
def write_yaml(tmp_path):
    """Write a YAML document under tmp_path and return its relative path."""
    def _write(relative: str, data) -> str:
        target = tmp_path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            target.write_text(data, encoding='utf-8')
        else:
            target.write_text(yaml.safe_dump(data), encoding='utf-8')
        return relative
    return _write


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path)


@pytest.fixture
def binder(store):
    return ConfigBinder(store)


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path)


def make_descriptor(name, depends=(), factory=None, description=''):
    """Descriptor around a plain factory; defaults to a bare object."""
    return ComponentDescriptor(
        name=name,
        description=description,
        dependencies=depends,
        implementation=factory or object,
    )


@pytest.fixture
def descriptor_factory():
    return make_descriptor
