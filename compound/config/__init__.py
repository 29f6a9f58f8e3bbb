from .binder import BindOutcome, ConfigBinder, coerce_number
from .binding import Config, FieldBinding, Resolve, TypeBindings, bindings_for, config_file
from .store import ConfigDocument, ConfigStore

__all__ = [
    'BindOutcome',
    'ConfigBinder',
    'coerce_number',
    'Config',
    'FieldBinding',
    'Resolve',
    'TypeBindings',
    'bindings_for',
    'config_file',
    'ConfigDocument',
    'ConfigStore',
]
