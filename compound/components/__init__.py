from .decorators import ComponentInfo, LoadableComponent, component, component_info
from .descriptor import ComponentDescriptor, ComponentRecord, ComponentState, FailureKind
from .discovery import descriptors_from, discover, scan_package

__all__ = [
    'ComponentInfo',
    'LoadableComponent',
    'component',
    'component_info',
    'ComponentDescriptor',
    'ComponentRecord',
    'ComponentState',
    'FailureKind',
    'descriptors_from',
    'discover',
    'scan_package',
]
