from .graph import DependencyGraph
from .host import ComponentHost
from .registry import ComponentRegistry
from .scheduler import LoadReport, LoadScheduler

__all__ = [
    'DependencyGraph',
    'ComponentHost',
    'ComponentRegistry',
    'LoadReport',
    'LoadScheduler',
]
