from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Type, TypeVar

from compound.utils.text import clean_name_list

__all__ = ["ComponentInfo", "component", "component_info", "LoadableComponent"]

COMPONENT_ATTR = '__compound_component__'

T = TypeVar('T', bound=type)


@dataclass(frozen=True)
class ComponentInfo:
    name: str
    description: str = ''
    depends: Tuple[str, ...] = ()


def component(name: str, *, description: str = '', depends: Iterable[str] | str = ()):
    """Class decorator declaring a discoverable component.

    Example:
        @component('economy', description='Balances and payments', depends=['storage'])
        class Economy(LoadableComponent):
            ...
    """
    if not name or not name.strip():
        raise ValueError('component name is required')

    def decorator(cls: T) -> T:
        if not isinstance(cls, type):
            raise TypeError('@component can only decorate classes')
        info = ComponentInfo(
            name=name.strip(),
            description=description,
            depends=tuple(clean_name_list(depends)),
        )
        setattr(cls, COMPONENT_ATTR, info)
        return cls
    return decorator


def component_info(cls: Type) -> Optional[ComponentInfo]:
    # Read from the class body only: subclasses of a component are not
    # components unless decorated themselves.
    info = vars(cls).get(COMPONENT_ATTR) if isinstance(cls, type) else None
    return info if isinstance(info, ComponentInfo) else None


class LoadableComponent:
    """Optional base for components with lifecycle hooks.

    Both hooks report success with a truthy return value. Components that do
    not need a hook can skip this base entirely.
    """

    def load(self) -> bool:
        return True

    def unload(self) -> bool:
        return True
