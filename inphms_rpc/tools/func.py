# Part of Inphms, see License file for full copyright and licensing details.

from __future__ import annotations
import typing

from decorator import decorator

__all__ = [
    'lazy_property',
    'synchronized',
]

T = typing.TypeVar("T")

if typing.TYPE_CHECKING:
    from collections.abc import Callable


class lazy_property(typing.Generic[T]):
    """ Decorator for a lazy property of an object, i.e., an object attribute
        that is determined by the result of a method call evaluated once. To
        reevaluate the property, simply delete the attribute on the object, and
        get it again.
    """
    def __init__(self, fget: Callable[[typing.Any], T]):
        self.fget = fget
        self.__doc__ = fget.__doc__
        self.__name__ = fget.__name__

    def __get__(self, obj, cls) -> T:
        if obj is None:
            return self
        value = self.fget(obj)
        setattr(obj, self.__name__, value)
        return value

    @staticmethod
    def reset_all(obj) -> None:
        """ Reset all lazy properties on the instance `obj`. """
        cls = type(obj)
        obj_dict = vars(obj)
        for name in list(obj_dict):
            if isinstance(getattr(cls, name, None), lazy_property):
                obj_dict.pop(name)


def synchronized(lock_attr: str = '_lock'):
    """ Run the decorated method while holding the lock found in attribute
        ``lock_attr`` of the instance (or class, for classmethods).
    """
    @decorator
    def locked(func, inst, *args, **kwargs):
        with getattr(inst, lock_attr):
            return func(inst, *args, **kwargs)
    return locked
locked = synchronized()
