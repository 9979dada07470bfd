"""
Dynamap attributes

Attributes declare the fields of a model. Values are stored as given: the caller hands
in values that are already wire-ready and gets plain values back.
"""
from copy import deepcopy
from typing import Any, Callable, Generic, List, Optional, Type, TypeVar, Union, overload

from dynamap.constants import (
    BINARY, BINARY_SET, BOOLEAN, KEY_ATTRIBUTE_TYPES, LIST, MAP, NUMBER, NUMBER_SET, STRING, STRING_SET,
)

_T = TypeVar('_T')
_A = TypeVar('_A', bound='Attribute')


class Attribute(Generic[_T]):
    """
    An attribute of a model
    """
    attr_type: str = STRING
    null = True

    def __init__(
        self,
        hash_key: bool = False,
        range_key: bool = False,
        null: Optional[bool] = None,
        default: Optional[Union[_T, Callable[..., _T]]] = None,
        attr_name: Optional[str] = None,
    ) -> None:
        if null is not None:
            self.null = null
        if hash_key or range_key:
            self.null = False
            if self.attr_type not in KEY_ATTRIBUTE_TYPES:
                raise ValueError("{} cannot be used as a key attribute".format(type(self).__name__))
        self.default = default
        self.is_hash_key = hash_key
        self.is_range_key = range_key

        # __set_name__ will ensure this is a string
        self.attr_name: str = attr_name  # type: ignore
        self.python_name: str = attr_name  # type: ignore

    def __set_name__(self, owner: Type[Any], name: str) -> None:
        self.python_name = name
        self.attr_name = self.attr_name or name

    def __set__(self, instance: Any, value: Optional[_T]) -> None:
        if instance is not None:
            instance._set_attribute(self.python_name, value)

    @overload
    def __get__(self: _A, instance: None, owner: Any) -> _A: ...

    @overload
    def __get__(self: _A, instance: Any, owner: Any) -> _T: ...

    def __get__(self: _A, instance: Any, owner: Any) -> Union[_A, _T]:
        if instance is None:
            return self
        return instance.attribute_values.get(self.python_name)

    def get_default(self) -> Optional[_T]:
        if callable(self.default):
            return self.default()
        # mutable defaults must not be shared between instances
        return deepcopy(self.default)

    def __repr__(self) -> str:
        return "{}<{}>".format(type(self).__name__, self.attr_name)


class UnicodeAttribute(Attribute[str]):
    attr_type = STRING


class NumberAttribute(Attribute[float]):
    attr_type = NUMBER


class BinaryAttribute(Attribute[bytes]):
    attr_type = BINARY


class BooleanAttribute(Attribute[bool]):
    attr_type = BOOLEAN


class UnicodeSetAttribute(Attribute[set]):
    attr_type = STRING_SET


class NumberSetAttribute(Attribute[set]):
    attr_type = NUMBER_SET


class BinarySetAttribute(Attribute[set]):
    attr_type = BINARY_SET


class ListAttribute(Attribute[List[Any]]):
    attr_type = LIST


class MapAttribute(Attribute[dict]):
    attr_type = MAP


class VersionAttribute(NumberAttribute):
    """
    A version attribute for optimistic locking

    Every write of a model increments the version, and is only accepted when the stored
    version still matches the one the model was loaded with.
    """
    null = True

    def __set__(self, instance, value):
        """
        Cast assigned value to int.
        """
        super().__set__(instance, int(value) if value is not None else None)

    def __get__(self, instance, owner):
        """
        Cast retrieved value to int.
        """
        val = super().__get__(instance, owner)
        return int(val) if isinstance(val, float) else val
