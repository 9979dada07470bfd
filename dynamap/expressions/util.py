from typing import Any
from typing import Dict

from dynamap._util import python_to_attr_value
from dynamap.constants import EXPRESSION_ATTRIBUTE_NAMES
from dynamap.constants import EXPRESSION_ATTRIBUTE_VALUES

NAME_PREFIX = '#_a'
VALUE_PREFIX = ':_a'


class Placeholders:
    """
    Expression attribute name and value placeholders for a single request.

    Every expression of one request (key condition, filter, projection, update and
    condition expressions) draws from the same instance so placeholders never collide.
    Attribute names are always substituted, reserved word or not, which also keeps
    names with dots, dashes or leading underscores intact.

    For example, substituting the name "name" then the value "Josh" produces
    "#_a0" and ":_a0", with names == {"#_a0": "name"} and values == {":_a0": {"S": "Josh"}}
    """

    def __init__(self) -> None:
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Dict[str, Any]] = {}
        self._name_to_placeholder: Dict[str, str] = {}

    def substitute_name(self, attribute_name: str) -> str:
        placeholder = self._name_to_placeholder.get(attribute_name)
        if placeholder is None:
            placeholder = NAME_PREFIX + str(len(self.names))
            self._name_to_placeholder[attribute_name] = placeholder
            self.names[placeholder] = attribute_name
        return placeholder

    def substitute_value(self, value: Any) -> str:
        placeholder = VALUE_PREFIX + str(len(self.values))
        self.values[placeholder] = python_to_attr_value(value)
        return placeholder

    def to_operation_kwargs(self) -> Dict[str, Any]:
        operation_kwargs: Dict[str, Any] = {}
        if self.names:
            operation_kwargs[EXPRESSION_ATTRIBUTE_NAMES] = dict(self.names)
        if self.values:
            operation_kwargs[EXPRESSION_ATTRIBUTE_VALUES] = dict(self.values)
        return operation_kwargs
