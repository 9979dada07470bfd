import json
from decimal import Decimal
from typing import Any
from typing import Dict
from typing import Mapping

from dynamap.constants import BINARY
from dynamap.constants import BINARY_SET
from dynamap.constants import BOOLEAN
from dynamap.constants import LIST
from dynamap.constants import MAP
from dynamap.constants import NULL
from dynamap.constants import NUMBER
from dynamap.constants import NUMBER_SET
from dynamap.constants import STRING
from dynamap.constants import STRING_SET


def attr_value_to_python(attribute_value: Dict[str, Any]) -> Any:
    """
    Unwraps a typed DynamoDB AttributeValue into a plain Python value
    """
    attr_type, attr_value = next(iter(attribute_value.items()))
    if attr_type == LIST:
        return [attr_value_to_python(v) for v in attr_value]
    if attr_type == MAP:
        return {k: attr_value_to_python(v) for k, v in attr_value.items()}
    if attr_type == NULL:
        return None
    if attr_type in (BOOLEAN, STRING, BINARY):
        return attr_value
    if attr_type == NUMBER:
        return json.loads(attr_value)
    if attr_type == STRING_SET:
        return set(attr_value)
    if attr_type == NUMBER_SET:
        return {json.loads(v) for v in attr_value}
    if attr_type == BINARY_SET:
        return set(attr_value)
    raise ValueError("Unknown attribute type: {}".format(attr_type))


def python_to_attr_value(value: Any) -> Dict[str, Any]:
    """
    Wraps a plain Python value into a typed DynamoDB AttributeValue
    """
    if value is None:
        return {NULL: True}
    if value is True or value is False:
        return {BOOLEAN: value}
    if isinstance(value, (int, float, Decimal)):
        return {NUMBER: _number_to_str(value)}
    if isinstance(value, str):
        return {STRING: value}
    if isinstance(value, (bytes, bytearray)):
        return {BINARY: bytes(value)}
    if isinstance(value, (set, frozenset)):
        return _set_to_attr_value(value)
    if isinstance(value, (list, tuple)):
        return {LIST: [python_to_attr_value(v) for v in value]}
    if isinstance(value, Mapping):
        return {MAP: {str(k): python_to_attr_value(v) for k, v in value.items()}}
    raise ValueError("Unknown value type: {}".format(type(value).__name__))


def item_to_python(item: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {name: attr_value_to_python(value) for name, value in item.items()}


def python_to_item(item: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {name: python_to_attr_value(value) for name, value in item.items()}


def is_blank(value: Any) -> bool:
    """
    Empty strings and empty sets cannot be stored by DynamoDB
    """
    return isinstance(value, (str, set, frozenset)) and len(value) == 0


def sanitize_item(item: Mapping[str, Any], store_attribute_with_nil_value: bool = False) -> Dict[str, Any]:
    """
    Drops the attributes DynamoDB would reject or that should not be stored
    """
    return {
        name: value for name, value in item.items()
        if not is_blank(value) and (store_attribute_with_nil_value or value is not None)
    }


def _number_to_str(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    return json.dumps(value)


def _set_to_attr_value(value: Any) -> Dict[str, Any]:
    if not value:
        raise ValueError("Empty sets cannot be stored")
    if all(isinstance(v, str) for v in value):
        return {STRING_SET: sorted(value)}
    if all(isinstance(v, (bytes, bytearray)) for v in value):
        return {BINARY_SET: sorted(bytes(v) for v in value)}
    if all(isinstance(v, (int, float, Decimal)) and not isinstance(v, bool) for v in value):
        return {NUMBER_SET: [_number_to_str(v) for v in sorted(value)]}
    raise ValueError("Sets must contain only strings, numbers or bytes")
