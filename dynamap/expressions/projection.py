from typing import Iterable
from typing import Optional
from typing import Union

from dynamap.expressions.util import Placeholders


def create_projection_expression(
    attributes_to_get: Optional[Union[str, Iterable[str]]],
    placeholders: Placeholders,
) -> Optional[str]:
    if not attributes_to_get:
        return None
    if isinstance(attributes_to_get, str):
        attributes_to_get = [attributes_to_get]
    return ', '.join(placeholders.substitute_name(attribute) for attribute in attributes_to_get)
