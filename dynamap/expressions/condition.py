"""
Condition expressions built from condition maps.

A condition map associates an attribute name with one or more operators::

    {'age': {'gt': 18, 'lte': 65}, 'name': {'begins_with': 'J'}}

A list of maps is a list of groups; every clause of every group is ANDed.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

from dynamap.constants import (
    EQ, NE, GT, LT, GTE, LTE, BETWEEN, BEGINS_WITH, IN, CONTAINS, NOT_CONTAINS, IS_NULL, NOT_NULL
)
from dynamap.expressions.util import Placeholders

ConditionMap = Mapping[str, Mapping[str, Any]]
ConditionGroups = Union[ConditionMap, Sequence[ConditionMap]]


class Condition(object):
    format_string: str = ''

    def __init__(self, name: str, *values: Any) -> None:
        self.name = name
        self.values = values

    def serialize(self, placeholders: Placeholders) -> str:
        name = placeholders.substitute_name(self.name)
        values = [placeholders.substitute_value(value) for value in self.values]
        return self.format_string.format(name, *values)

    def __repr__(self) -> str:
        return self.format_string.format(self.name, *[repr(value) for value in self.values])


class Comparison(Condition):
    format_string = '{0} {operator} {1}'

    def __init__(self, operator: str, name: str, value: Any) -> None:
        if operator not in ['=', '<>', '<', '<=', '>', '>=']:
            raise ValueError("{0} is not a valid comparison operator".format(operator))
        self.operator = operator
        super().__init__(name, value)

    def serialize(self, placeholders: Placeholders) -> str:
        name = placeholders.substitute_name(self.name)
        value = placeholders.substitute_value(self.values[0])
        return self.format_string.format(name, value, operator=self.operator)

    def __repr__(self) -> str:
        return self.format_string.format(self.name, repr(self.values[0]), operator=self.operator)


class Between(Condition):
    format_string = '{0} BETWEEN {1} AND {2}'

    def __init__(self, name: str, lower: Any, upper: Any) -> None:
        super().__init__(name, lower, upper)


class BeginsWith(Condition):
    format_string = 'begins_with ({0}, {1})'


class In(Condition):
    format_string = '{0} IN ({1})'

    def serialize(self, placeholders: Placeholders) -> str:
        name = placeholders.substitute_name(self.name)
        values = [placeholders.substitute_value(value) for value in self.values]
        return self.format_string.format(name, ' , '.join(values))


class Contains(Condition):
    format_string = 'contains ({0}, {1})'


class NotContains(Condition):
    format_string = 'NOT contains ({0}, {1})'


class Exists(Condition):
    format_string = 'attribute_exists ({0})'

    def __init__(self, name: str) -> None:
        super().__init__(name)


class NotExists(Condition):
    format_string = 'attribute_not_exists ({0})'

    def __init__(self, name: str) -> None:
        super().__init__(name)


COMPARISON_OPERATORS = {
    EQ: '=',
    NE: '<>',
    GT: '>',
    LT: '<',
    GTE: '>=',
    LTE: '<=',
}

FUNCTION_CONDITIONS: Dict[str, Type[Condition]] = {
    BEGINS_WITH: BeginsWith,
    CONTAINS: Contains,
    NOT_CONTAINS: NotContains,
}


def build_condition(name: str, operator: str, value: Any) -> Optional[Condition]:
    """
    Returns the condition for one (attribute, operator, value) triple.
    Unknown operators produce None and are left out of the expression.
    """
    if operator in COMPARISON_OPERATORS:
        return Comparison(COMPARISON_OPERATORS[operator], name, value)
    if operator == BETWEEN:
        lower, upper = value
        return Between(name, lower, upper)
    if operator == IN:
        return In(name, *value)
    if operator in FUNCTION_CONDITIONS:
        return FUNCTION_CONDITIONS[operator](name, value)
    if operator == IS_NULL:
        return NotExists(name)
    if operator == NOT_NULL:
        return Exists(name)
    return None


def normalize_condition_groups(condition_groups: Optional[ConditionGroups]) -> List[ConditionMap]:
    if not condition_groups:
        return []
    if isinstance(condition_groups, Mapping):
        return [condition_groups]
    return [group for group in condition_groups if group]


def build_conditions(condition_groups: Optional[ConditionGroups]) -> List[Condition]:
    conditions = []
    for group in normalize_condition_groups(condition_groups):
        for name, operators in group.items():
            for operator, value in operators.items():
                condition = build_condition(name, operator, value)
                if condition is not None:
                    conditions.append(condition)
    return conditions


def create_condition_expression(
    condition_groups: Optional[ConditionGroups],
    placeholders: Placeholders,
) -> Optional[str]:
    """
    Renders condition groups into one expression whose clauses are joined with AND
    """
    clauses = [condition.serialize(placeholders) for condition in build_conditions(condition_groups)]
    if not clauses:
        return None
    return ' AND '.join(clauses)


@dataclass
class WriteConditions:
    """
    Conditions attached to a put, update or delete.

    :param unless_exists: attribute names that must not exist on the stored item
    :param must_exist: attribute names that must exist on the stored item
    :param if_equals: attribute values the stored item must have
    :param if_exists: attribute values the stored item must have, with the attribute present
    """
    unless_exists: Iterable[str] = ()
    must_exist: Iterable[str] = ()
    if_equals: Mapping[str, Any] = field(default_factory=dict)
    if_exists: Mapping[str, Any] = field(default_factory=dict)

    def conditions(self) -> List[Condition]:
        conditions: List[Condition] = [NotExists(name) for name in self.unless_exists]
        conditions.extend(Exists(name) for name in self.must_exist)
        for name, value in self.if_exists.items():
            conditions.append(Exists(name))
            conditions.append(Comparison('=', name, value))
        for name, value in self.if_equals.items():
            conditions.append(Comparison('=', name, value))
        return conditions

    def serialize(self, placeholders: Placeholders) -> Optional[str]:
        clauses = [condition.serialize(placeholders) for condition in self.conditions()]
        if not clauses:
            return None
        return ' AND '.join(clauses)
