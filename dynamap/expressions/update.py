from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Union

from dynamap._util import is_blank
from dynamap.expressions.util import Placeholders
from dynamap.settings import get_settings_value


class ItemUpdater:
    """
    Accumulates partial updates of a single item and renders them as one UpdateExpression.

    - ``add`` increments numbers and unions sets server-side; a bare value given for one of
      the ``set_attributes`` is added as a one-element set
    - ``delete`` subtracts from sets, or removes the attribute when given a bare name
    - ``set`` replaces values; a blank value becomes a removal unless nil values are stored
    - ``remove`` removes attributes

    The methods return the updater so calls can be chained::

        ItemUpdater().set(name='Josh').add(visits=1).delete({'hobbies': {'skying'}})
    """

    def __init__(
        self,
        store_attribute_with_nil_value: Optional[bool] = None,
        set_attributes: Iterable[str] = (),
    ) -> None:
        if store_attribute_with_nil_value is None:
            store_attribute_with_nil_value = get_settings_value('store_attribute_with_nil_value')
        self.store_attribute_with_nil_value = bool(store_attribute_with_nil_value)
        self.set_attributes = frozenset(set_attributes)
        self.additions: Dict[str, Any] = {}
        self.deletions: Dict[str, Any] = {}
        self.sets: Dict[str, Any] = {}
        self.removals: List[str] = []

    def add(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> 'ItemUpdater':
        for name, value in _merge(values, kwargs).items():
            if name in self.set_attributes:
                self.additions[name] = _coerce_set(value)
            else:
                self.additions[name] = _coerce_collection(value)
        return self

    def delete(self, field_or_values: Union[str, Mapping[str, Any], None] = None, **kwargs: Any) -> 'ItemUpdater':
        if isinstance(field_or_values, str):
            return self.remove(field_or_values)
        for name, value in _merge(field_or_values, kwargs).items():
            self.deletions[name] = _coerce_set(value)
        return self

    def set(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> 'ItemUpdater':
        for name, value in _merge(values, kwargs).items():
            if is_blank(value):
                value = None
            if value is None and not self.store_attribute_with_nil_value:
                self.remove(name)
            else:
                self.sets[name] = value
        return self

    def remove(self, *names: str) -> 'ItemUpdater':
        for name in names:
            if name not in self.removals:
                self.removals.append(name)
        return self

    @property
    def is_empty(self) -> bool:
        return not (self.additions or self.deletions or self.sets or self.removals)

    def serialize(self, placeholders: Placeholders) -> Optional[str]:
        """
        Renders the pending changes, one clause per non-empty bucket
        """
        self._check_overlap()
        clauses = []
        if self.sets:
            clauses.append('SET ' + ', '.join(
                '{} = {}'.format(placeholders.substitute_name(name), placeholders.substitute_value(value))
                for name, value in self.sets.items()
            ))
        if self.additions:
            clauses.append('ADD ' + ', '.join(
                '{} {}'.format(placeholders.substitute_name(name), placeholders.substitute_value(value))
                for name, value in self.additions.items()
            ))
        if self.deletions:
            clauses.append('DELETE ' + ', '.join(
                '{} {}'.format(placeholders.substitute_name(name), placeholders.substitute_value(value))
                for name, value in self.deletions.items()
            ))
        if self.removals:
            clauses.append('REMOVE ' + ', '.join(placeholders.substitute_name(name) for name in self.removals))
        return ' '.join(clauses) or None

    def _check_overlap(self) -> None:
        seen: Dict[str, str] = {}
        buckets = (('SET', self.sets), ('ADD', self.additions), ('DELETE', self.deletions), ('REMOVE', self.removals))
        for clause, names in buckets:
            for name in names:
                if name in seen:
                    raise ValueError("Attribute '{}' is used by both {} and {}".format(name, seen[name], clause))
                seen[name] = clause

    def __repr__(self) -> str:
        return 'ItemUpdater(sets={}, additions={}, deletions={}, removals={})'.format(
            self.sets, self.additions, self.deletions, self.removals)


def _merge(values: Optional[Mapping[str, Any]], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(values or {})
    merged.update(kwargs)
    return merged


def _coerce_collection(value: Any) -> Any:
    if isinstance(value, (list, tuple, frozenset)):
        return set(value)
    return value


def _coerce_set(value: Any) -> Any:
    if isinstance(value, set):
        return value
    if isinstance(value, (list, tuple, frozenset)):
        return set(value)
    return {value}
