"""
Dynamap Models
"""
import logging
import uuid
from dataclasses import replace
from inspect import getmembers
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar, TYPE_CHECKING

from dynamap.adapter import Adapter, Updater
from dynamap.attributes import Attribute, VersionAttribute
from dynamap.backoff import BackoffSetting
from dynamap.connection import Connection
from dynamap.constants import HOST, META_CLASS_NAME, REGION, SET_ATTRIBUTE_TYPES, STRING
from dynamap.exceptions import (
    ConditionalCheckFailedError, DocumentNotValid, RecordNotFound, RecordNotUnique, StaleObjectError,
    TableDoesNotExist,
)
from dynamap.expressions.condition import ConditionMap, WriteConditions
from dynamap.expressions.update import ItemUpdater
from dynamap.indexes import Index
from dynamap.settings import get_settings_value

if TYPE_CHECKING:
    from dynamap.criteria import Chain

_T = TypeVar('_T', bound='Model')
_KeyType = Any

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())


class MetaModel(type):
    """
    Model meta class

    Collects the attributes, the key attributes and the indexes declared on a model.
    """
    def __init__(cls, name, bases, namespace) -> None:
        super().__init__(name, bases, namespace)
        cls._attributes = {}
        cls._dynamo_to_python_attrs = {}
        cls._hash_keyname = None
        cls._range_keyname = None
        cls._version_attribute_name = None
        for attr_name, attribute in getmembers(cls, lambda o: isinstance(o, Attribute)):
            cls._attributes[attr_name] = attribute
            cls._dynamo_to_python_attrs[attribute.attr_name] = attr_name
            if attribute.is_hash_key:
                if cls._hash_keyname and cls._hash_keyname != attr_name:
                    raise ValueError(f"{name} has more than one hash key: {cls._hash_keyname}, {attr_name}")
                cls._hash_keyname = attr_name
            if attribute.is_range_key:
                if cls._range_keyname and cls._range_keyname != attr_name:
                    raise ValueError(f"{name} has more than one range key: {cls._range_keyname}, {attr_name}")
                cls._range_keyname = attr_name
            if isinstance(attribute, VersionAttribute):
                if cls._version_attribute_name and cls._version_attribute_name != attr_name:
                    raise ValueError(
                        "The model has more than one Version attribute: {}, {}"
                        .format(cls._version_attribute_name, attr_name)
                    )
                cls._version_attribute_name = attr_name

        cls._indexes = {}
        for _, index in getmembers(cls, lambda o: isinstance(o, Index)):
            cls._indexes[index.Meta.index_name] = index

        meta = namespace.get(META_CLASS_NAME)
        if meta is not None:
            if not hasattr(meta, REGION):
                setattr(meta, REGION, get_settings_value('region'))
            if not hasattr(meta, HOST):
                setattr(meta, HOST, get_settings_value('host'))


class Model(metaclass=MetaModel):
    """
    Defines a Dynamap Model

    This model is backed by a table in DynamoDB::

        class User(Model):
            class Meta:
                table_name = 'users'
            id = UnicodeAttribute(hash_key=True)
            name = UnicodeAttribute(null=False)

    Values are stored as given. Subclasses may override :meth:`validate` and the
    ``before_*`` / ``after_*`` callbacks; a ``before_*`` callback returning False aborts
    the operation.
    """

    # These attributes are named to avoid colliding with user defined
    # DynamoDB attributes
    _attributes: Dict[str, Attribute]
    _dynamo_to_python_attrs: Dict[str, str]
    _hash_keyname: Optional[str] = None
    _range_keyname: Optional[str] = None
    _version_attribute_name: Optional[str] = None
    _indexes: Dict[str, Index]
    _adapter: Optional[Adapter] = None

    Meta: Any

    def __init__(
        self,
        hash_key: Optional[_KeyType] = None,
        range_key: Optional[_KeyType] = None,
        _user_instantiated: bool = True,
        **attributes: Any,
    ) -> None:
        """
        :param hash_key: The hash key for this object.
        :param range_key: Only required if the table has a range key attribute.
        :param attributes: A dictionary of attributes to set on this object.
        """
        self.attribute_values: Dict[str, Any] = {}
        self._original_values: Dict[str, Any] = {}
        self.new_record = True
        self.destroyed = False
        self.errors: List[str] = []

        if hash_key is not None:
            if self._hash_keyname is None:
                raise ValueError(f"This model has no hash key, but a hash key value was provided: {hash_key}")
            attributes[self._hash_keyname] = hash_key
        if range_key is not None:
            if self._range_keyname is None:
                raise ValueError(f"This model has no range key, but a range key value was provided: {range_key}")
            attributes[self._range_keyname] = range_key

        if _user_instantiated:
            for name, attribute in self.get_attributes().items():
                if attribute.default is not None:
                    self.attribute_values[name] = attribute.get_default()
        self.assign_attributes(attributes)

    def __repr__(self) -> str:
        hash_key, range_key = self._get_keys()
        if self._range_keyname:
            return "{}<{}, {}>".format(self.Meta.table_name, hash_key, range_key)
        return "{}<{}>".format(self.Meta.table_name, hash_key)

    # Attributes and dirty tracking

    @classmethod
    def get_attributes(cls) -> Dict[str, Attribute]:
        return cls._attributes

    @classmethod
    def _hash_key_attribute(cls) -> Optional[Attribute]:
        return cls._attributes.get(cls._hash_keyname) if cls._hash_keyname else None

    @classmethod
    def _range_key_attribute(cls) -> Optional[Attribute]:
        return cls._attributes.get(cls._range_keyname) if cls._range_keyname else None

    @classmethod
    def _dynamo_name(cls, name: str) -> str:
        attribute = cls._attributes.get(name)
        return attribute.attr_name if attribute is not None else name

    def assign_attributes(self, attributes: Dict[str, Any]) -> None:
        for name, value in attributes.items():
            if name not in self._attributes:
                raise ValueError("Attribute {} specified does not exist".format(name))
            setattr(self, name, value)

    def _set_attribute(self, name: str, value: Any) -> None:
        current = self.attribute_values.get(name)
        if name in self._original_values:
            if self._original_values[name] == value:
                del self._original_values[name]
        elif current != value:
            self._original_values[name] = current
        self.attribute_values[name] = value

    def changed_attributes(self) -> List[str]:
        return list(self._original_values)

    @property
    def is_changed(self) -> bool:
        return bool(self._original_values)

    @property
    def changes(self) -> Dict[str, Tuple[Any, Any]]:
        """
        Maps every changed attribute to its ``(old, new)`` values
        """
        return {name: (old, self.attribute_values.get(name)) for name, old in self._original_values.items()}

    def changes_applied(self) -> None:
        self._original_values.clear()

    def restore_attributes(self, names: Optional[Iterable[str]] = None) -> None:
        """
        Reverts changed attributes (all of them by default) to the values they had when last saved
        """
        for name in list(names if names is not None else self._original_values):
            if name in self._original_values:
                self.attribute_values[name] = self._original_values.pop(name)

    @property
    def persisted(self) -> bool:
        return not (self.new_record or self.destroyed)

    def _get_keys(self) -> Tuple[Any, Any]:
        hash_key = self.attribute_values.get(self._hash_keyname) if self._hash_keyname else None
        range_key = self.attribute_values.get(self._range_keyname) if self._range_keyname else None
        return hash_key, range_key

    def _key_attribute_names(self) -> List[str]:
        return [attr.attr_name for attr in (self._hash_key_attribute(), self._range_key_attribute()) if attr]

    def to_item(self) -> Dict[str, Any]:
        """
        Returns the attribute values keyed by their DynamoDB names
        """
        return {
            attribute.attr_name: self.attribute_values[name]
            for name, attribute in self.get_attributes().items()
            if name in self.attribute_values
        }

    def _changed_item(self) -> Dict[str, Any]:
        keys = (self._hash_keyname, self._range_keyname, self._version_attribute_name)
        return {
            self._dynamo_name(name): self.attribute_values.get(name)
            for name in self._original_values
            if name not in keys
        }

    def _assign_hash_key(self) -> None:
        hash_key_attribute = self._hash_key_attribute()
        if hash_key_attribute is None or hash_key_attribute.attr_type != STRING:
            return
        if self.attribute_values.get(self._hash_keyname) is None:
            self._set_attribute(self._hash_keyname, str(uuid.uuid4()))

    # Optimistic locking

    def _stored_version(self) -> Optional[int]:
        # a version assigned by hand does not change the version the item is expected to have
        name = self._version_attribute_name
        if name in self._original_values:
            return self._original_values[name]
        return self.attribute_values.get(name)

    def _next_version(self) -> Optional[int]:
        if self._version_attribute_name is None:
            return None
        return (self._stored_version() or 0) + 1

    def _version_conditions(self, conditions: Optional[WriteConditions] = None) -> Optional[WriteConditions]:
        """
        Adds the check of the stored version to `conditions`: it must equal the version this
        object was loaded with, or be missing when the object has no version yet
        """
        if self._version_attribute_name is None:
            return conditions
        conditions = conditions or WriteConditions()
        attr_name = self._dynamo_name(self._version_attribute_name)
        version = self._stored_version()
        if version is None:
            return replace(conditions, unless_exists=[*conditions.unless_exists, attr_name])
        return replace(conditions, if_equals={**conditions.if_equals, attr_name: version})

    def _versioned(self, updater: ItemUpdater) -> ItemUpdater:
        """
        Makes `updater` increment the version attribute as well
        """
        if self._version_attribute_name is not None:
            updater.add({self._dynamo_name(self._version_attribute_name): 1})
        return updater

    @classmethod
    def _set_attribute_names(cls) -> List[str]:
        return [attr.attr_name for attr in cls._attributes.values() if attr.attr_type in SET_ATTRIBUTE_TYPES]

    @classmethod
    def _item_updater(cls, updater: Updater, adapter: Adapter) -> ItemUpdater:
        """
        Returns `updater`, or a fresh ItemUpdater that knows the set attributes of this model
        filled in by the `updater` callable
        """
        if isinstance(updater, ItemUpdater):
            return updater
        builder = ItemUpdater(
            store_attribute_with_nil_value=adapter.store_attribute_with_nil_value,
            set_attributes=cls._set_attribute_names(),
        )
        updater(builder)
        return builder

    # Validation and callbacks

    def validate(self) -> None:
        """
        Adds messages to ``self.errors``. Overrides should call ``super().validate()``.
        """
        for name, attribute in self.get_attributes().items():
            if not attribute.null and self.attribute_values.get(name) is None:
                self.errors.append("{} can't be blank".format(name))

    def is_valid(self) -> bool:
        self.errors = []
        self.validate()
        return not self.errors

    def before_save(self) -> Any:
        pass

    def after_save(self) -> None:
        pass

    def before_create(self) -> Any:
        pass

    def after_create(self) -> None:
        pass

    def before_update(self) -> Any:
        pass

    def after_update(self) -> None:
        pass

    def before_destroy(self) -> Any:
        pass

    def after_destroy(self) -> None:
        pass

    def run_before_callbacks(self, *events: str) -> bool:
        """
        Runs the ``before_*`` callbacks in order; returns False as soon as one of them does
        """
        for event in events:
            if getattr(self, 'before_' + event)() is False:
                log.debug("%s aborted by before_%s", self, event)
                return False
        return True

    def run_after_callbacks(self, *events: str) -> None:
        for event in reversed(events):
            getattr(self, 'after_' + event)()

    def _save_events(self) -> Tuple[str, str]:
        return ('save', 'create') if self.new_record else ('save', 'update')

    # Persistence

    def save(self, validate: bool = True, raise_error: bool = False) -> bool:
        """
        Creates or updates this object

        A new object is put with a condition that its key is not taken yet, raising
        RecordNotUnique otherwise. A persisted object only sends its changed attributes,
        with a condition that the item still exists, raising StaleObjectError otherwise.
        Both increment the version attribute, if the model has one, and an update also
        requires the stored version to be the one this object was loaded with.

        Returns False when validation fails or a callback aborts the save.
        """
        if self.new_record:
            self._assign_hash_key()
        if validate and not self.is_valid():
            if raise_error:
                raise DocumentNotValid(self)
            return False

        events = self._save_events()
        if not self.run_before_callbacks(*events):
            return False
        if self.new_record:
            self._create()
        else:
            self._update()
        self.run_after_callbacks(*events)
        return True

    def _create(self) -> None:
        conditions = WriteConditions(unless_exists=self._key_attribute_names())
        item = self.to_item()
        version = self._next_version()
        if version is not None:
            item[self._dynamo_name(self._version_attribute_name)] = version
        try:
            self._get_adapter().put_item(self.table_name(), item, conditions=conditions)
        except ConditionalCheckFailedError as e:
            raise RecordNotUnique("{!r} already exists".format(self), e.cause)
        if version is not None:
            self.attribute_values[self._version_attribute_name] = version
        self.new_record = False
        self.changes_applied()

    def _update(self) -> None:
        changes = self._changed_item()
        if not changes:
            self.changes_applied()
            return
        self._apply_update(
            lambda updater: updater.set(changes),
            self._version_conditions(self._existence_conditions()),
        )

    def _apply_update(self, updater: Updater, conditions: Optional[WriteConditions]) -> None:
        hash_key, range_key = self._get_keys()
        adapter = self._get_adapter()
        updater = self._versioned(self._item_updater(updater, adapter))
        try:
            data = adapter.update_item(
                self.table_name(), hash_key, updater, range_key=range_key, conditions=conditions,
            )
        except ConditionalCheckFailedError as e:
            raise StaleObjectError("{!r} was changed or deleted".format(self), e.cause)
        self._load(data)

    def update(
        self,
        updater: Updater,
        conditions: Optional[WriteConditions] = None,
        raise_error: bool = False,
    ) -> bool:
        """
        Applies an ItemUpdater to the stored item and reloads this object from the result::

            user.update(lambda updater: updater.add(visits=1))

        Runs the update callbacks. The version attribute, if any, is incremented but not
        checked, so a concurrent update never fails because of it while a concurrent save
        of a stale copy does.

        Without `conditions` the item must exist. Returns False when a callback aborts the
        update or the conditions do not hold; with `raise_error` the latter raises
        StaleObjectError instead.
        """
        if not self.run_before_callbacks('update'):
            return False
        if conditions is None:
            conditions = self._existence_conditions()
        try:
            self._apply_update(updater, conditions)
        except StaleObjectError:
            if raise_error:
                raise
            return False
        self.run_after_callbacks('update')
        return True

    def update_attributes(self, attributes: Mapping[str, Any], raise_error: bool = False) -> bool:
        """
        Assigns the attributes and saves the object
        """
        self.assign_attributes(dict(attributes))
        return self.save(raise_error=raise_error)

    def update_attribute(self, name: str, value: Any, raise_error: bool = False) -> bool:
        return self.update_attributes({name: value}, raise_error=raise_error)

    def increment(self: _T, name: str, by: Any = 1) -> _T:
        """
        Adds `by` to a number attribute, treating a missing value as zero. Nothing is saved.
        """
        self.assign_attributes({name: (self.attribute_values.get(name) or 0) + by})
        return self

    def decrement(self: _T, name: str, by: Any = 1) -> _T:
        return self.increment(name, -by)

    def _existence_conditions(self) -> WriteConditions:
        hash_key, range_key = self._get_keys()
        if_exists = {self._dynamo_name(self._hash_keyname): hash_key}
        if self._range_keyname:
            if_exists[self._dynamo_name(self._range_keyname)] = range_key
        return WriteConditions(if_exists=if_exists)

    def delete(self) -> bool:
        """
        Deletes this object from DynamoDB. Deleting an item which is already gone is not an error.

        A versioned object is only deleted while the stored version matches its own,
        StaleObjectError is raised otherwise.
        """
        if not self.run_before_callbacks('destroy'):
            return False
        hash_key, range_key = self._get_keys()
        try:
            self._get_adapter().delete_item(
                self.table_name(), hash_key, range_key=range_key, conditions=self._version_conditions(),
            )
        except ConditionalCheckFailedError as e:
            raise StaleObjectError("{!r} was changed by someone else".format(self), e.cause)
        self.destroyed = True
        self.run_after_callbacks('destroy')
        return True

    def refresh(self, consistent_read: bool = False) -> None:
        """
        Reloads this object's data from DynamoDB
        """
        hash_key, range_key = self._get_keys()
        data = self._get_adapter().get_item(
            self.table_name(), hash_key, range_key=range_key, consistent_read=consistent_read,
        )
        if data is None:
            raise RecordNotFound("{!r} does not exist in the table".format(self))
        self._load(data)

    def _load(self, data: Dict[str, Any]) -> None:
        for dynamo_name, value in data.items():
            name = self._dynamo_to_python_attrs.get(dynamo_name)
            if name is not None:
                self.attribute_values[name] = value
        self.new_record = False
        self.changes_applied()

    # Class level operations

    @classmethod
    def from_raw_data(cls: Type[_T], data: Dict[str, Any]) -> _T:
        """
        Returns an instance of this class built from an item as returned by the adapter
        """
        if data is None:
            raise ValueError("Received no data to construct object")
        instance = cls(_user_instantiated=False)
        instance._load(data)
        return instance

    @classmethod
    def table_name(cls) -> str:
        """
        Returns the table name, prefixed with the configured namespace
        """
        namespace = get_settings_value('namespace')
        if namespace:
            return "{}_{}".format(namespace, cls.Meta.table_name)
        return cls.Meta.table_name

    @classmethod
    def _get_adapter(cls) -> Adapter:
        """
        Returns the adapter of ``Meta.adapter``, or a (cached) one built from the Meta settings
        """
        if not hasattr(cls, "Meta") or getattr(cls.Meta, "table_name", None) is None:
            raise AttributeError(
                'Dynamap Models require a `Meta` class with a table_name\n'
                'Model: {}.{}'.format(cls.__module__, cls.__name__)
            )
        adapter = getattr(cls.Meta, 'adapter', None)
        if adapter is not None:
            return adapter
        if cls._adapter is None:
            cls._adapter = Adapter(Connection(region=cls.Meta.region, host=cls.Meta.host))
        return cls._adapter

    @classmethod
    def get(
        cls: Type[_T],
        hash_key: _KeyType,
        range_key: Optional[_KeyType] = None,
        consistent_read: bool = False,
    ) -> Optional[_T]:
        """
        Returns a single object using the provided keys, or None when it does not exist
        """
        data = cls._get_adapter().get_item(
            cls.table_name(), hash_key, range_key=range_key, consistent_read=consistent_read,
        )
        return cls.from_raw_data(data) if data is not None else None

    @classmethod
    def batch_get(cls: Type[_T], ids: Iterable[Any], consistent_read: bool = False) -> List[_T]:
        """
        Returns the objects with the given ids (``(hash, range)`` tuples for composite keys)
        """
        results = cls._get_adapter().batch_get_item({cls.table_name(): list(ids)}, consistent_read=consistent_read)
        return [cls.from_raw_data(item) for item in results.get(cls.table_name(), [])]

    @classmethod
    def import_items(
        cls: Type[_T],
        items: Iterable[Mapping[str, Any]],
        backoff: BackoffSetting = None,
    ) -> List[_T]:
        """
        Creates many objects at once with BatchWriteItem and returns them

        Neither validation nor callbacks run, and existing items with the same keys are
        replaced. Unprocessed items are sent again after the `backoff` delay, the adapter's
        configured backoff by default.
        """
        models = []
        for attributes in items:
            model = cls(**attributes)
            model._assign_hash_key()
            models.append(model)
        adapter = cls._get_adapter()
        adapter.batch_write_item(
            cls.table_name(),
            [model.to_item() for model in models],
            backoff=backoff if backoff is not None else adapter.backoff,
        )
        for model in models:
            model.new_record = False
            model.changes_applied()
        return models

    @classmethod
    def where(cls, conditions: Optional[ConditionMap] = None, **kwargs: Any) -> 'Chain':
        """
        Starts a query (or scan) with the given conditions, see :class:`~dynamap.criteria.Chain`
        """
        from dynamap.criteria import Chain
        return Chain(cls).where(conditions, **kwargs)

    @classmethod
    def all(cls) -> 'Chain':
        from dynamap.criteria import Chain
        return Chain(cls)

    @classmethod
    def count(cls) -> Optional[int]:
        """
        Returns the item count DynamoDB reports for the table (refreshed about every six hours)
        """
        return cls._get_adapter().count(cls.table_name())

    @classmethod
    def exists(cls) -> bool:
        """
        Returns True if this table exists, False otherwise
        """
        try:
            cls._get_adapter().describe_table(cls.table_name(), reload=True)
            return True
        except TableDoesNotExist:
            return False

    @classmethod
    def create_table(cls, sync: bool = False, billing_mode: Optional[str] = None) -> bool:
        """
        Creates the table for this model along with its indexes
        """
        hash_key_attribute = cls._hash_key_attribute()
        if hash_key_attribute is None:
            raise ValueError("{} has no hash key".format(cls.__name__))
        range_key_attribute = cls._range_key_attribute()
        indexes = list(cls._indexes.values())
        return cls._get_adapter().create_table(
            cls.table_name(),
            hash_key_attribute.attr_name,
            hash_key_attribute.attr_type,
            range_key=range_key_attribute.attr_name if range_key_attribute else None,
            range_key_type=range_key_attribute.attr_type if range_key_attribute else STRING,
            read_capacity=getattr(cls.Meta, 'read_capacity_units', None),
            write_capacity=getattr(cls.Meta, 'write_capacity_units', None),
            billing_mode=billing_mode or getattr(cls.Meta, 'billing_mode', None),
            local_secondary_indexes=[type(index) for index in indexes if not index.is_global],
            global_secondary_indexes=[type(index) for index in indexes if index.is_global],
            sync=sync,
        )

    @classmethod
    def delete_table(cls, sync: bool = False) -> None:
        cls._get_adapter().delete_table(cls.table_name(), sync=sync)
