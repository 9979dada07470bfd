"""
Atomic multi-item writes and reads
"""
import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from dynamap.adapter import Adapter
from dynamap.exceptions import (
    DocumentNotValid, InvalidStateError, MissingHashKey, MissingRangeKey, RecordNotDestroyed, RecordNotFound,
    RecordNotSaved, Rollback,
)
from dynamap.expressions.condition import WriteConditions
from dynamap.expressions.update import ItemUpdater
from dynamap.models import Model

_M = TypeVar('_M', bound=Model)

log = logging.getLogger(__name__)


def _validate_primary_key(model_cls: Type[Model], hash_key: Any, range_key: Any) -> None:
    if hash_key is None:
        raise MissingHashKey("Hash key value is missing for {}".format(model_cls.__name__))
    if model_cls._range_keyname and range_key is None:
        raise MissingRangeKey("Range key value is missing for {}".format(model_cls.__name__))


class Action(object):
    """
    One item operation of a transaction.

    Lifecycle: registered when added to the transaction (validations and ``before_*``
    callbacks run, the action may abort itself), then rendered into the request, then
    either committed or rolled back once the service answered.
    Aborted and skipped actions are left out of the request.
    """
    model_cls: Type[Model]
    aborted = False

    def on_registration(self) -> None:
        pass

    def on_commit(self) -> None:
        pass

    def on_rollback(self) -> None:
        pass

    @property
    def skipped(self) -> bool:
        return False

    @property
    def result(self) -> Any:
        return None

    def action_request(self, adapter: Adapter) -> Dict[str, Any]:
        raise NotImplementedError()


class Save(Action):
    """
    Creates a new model or updates the changed attributes of a persisted one
    """

    def __init__(
        self,
        model: Model,
        raise_error: bool = False,
        skip_callbacks: bool = False,
        skip_validation: bool = False,
        raise_validation_error: bool = False,
    ) -> None:
        self.model = model
        self.model_cls = type(model)
        self.raise_error = raise_error
        self.skip_callbacks = skip_callbacks
        self.skip_validation = skip_validation
        self.raise_validation_error = raise_validation_error or raise_error
        self.was_new_record = model.new_record
        self.validation_failed = False
        self.version: Optional[int] = None

    def _events(self):
        return ('save', 'create') if self.was_new_record else ('save', 'update')

    def on_registration(self) -> None:
        if self.was_new_record:
            self.model._assign_hash_key()
        if not self.skip_validation and not self.model.is_valid():
            if self.raise_validation_error:
                raise DocumentNotValid(self.model)
            self.aborted = True
            self.validation_failed = True
            return
        if not self.skip_callbacks and not self.model.run_before_callbacks(*self._events()):
            if self.raise_error:
                raise RecordNotSaved(self.model)
            self.aborted = True

    @property
    def skipped(self) -> bool:
        return not self.was_new_record and not self.model.is_changed

    @property
    def result(self) -> bool:
        return not self.validation_failed

    def action_request(self, adapter: Adapter) -> Dict[str, Any]:
        model = self.model
        hash_key, range_key = model._get_keys()
        self.version = model._next_version()
        if self.was_new_record:
            item = model.to_item()
            if self.version is not None:
                item[model._dynamo_name(model._version_attribute_name)] = self.version
            conditions = WriteConditions(unless_exists=model._key_attribute_names())
            return adapter.transact_put(model.table_name(), item, conditions=conditions)
        updater = model._item_updater(lambda builder: builder.set(model._changed_item()), adapter)
        return adapter.transact_update(
            model.table_name(),
            hash_key,
            model._versioned(updater),
            range_key=range_key,
            conditions=model._version_conditions(WriteConditions(must_exist=model._key_attribute_names())),
        )

    def on_commit(self) -> None:
        if self.version is not None:
            self.model.attribute_values[self.model._version_attribute_name] = self.version
        self.model.changes_applied()
        if self.was_new_record:
            self.model.new_record = False
        if not self.skip_callbacks:
            self.model.run_after_callbacks(*self._events())


class Create(Save):
    """
    Builds a new model from attributes and saves it
    """

    def __init__(self, model_cls: Type[Model], attributes: Optional[Mapping[str, Any]] = None, **options: Any) -> None:
        super(Create, self).__init__(model_cls(**(attributes or {})), **options)

    @property
    def skipped(self) -> bool:
        return False

    @property
    def result(self) -> Model:
        return self.model


class UpdateAttributes(Save):
    """
    Assigns attributes to a persisted model and saves the changes
    """

    def __init__(self, model: Model, attributes: Mapping[str, Any], **options: Any) -> None:
        super(UpdateAttributes, self).__init__(model, **options)
        self.assigned = list(attributes)
        model.assign_attributes(dict(attributes))

    def on_rollback(self) -> None:
        self.model.restore_attributes(self.assigned)


class UpdateFields(Action):
    """
    Updates an item by primary key without loading it.

    Besides the attributes to set, the action accepts item updater operations::

        transaction.update_fields(User, '1', attributes={'name': 'Josh'}).add(visits=1).remove('nickname')

    The item must exist, unless the action is an upsert.
    """

    def __init__(
        self,
        model_cls: Type[Model],
        hash_key: Any,
        range_key: Any = None,
        attributes: Optional[Mapping[str, Any]] = None,
        upsert: bool = False,
    ) -> None:
        self.model_cls = model_cls
        self.hash_key = hash_key
        self.range_key = range_key
        self.attributes = dict(attributes or {})
        self.upsert = upsert
        self.updater = ItemUpdater(set_attributes=model_cls._set_attribute_names())

    def on_registration(self) -> None:
        _validate_primary_key(self.model_cls, self.hash_key, self.range_key)
        for name in self.attributes:
            if name not in self.model_cls.get_attributes():
                raise ValueError("Attribute {} specified does not exist".format(name))

    def _names(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {self.model_cls._dynamo_name(name): value for name, value in values.items()}

    def set(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> 'UpdateFields':
        self.attributes.update(values or {}, **kwargs)
        return self

    def add(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> 'UpdateFields':
        self.updater.add(self._names(dict(values or {}, **kwargs)))
        return self

    def delete(self, field_or_values: Union[str, Mapping[str, Any]]) -> 'UpdateFields':
        if isinstance(field_or_values, str):
            self.updater.delete(self.model_cls._dynamo_name(field_or_values))
        else:
            self.updater.delete(self._names(field_or_values))
        return self

    def remove(self, *names: str) -> 'UpdateFields':
        self.updater.remove(*(self.model_cls._dynamo_name(name) for name in names))
        return self

    @property
    def skipped(self) -> bool:
        return not self.attributes and self.updater.is_empty

    def action_request(self, adapter: Adapter) -> Dict[str, Any]:
        self.updater.set(self._names(self.attributes))
        conditions = None
        if not self.upsert:
            conditions = WriteConditions(must_exist=[
                attr.attr_name
                for attr in (self.model_cls._hash_key_attribute(), self.model_cls._range_key_attribute())
                if attr
            ])
        return adapter.transact_update(
            self.model_cls.table_name(), self.hash_key, self.updater, range_key=self.range_key, conditions=conditions,
        )


class Delete(Action):
    """
    Deletes an item by primary key, or the item of a model. A missing item is not an error.
    """

    def __init__(self, model_cls: Type[Model], hash_key: Any, range_key: Any = None, model: Optional[Model] = None):
        self.model_cls = model_cls
        self.hash_key = hash_key
        self.range_key = range_key
        self.model = model

    @classmethod
    def from_model(cls, model: Model) -> 'Delete':
        hash_key, range_key = model._get_keys()
        return cls(type(model), hash_key, range_key, model=model)

    def on_registration(self) -> None:
        _validate_primary_key(self.model_cls, self.hash_key, self.range_key)

    @property
    def result(self) -> Optional[Model]:
        return self.model

    def action_request(self, adapter: Adapter) -> Dict[str, Any]:
        return adapter.transact_delete(self.model_cls.table_name(), self.hash_key, range_key=self.range_key)

    def on_commit(self) -> None:
        if self.model is not None:
            self.model.destroyed = True


class Destroy(Delete):
    """
    Deletes the item of a model, running the destroy callbacks. The item must exist.
    """

    def __init__(self, model: Model, raise_error: bool = False, skip_callbacks: bool = False) -> None:
        hash_key, range_key = model._get_keys()
        super(Destroy, self).__init__(type(model), hash_key, range_key, model=model)
        self.raise_error = raise_error
        self.skip_callbacks = skip_callbacks

    def on_registration(self) -> None:
        super(Destroy, self).on_registration()
        if not self.skip_callbacks and not self.model.run_before_callbacks('destroy'):
            if self.raise_error:
                raise RecordNotDestroyed(self.model)
            self.aborted = True

    def action_request(self, adapter: Adapter) -> Dict[str, Any]:
        conditions = WriteConditions(must_exist=self.model._key_attribute_names())
        return adapter.transact_delete(
            self.model_cls.table_name(),
            self.hash_key,
            range_key=self.range_key,
            conditions=self.model._version_conditions(conditions),
        )

    def on_commit(self) -> None:
        super(Destroy, self).on_commit()
        if not self.skip_callbacks:
            self.model.run_after_callbacks('destroy')


class TransactionWrite(object):
    """
    Collects item writes and sends them as one all-or-nothing TransactWriteItems call::

        with TransactionWrite.execute(adapter) as transaction:
            user = transaction.create(User, {'name': 'Josh'})
            transaction.update_fields(Counter, 'users').add(count=1)
            transaction.destroy(old_user)

    The transaction commits when the block ends and rolls back when it raises.
    Raising :class:`~dynamap.exceptions.Rollback` discards the transaction silently.
    """

    def __init__(self, adapter: Optional[Adapter] = None, client_request_token: Optional[str] = None) -> None:
        self.adapter = adapter
        self.client_request_token = client_request_token
        self.actions: List[Action] = []
        self.finished = False

    @classmethod
    def execute(cls, adapter: Optional[Adapter] = None, **kwargs: Any) -> 'TransactionWrite':
        return cls(adapter, **kwargs)

    def __enter__(self) -> 'TransactionWrite':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
            return False
        self.rollback()
        return isinstance(exc_val, Rollback)

    def _register(self, action: Action) -> Any:
        if self.finished:
            raise InvalidStateError("The transaction has already been committed or rolled back")
        action.on_registration()
        self.actions.append(action)
        return action.result

    def _pending(self) -> List[Action]:
        return [action for action in self.actions if not action.aborted and not action.skipped]

    def _adapter_for(self, action: Action) -> Adapter:
        return self.adapter or action.model_cls._get_adapter()

    def create(
        self,
        model_cls: Type[_M],
        attributes: Union[Mapping[str, Any], List[Mapping[str, Any]], None] = None,
        raise_error: bool = False,
        **options: Any,
    ) -> Union[_M, List[_M]]:
        """
        Builds and saves new models; a list of attribute mappings creates one model each
        """
        if isinstance(attributes, list):
            return [self.create(model_cls, attrs, raise_error=raise_error, **options) for attrs in attributes]
        return self._register(Create(model_cls, attributes, raise_error=raise_error, **options))

    def save(self, model: Model, raise_error: bool = False, **options: Any) -> bool:
        """
        Creates a new model or updates the changed attributes of a persisted one.
        Returns False when the model is not valid.
        """
        return self._register(Save(model, raise_error=raise_error, **options))

    def update_attributes(
        self, model: Model, attributes: Mapping[str, Any], raise_error: bool = False, **options: Any,
    ) -> bool:
        return self._register(UpdateAttributes(model, attributes, raise_error=raise_error, **options))

    def update_fields(
        self,
        model_cls: Type[Model],
        hash_key: Any,
        range_key: Any = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> UpdateFields:
        action = UpdateFields(model_cls, hash_key, range_key, attributes)
        self._register(action)
        return action

    def upsert(
        self,
        model_cls: Type[Model],
        hash_key: Any,
        range_key: Any = None,
        attributes: Optional[Mapping[str, Any]] = None,
    ) -> UpdateFields:
        action = UpdateFields(model_cls, hash_key, range_key, attributes, upsert=True)
        self._register(action)
        return action

    def delete(
        self,
        model_or_model_cls: Union[Model, Type[Model]],
        hash_key: Any = None,
        range_key: Any = None,
    ) -> Optional[Model]:
        if isinstance(model_or_model_cls, Model):
            return self._register(Delete.from_model(model_or_model_cls))
        return self._register(Delete(model_or_model_cls, hash_key, range_key))

    def destroy(self, model: _M, raise_error: bool = False, **options: Any) -> _M:
        return self._register(Destroy(model, raise_error=raise_error, **options))

    def commit(self) -> None:
        """
        Sends every registered action that was neither aborted nor skipped
        """
        if self.finished:
            raise InvalidStateError("The transaction has already been committed or rolled back")
        self.finished = True
        actions = self._pending()
        if not actions:
            return
        adapter = self._adapter_for(actions[0])
        try:
            requests = [action.action_request(self._adapter_for(action)) for action in actions]
            adapter.transact_write_items(requests, client_request_token=self.client_request_token)
        except Exception:
            log.debug("Transaction of %s actions failed, rolling back", len(actions))
            for action in actions:
                action.on_rollback()
            raise
        for action in actions:
            action.on_commit()

    def rollback(self) -> None:
        self.finished = True
        for action in self._pending():
            action.on_rollback()


class Find(Generic[_M]):
    """
    Gets items by primary key within a read transaction.

    The result is available from :meth:`get` once the transaction is committed: one model
    when a single id was given, a list otherwise.
    """

    def __init__(
        self,
        model_cls: Type[_M],
        *ids: Any,
        range_key: Any = None,
        raise_error: bool = True,
    ) -> None:
        self.model_cls = model_cls
        self.ids = ids
        self.range_key = range_key
        self.raise_error = raise_error
        self._resolved = False
        self._result: Any = None

    @property
    def single(self) -> bool:
        return len(self.ids) == 1 and not isinstance(self.ids[0], list)

    def keys(self) -> List[Any]:
        if self.single:
            item_id = self.ids[0]
            if self.model_cls._range_keyname and not isinstance(item_id, tuple):
                return [(item_id, self.range_key)]
            return [item_id]
        keys: List[Any] = []
        for item_id in self.ids:
            keys.extend(item_id if isinstance(item_id, list) else [item_id])
        return keys

    def _split(self, key: Any):
        if self.model_cls._range_keyname:
            hash_key, range_key = key
            return hash_key, range_key
        return key, None

    def on_registration(self) -> None:
        for key in self.keys():
            _validate_primary_key(self.model_cls, *self._split(key))

    def action_requests(self, adapter: Adapter) -> List[Dict[str, Any]]:
        return [
            adapter.transact_get(self.model_cls.table_name(), *self._split(key))
            for key in self.keys()
        ]

    def process(self, items: List[Optional[Dict[str, Any]]]) -> List[_M]:
        models = []
        for key, item in zip(self.keys(), items):
            if item is not None:
                models.append(self.model_cls.from_raw_data(item))
            elif self.raise_error:
                raise RecordNotFound("Couldn't find {} with primary key {!r}".format(self.model_cls.__name__, key))
            elif self.single:
                models.append(None)
        self._result = models[0] if self.single else models
        self._resolved = True
        return models

    def get(self) -> Any:
        if not self._resolved:
            raise InvalidStateError("The transaction has not been committed yet")
        return self._result


class TransactionRead(object):
    """
    Gets items of any table in one TransactGetItems call::

        with TransactionRead.execute(adapter) as transaction:
            user = transaction.find(User, '1')
            posts = transaction.find(Post, [('1', 1), ('1', 2)])
        user.get()
    """

    def __init__(self, adapter: Optional[Adapter] = None) -> None:
        self.adapter = adapter
        self.actions: List[Find] = []
        self.results: Optional[List[Any]] = None

    @classmethod
    def execute(cls, adapter: Optional[Adapter] = None) -> 'TransactionRead':
        return cls(adapter)

    def __enter__(self) -> 'TransactionRead':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()

    def find(self, model_cls: Type[_M], *ids: Any, range_key: Any = None, raise_error: bool = True) -> Find[_M]:
        action = Find(model_cls, *ids, range_key=range_key, raise_error=raise_error)
        action.on_registration()
        self.actions.append(action)
        return action

    def commit(self) -> List[Any]:
        """
        Sends every registered get and returns the found models in registration order
        """
        if self.results is not None:
            raise InvalidStateError("The transaction has already been committed")
        self.results = []
        groups = [
            action.action_requests(self.adapter or action.model_cls._get_adapter())
            for action in self.actions
        ]
        requests = [request for group in groups for request in group]
        if not requests:
            return self.results
        adapter = self.adapter or self.actions[0].model_cls._get_adapter()
        items = adapter.transact_get_items(requests)
        for action, group in zip(self.actions, groups):
            action_items, items = items[:len(group)], items[len(group):]
            self.results.extend(action.process(action_items))
        return self.results
