"""
Dynamap Indexes
"""
from inspect import getmembers
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from dynamap.attributes import Attribute
from dynamap.constants import (
    ALL, ATTR_NAME, ATTR_TYPE, HASH, INCLUDE, INDEX_NAME, KEY_SCHEMA, KEY_TYPE, KEYS_ONLY, NON_KEY_ATTRIBUTES,
    PROJECTION, PROJECTION_TYPE, RANGE,
)

if TYPE_CHECKING:
    from dynamap.criteria import Chain


class Index(object):
    """
    Base class for secondary indexes

    Index attributes are declared on the class, keys flagged the way model keys are::

        class EmailIndex(GlobalSecondaryIndex):
            class Meta:
                projection = AllProjection()
            email = UnicodeAttribute(hash_key=True)
    """
    Meta: Any = None
    is_global = False

    @classmethod
    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.Meta is not None:
            cls.Meta.attributes = {}
            for name, attribute in getmembers(cls, lambda o: isinstance(o, Attribute)):
                cls.Meta.attributes[name] = attribute

    def __init__(self) -> None:
        if self.Meta is None:
            raise ValueError("Indexes require a Meta class for settings")
        if not hasattr(self.Meta, "projection"):
            raise ValueError("No projection defined, define a projection for this class")

    def __set_name__(self, owner: Any, name: str):
        if not hasattr(self.Meta, "model"):
            self.Meta.model = owner
        if not hasattr(self.Meta, "index_name"):
            self.Meta.index_name = name

    @classmethod
    def index_name(cls) -> str:
        return cls.Meta.index_name

    @classmethod
    def hash_key_attribute(cls) -> Attribute:
        for attr in cls.Meta.attributes.values():
            if attr.is_hash_key:
                return attr
        raise ValueError("Index {} has no hash key".format(cls.Meta.index_name))

    @classmethod
    def range_key_attribute(cls) -> Optional[Attribute]:
        for attr in cls.Meta.attributes.values():
            if attr.is_range_key:
                return attr
        return None

    @classmethod
    def where(cls, conditions: Optional[Dict[str, Any]] = None, **kwargs: Any) -> 'Chain':
        """
        Starts a query on this index
        """
        return cls.Meta.model.where(conditions, **kwargs).with_index(cls.Meta.index_name)

    @classmethod
    def get_attribute_definitions(cls) -> List[Dict[str, str]]:
        definitions = []
        for attr in (cls.hash_key_attribute(), cls.range_key_attribute()):
            if attr is not None:
                definitions.append({ATTR_NAME: attr.attr_name, ATTR_TYPE: attr.attr_type})
        return definitions

    @classmethod
    def get_schema(cls) -> Dict:
        """
        Returns the schema for this index
        """
        key_schema = [{ATTR_NAME: cls.hash_key_attribute().attr_name, KEY_TYPE: HASH}]
        range_key = cls.range_key_attribute()
        if range_key is not None:
            key_schema.append({ATTR_NAME: range_key.attr_name, KEY_TYPE: RANGE})
        schema: Dict[str, Any] = {
            INDEX_NAME: cls.Meta.index_name,
            KEY_SCHEMA: key_schema,
            PROJECTION: {
                PROJECTION_TYPE: cls.Meta.projection.projection_type,
            },
        }
        if cls.Meta.projection.non_key_attributes:
            schema[PROJECTION][NON_KEY_ATTRIBUTES] = cls.Meta.projection.non_key_attributes
        return schema


class GlobalSecondaryIndex(Index):
    """
    A global secondary index

    ``Meta.read_capacity_units`` and ``Meta.write_capacity_units`` give the index its own
    throughput; the table's capacity is used when they are missing.
    """
    is_global = True


class LocalSecondaryIndex(Index):
    """
    A local secondary index
    """
    pass


class Projection(object):
    """
    A class for presenting projections
    """
    projection_type: Any = None
    non_key_attributes: Any = None


class KeysOnlyProjection(Projection):
    """
    Keys only projection
    """
    projection_type = KEYS_ONLY


class IncludeProjection(Projection):
    """
    An INCLUDE projection
    """
    projection_type = INCLUDE

    def __init__(self, non_attr_keys: Optional[List[str]] = None) -> None:
        if not non_attr_keys:
            raise ValueError("The INCLUDE type projection requires a list of string attribute names")
        self.non_key_attributes = non_attr_keys


class AllProjection(Projection):
    """
    An ALL projection
    """
    projection_type = ALL
