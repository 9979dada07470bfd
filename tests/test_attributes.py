"""
dynamap attributes and indexes tests
"""
import pytest

from dynamap.attributes import (
    BinaryAttribute, BinarySetAttribute, BooleanAttribute, ListAttribute, MapAttribute, NumberAttribute,
    NumberSetAttribute, UnicodeAttribute, UnicodeSetAttribute,
)
from dynamap.constants import BINARY, BINARY_SET, BOOLEAN, LIST, MAP, NUMBER, NUMBER_SET, STRING, STRING_SET
from dynamap.indexes import (
    AllProjection, GlobalSecondaryIndex, IncludeProjection, KeysOnlyProjection, LocalSecondaryIndex,
)
from .models import AuthorIndex, Thread, ViewsIndex


class TestAttributeDescriptor:

    @pytest.mark.parametrize('attribute_cls, attr_type', [
        (UnicodeAttribute, STRING),
        (NumberAttribute, NUMBER),
        (BinaryAttribute, BINARY),
        (BooleanAttribute, BOOLEAN),
        (UnicodeSetAttribute, STRING_SET),
        (NumberSetAttribute, NUMBER_SET),
        (BinarySetAttribute, BINARY_SET),
        (ListAttribute, LIST),
        (MapAttribute, MAP),
    ])
    def test_attr_type(self, attribute_cls, attr_type):
        attribute = attribute_cls()
        assert attribute.attr_type == attr_type
        assert attribute.null
        assert not attribute.is_hash_key

    def test_attr_name(self):
        assert Thread.views.attr_name == 'Views'
        assert Thread.views.python_name == 'views'
        assert repr(Thread.views) == 'NumberAttribute<Views>'

    def test_key_attributes_are_required(self):
        attribute = UnicodeAttribute(hash_key=True)
        assert not attribute.null
        assert attribute.is_hash_key

    @pytest.mark.parametrize('attribute_cls', [BooleanAttribute, MapAttribute, UnicodeSetAttribute])
    def test_invalid_key_type(self, attribute_cls):
        with pytest.raises(ValueError):
            attribute_cls(range_key=True)

    def test_instance_access(self):
        thread = Thread('Amazon DynamoDB', 'How', views=3)
        assert thread.views == 3
        thread.views = 4
        assert thread.attribute_values['views'] == 4


class TestDefault:

    def test_default(self):
        assert UnicodeAttribute(default='Josh').get_default() == 'Josh'
        assert NumberAttribute().get_default() is None

    def test_callable_default(self):
        assert MapAttribute(default=dict).get_default() == {}

    def test_mutable_default_is_copied(self):
        attribute = ListAttribute(default=[1, 2])
        first = attribute.get_default()
        first.append(3)
        assert attribute.get_default() == [1, 2]


class TestIndexes:

    def test_index_metadata(self):
        assert AuthorIndex.index_name() == 'AuthorIndex'
        assert AuthorIndex.Meta.model is Thread
        assert AuthorIndex.hash_key_attribute().attr_name == 'Author'
        assert AuthorIndex.range_key_attribute().attr_name == 'Replies'
        assert AuthorIndex.is_global
        assert not ViewsIndex.is_global

    def test_global_index_schema(self):
        assert AuthorIndex.get_schema() == {
            'IndexName': 'AuthorIndex',
            'KeySchema': [
                {'AttributeName': 'Author', 'KeyType': 'HASH'},
                {'AttributeName': 'Replies', 'KeyType': 'RANGE'},
            ],
            'Projection': {'ProjectionType': 'ALL'},
        }
        assert AuthorIndex.get_attribute_definitions() == [
            {'AttributeName': 'Author', 'AttributeType': 'S'},
            {'AttributeName': 'Replies', 'AttributeType': 'N'},
        ]

    def test_include_projection(self):
        class CategoryIndex(GlobalSecondaryIndex):
            class Meta:
                index_name = 'CategoryIndex'
                projection = IncludeProjection(['Message'])

            category = UnicodeAttribute(hash_key=True, attr_name='Category')

        assert CategoryIndex.get_schema() == {
            'IndexName': 'CategoryIndex',
            'KeySchema': [{'AttributeName': 'Category', 'KeyType': 'HASH'}],
            'Projection': {'ProjectionType': 'INCLUDE', 'NonKeyAttributes': ['Message']},
        }
        assert CategoryIndex.range_key_attribute() is None

        with pytest.raises(ValueError):
            IncludeProjection([])

    def test_index_name_defaults_to_the_attribute_name(self):
        class TagIndex(LocalSecondaryIndex):
            class Meta:
                projection = KeysOnlyProjection()

            tag = UnicodeAttribute(hash_key=True)

        class Holder:
            tags_by_name = TagIndex()

        assert TagIndex.index_name() == 'tags_by_name'
        assert TagIndex.Meta.model is Holder

    def test_index_requires_meta(self):
        class NoProjection(GlobalSecondaryIndex):
            class Meta:
                index_name = 'NoProjection'

        with pytest.raises(ValueError):
            NoProjection()

    def test_index_without_hash_key(self):
        class NoKeys(GlobalSecondaryIndex):
            class Meta:
                index_name = 'NoKeys'
                projection = AllProjection()

        with pytest.raises(ValueError):
            NoKeys.get_schema()
