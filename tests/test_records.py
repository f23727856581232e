"""Tests for typed records."""

from types import SimpleNamespace
from typing import TYPE_CHECKING

import pytest

from typed_records import (
    AttributeDefinitionError,
    MissingAttributeError,
    NotNullableError,
    SchemaRegistry,
    SlotState,
    TypedList,
    TypedRecord,
    TypeMismatchError,
    UninitializedAccessError,
    UnknownAttributeError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

type Models = dict[str, type[TypedRecord]]


def test_construct_from_mapping(models: Models) -> None:
    """Coerce nested data into records and typed containers."""
    user = models['User'].from_mapping({
        'name': 'Ada',
        'age': 36,
        'emails': ['ada@example.com'],
        'address': {'city': 'London'},
    })

    assert user.name == 'Ada'
    assert user.age == 36
    assert isinstance(user.emails, TypedList)
    assert user.emails == ['ada@example.com']
    assert isinstance(user.address, models['Address'])
    assert user.address.city == 'London'
    assert user.address.zip is None
    assert user.address.state('zip') is SlotState.UNSET


def test_construct_with_keywords(models: Models) -> None:
    """Merge positional mappings and keyword arguments, later ones first."""
    user = models['User']({'name': 'Ada', 'age': 1}, SimpleNamespace(age=2), age=3)

    assert user.name == 'Ada'
    assert user.age == 3


def test_construct_nested_error_path(models: Models) -> None:
    """Point failures at the nested element."""
    with pytest.raises(TypeMismatchError) as error:
        models['User'].from_mapping({
            'name': 'Ada',
            'emails': ['a@example.com', 'b@example.com', 3],
        })

    assert error.value.path == 'emails[2]'
    assert 'at "emails[2]"' in str(error.value)

    with pytest.raises(NotNullableError) as error:
        models['User'].from_mapping({'name': 'Ada', 'address': {'city': None}})

    assert error.value.path == 'address.city'


def test_supplied_null_counts_as_value(models: Models) -> None:
    """Treat a present key with `None` as supplied."""
    user = models['User'].from_mapping({'name': 'Ada', 'age': None})

    assert user.state('age') is SlotState.NULL
    assert user.is_set('age')

    with pytest.raises(NotNullableError):
        models['User'].from_mapping({'name': None})


def test_strict_construction(models: Models) -> None:
    """Reject unknown keys on strict construction only."""
    with pytest.raises(UnknownAttributeError, match=r"Unknown attribute 'nickname'"):
        models['User'].from_mapping({'name': 'Ada', 'nickname': 'A'}, strict=True)

    user = models['User'].from_mapping({'name': 'Ada', 'nickname': 'A'})

    assert user.name == 'Ada'


def test_strict_construction_checks_before_assignment(models: Models) -> None:
    """Check unknown keys before any coercion happens."""
    with pytest.raises(UnknownAttributeError):
        models['User'].from_mapping({'name': 5, 'nickname': 'A'}, strict=True)


@pytest.mark.parametrize('source', (
    pytest.param(SimpleNamespace(name='Ada', age=3), id='namespace'),
    pytest.param({'name': 'Ada', 'age': 3}, id='mapping'),
))
def test_construct_from_object(models: Models, source: object) -> None:
    """Construct from namespaces and mappings."""
    user = models['User'].from_object(source)

    assert (user.name, user.age) == ('Ada', 3)


def test_construct_from_plain_object(models: Models) -> None:
    """Construct from the public attributes of an arbitrary object."""
    class Source:
        def __init__(self) -> None:
            self.name = 'Ada'
            self._secret = 'hidden'

    user = models['User'].from_object(Source(), strict=True)

    assert user.name == 'Ada'

    with pytest.raises(TypeMismatchError, match=r'^Expected User, but received int'):
        models['User'].from_object(5)


def test_construct_from_pairs(models: Models) -> None:
    """Construct from `(name, value)` pairs."""
    user = models['User'].from_pairs([('name', 'Ada'), ('age', 3)])

    assert user.age == 3


def test_construct_from_json_and_yaml(models: Models) -> None:
    """Construct from JSON and YAML text."""
    from_json = models['User'].from_json('{"name": "Ada", "emails": ["a@example.com"]}')
    from_yaml = models['User'].from_yaml('name: Ada\nemails:\n  - a@example.com\n')

    assert from_json == from_yaml

    with pytest.raises(TypeMismatchError, match=r'^Expected User, but received list'):
        models['User'].from_json('[1, 2]')


def test_default_resolution(models: Models) -> None:
    """Resolve callable defaults per instance."""
    first = models['User'](name='Ada')
    second = models['User'](name='Bob')

    assert first.emails == []
    assert first.emails is not second.emails
    assert first.is_set('emails')


def test_default_method_names(registry: SchemaRegistry) -> None:
    """Invoke instance, static and class methods named by defaults."""
    class Token(TypedRecord, registry=registry):
        ATTRIBUTES = {
            'value': ('string', 'generate'),
            'kind': ('string', 'default_kind'),
            'size': ('int', 'default_size'),
            'label': ('string', 'no such method'),
        }

        def generate(self) -> str:
            return f'token-{type(self).__name__}'

        @staticmethod
        def default_kind() -> str:
            return 'bearer'

        @classmethod
        def default_size(cls) -> int:
            return len(cls.__name__)

    token = Token()

    assert token.value == 'token-Token'
    assert token.kind == 'bearer'
    assert token.size == 5
    assert token.label == 'no such method'


def test_default_method_called_per_instance(registry: SchemaRegistry) -> None:
    """Invoke method-named defaults once for each record without a value."""
    serials = iter(range(100, 200))

    class Ticket(TypedRecord, registry=registry):
        ATTRIBUTES = {'serial': ('int', 'next_serial')}

        @classmethod
        def next_serial(cls) -> int:
            return next(serials)

    first = Ticket()
    second = Ticket()
    given = Ticket(serial=5)

    assert first.serial == 100
    assert second.serial == 101
    assert given.serial == 5
    assert Ticket().serial == 102


@pytest.mark.parametrize('literal', (
    pytest.param('register', id='abstract base member'),
    pytest.param('mro', id='type member'),
))
def test_default_metaclass_member_is_literal(registry: SchemaRegistry, literal: str) -> None:
    """Use names of members visible on the class only as literal defaults."""
    class Label(TypedRecord, registry=registry):
        ATTRIBUTES = {'text': ('string', literal)}

    assert Label().text == literal


def test_default_is_coerced(registry: SchemaRegistry) -> None:
    """Coerce default values against the attribute type."""
    class Broken(TypedRecord, registry=registry):
        ATTRIBUTES = {'count': ('int', 'ten')}

    with pytest.raises(TypeMismatchError) as error:
        Broken()

    assert error.value.path == 'count'


def test_class_body_defaults(registry: SchemaRegistry) -> None:
    """Use class-body values of declared attributes as defaults."""
    class Config(TypedRecord, registry=registry):
        ATTRIBUTES = {
            'retries': 'int',
            'mode': ('string', 'fast'),
            'comment': '?string',
        }

        retries = 3
        mode = 'slow'
        comment = None

    config = Config()

    assert config.retries == 3
    assert config.mode == 'fast'
    assert config.state('comment') is SlotState.NULL
    assert Config.retries.name == 'retries'


def test_class_body_overrides_inherited_default(registry: SchemaRegistry) -> None:
    """Use subclass class-body values as defaults of inherited attributes."""
    class Base(TypedRecord, registry=registry):
        ATTRIBUTES = {'count': ('int', 1), 'name': 'string'}

    class Child(Base):
        count = 2

    class GrandChild(Child):
        pass

    child = Child(name='a')

    assert child.count == 2
    assert Child(name='a', count=5).count == 5
    assert GrandChild(name='b').count == 2
    assert Base(name='c').count == 1
    assert Child.count.name == 'count'

    with pytest.raises(TypeMismatchError) as error:
        child.count = 'many'

    assert error.value.path == 'count'
    assert child.count == 2

    class Broken(Base):
        count = 'many'

    with pytest.raises(TypeMismatchError) as error:
        Broken(name='d')

    assert error.value.path == 'count'

    with pytest.raises(AttributeDefinitionError, match=r'collides with a method'):
        class Shadow(Base):
            def count(self) -> int:
                return 0


def test_class_body_method_collision(registry: SchemaRegistry) -> None:
    """Reject declared attributes that are also methods."""
    with pytest.raises(AttributeDefinitionError, match=r'collides with a method'):
        class Broken(TypedRecord, registry=registry):
            ATTRIBUTES = {'size': 'int'}

            def size(self) -> int:
                return 0


@pytest.mark.parametrize('attributes, except_message', (
    pytest.param({'get': 'int'}, r'collides with a record member', id='record method'),
    pytest.param({'to_json': 'int'}, r'collides with a record member', id='conversion method'),
    pytest.param({'_hidden': 'int'}, r"^Invalid attribute name '_hidden'", id='leading underscore'),
    pytest.param({'first-name': 'int'}, r"^Invalid attribute name 'first-name'", id='kebab case'),
    pytest.param({'1st': 'int'}, r"^Invalid attribute name '1st'", id='leading digit'),
    pytest.param([('a', 'int', 1)], r'^Invalid attribute declaration', id='triple'),
    pytest.param('name', r'must be declared as a mapping or a sequence', id='bare string'),
))
def test_invalid_declarations(registry: SchemaRegistry, attributes: object,
                              except_message: str) -> None:
    """Reject invalid attribute declarations on class creation."""
    with pytest.raises(AttributeDefinitionError, match=except_message):
        type('Broken', (TypedRecord,), {'ATTRIBUTES': attributes}, registry=registry)


def test_unset_reads(models: Models, make_registry: 'Callable[..., SchemaRegistry]') -> None:
    """Read unset slots as null or fail depending on nullability."""
    user = models['User']()

    assert user.age is None
    assert user.state('age') is SlotState.UNSET

    with pytest.raises(UninitializedAccessError, match=r"'name' of .*User must not be accessed"):
        user.name

    assert getattr(user, 'name', 'fallback') == 'fallback'

    registry = make_registry(uninitialized_nullable_reads_as_null=False)

    class Item(TypedRecord, registry=registry):
        ATTRIBUTES = {'note': '?string'}

    with pytest.raises(UninitializedAccessError):
        Item().note


def test_materialize_defaults(make_registry: 'Callable[..., SchemaRegistry]') -> None:
    """Store zero values for missing attributes when enabled."""
    registry = make_registry(materialize_defaults_when_missing=True)

    class Point(TypedRecord, registry=registry):
        ATTRIBUTES = {'x': 'int', 'y': 'float', 'tags': 'list[string]', 'label': '?string'}

    class Shape(TypedRecord, registry=registry):
        ATTRIBUTES = {'origin': 'Point', 'name': 'string'}

    shape = Shape()

    assert shape.is_initialized()
    assert shape.name == ''
    assert shape.origin.to_plain() == {'x': 0, 'y': 0.0, 'tags': [], 'label': None}

    shape.unset('name')
    assert shape.state('name') is SlotState.UNSET
    assert shape.name == ''
    assert shape.state('name') is SlotState.VALUE


def test_disallow_uninitialized_state(make_registry: 'Callable[..., SchemaRegistry]') -> None:
    """Fail construction without value and default when disallowed."""
    registry = make_registry(allow_uninitialized_state=False)

    class Item(TypedRecord, registry=registry):
        ATTRIBUTES = {'name': 'string', 'note': ('?string', None)}

    with pytest.raises(MissingAttributeError, match=r"Attribute 'name' of .*Item has no value") as error:
        Item()

    assert error.value.path == 'name'
    assert Item(name='x').note is None


def test_write_and_unset(models: Models) -> None:
    """Coerce writes and return slots to the unset state."""
    user = models['User'](name='Ada')

    user.age = 5
    assert user.state('age') is SlotState.VALUE

    user.set('age', None)
    assert user.state('age') is SlotState.NULL

    del user.age
    assert user.state('age') is SlotState.UNSET
    assert not user.is_set('age')

    user.unset('name')
    assert user.uninitialized_attributes() == ['name', 'age', 'address']

    with pytest.raises(TypeMismatchError) as error:
        user.age = 'five'

    assert error.value.path == 'age'


def test_unknown_attributes(models: Models) -> None:
    """Reject unknown names for every operation."""
    user = models['User'](name='Ada')

    with pytest.raises(UnknownAttributeError):
        user.nickname = 'A'

    with pytest.raises(UnknownAttributeError):
        user.get('nickname')

    with pytest.raises(UnknownAttributeError):
        user.set('nickname', 'A')

    with pytest.raises(UnknownAttributeError):
        user.unset('nickname')

    with pytest.raises(UnknownAttributeError):
        user.is_set('nickname')

    with pytest.raises(UnknownAttributeError):
        del user.nickname


def test_record_members_are_not_assignable(models: Models) -> None:
    """Reject writes and deletes of record members other than attributes."""
    user = models['User'](name='Ada')

    with pytest.raises(UnknownAttributeError):
        user.to_json = 1

    with pytest.raises(UnknownAttributeError):
        del user.get

    assert user.to_plain()['name'] == 'Ada'


def test_initialization_report(models: Models) -> None:
    """Report initialized and uninitialized attributes."""
    user = models['User'](name='Ada', address={'city': 'Paris'})

    assert not user.is_initialized()
    assert user.uninitialized_attributes() == ['age']

    user.age = None

    assert user.is_initialized()


def test_inherited_attributes(models: Models) -> None:
    """Merge inherited attributes before own ones."""
    admin = models['Admin'](name='Root', notes={'a': [1]})

    assert list(admin.definition()) == ['name', 'age', 'emails', 'address', 'level', 'notes']
    assert admin.level == 1
    assert admin.notes.to_plain() == {'a': [1]}
    assert isinstance(admin, models['User'])


def test_record_accepts_subclass_instances(models: Models) -> None:
    """Accept instances of subclasses for record attributes."""
    class Team(TypedRecord, registry=models['User'].registry()):
        ATTRIBUTES = {'lead': 'User'}

    admin = models['Admin'](name='Root')
    team = Team(lead=admin)

    assert team.lead is admin


def test_equality(models: Models) -> None:
    """Compare records by class and slot contents."""
    first = models['User'](name='Ada', age=3)
    second = models['User'].from_json('{"name": "Ada", "age": 3}')

    assert first == second
    assert first != models['Admin'](name='Ada', age=3)

    second.unset('age')

    assert first != second


def test_to_plain(models: Models) -> None:
    """Convert nested records and containers to plain data."""
    data = {
        'name': 'Ada',
        'age': None,
        'emails': ['a@example.com'],
        'address': {'city': 'London', 'zip': None},
    }

    user = models['User'].from_mapping(data)

    assert user.to_plain() == data
    assert models['User'].from_mapping(user.to_plain()) == user


def test_to_plain_reads_unset(models: Models) -> None:
    """Fail conversion when an attribute can not be read."""
    user = models['User']()

    with pytest.raises(UninitializedAccessError):
        user.to_plain()


def test_to_object(models: Models) -> None:
    """Convert to namespaces that construct an equal record."""
    user = models['User'](name='Ada', age=3, address={'city': 'Oslo', 'zip': '0150'})

    result = user.to_object()

    assert isinstance(result, SimpleNamespace)
    assert result.address.city == 'Oslo'
    assert result.emails == []
    assert models['User'].from_object(result) == user


def test_serialization(models: Models) -> None:
    """Serialize to JSON and YAML, pretty JSON for `str`."""
    user = models['User'](name='Ada', age=3, address={'city': 'Oslo', 'zip': None})

    assert user.to_json() == (
        '{"name": "Ada", "age": 3, "emails": [], "address": {"city": "Oslo", "zip": null}}'
    )
    assert str(user) == user.to_json(pretty=True)
    assert str(user).startswith('{\n    "name": "Ada",')
    assert models['User'].from_yaml(user.to_yaml()) == user


def test_lenient_record(make_registry: 'Callable[..., SchemaRegistry]') -> None:
    """Coerce record attributes under a relaxed policy."""
    registry = make_registry(strict_type_checking=False)

    class Order(TypedRecord, registry=registry):
        ATTRIBUTES = {'qty': 'int', 'price': 'float', 'paid': 'bool', 'ref': 'string'}

    order = Order.from_mapping({'qty': '3', 'price': '9.5', 'paid': 'true', 'ref': 42})

    assert order.to_plain() == {'qty': 3, 'price': 9.5, 'paid': True, 'ref': '42'}


def test_repr(models: Models) -> None:
    """Show set slots in the developer representation."""
    user = models['User'](name='Ada')

    assert repr(user).startswith("User(name='Ada', emails=TypedList(")
