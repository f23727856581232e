"""Runtime schema engine for typed records and containers.

The `typed_records` package lets classes declare their attributes with
textual type expressions and enforces them on every assignment.

Key features:
- type expressions compiled into immutable descriptors;
- strict or lenient coercion of raw values, driven by settings;
- typed lists and mappings holding a single element type;
- records with a three-state attribute lifecycle and inheritance merge;
- conversion back to plain data, namespaces, JSON and YAML.

Example:
    Declare and load a record::

        class User(TypedRecord):
            ATTRIBUTES = {'name': 'string', 'emails': 'list[string]'}

        user = User.from_json('{"name": "Ada", "emails": []}')
"""

from typed_records.core import SchemaRegistry, get_default_registry
from typed_records.containers import TypedContainer, TypedList, TypedMapping
from typed_records.descriptors import Default, TypeDescriptor
from typed_records.errors import (
    AttributeDefinitionError,
    AttributeShadowError,
    ContainerIndexError,
    ContainerKeyError,
    DuplicateTypeError,
    EmptyContainerError,
    InvalidTypeExpressionError,
    MissingAttributeError,
    NotNullableError,
    SchemaError,
    SchemaWarning,
    TypeMismatchError,
    UninitializedAccessError,
    UnknownAttributeError,
    UnknownTypeError,
)
from typed_records.records import SlotState, TypedRecord
from typed_records.settings import Settings

__all__ = (
    'AttributeDefinitionError',
    'AttributeShadowError',
    'ContainerIndexError',
    'ContainerKeyError',
    'Default',
    'DuplicateTypeError',
    'EmptyContainerError',
    'InvalidTypeExpressionError',
    'MissingAttributeError',
    'NotNullableError',
    'SchemaError',
    'SchemaRegistry',
    'SchemaWarning',
    'Settings',
    'SlotState',
    'TypeDescriptor',
    'TypeMismatchError',
    'TypedContainer',
    'TypedList',
    'TypedMapping',
    'TypedRecord',
    'UninitializedAccessError',
    'UnknownAttributeError',
    'UnknownTypeError',
    'get_default_registry',
)
