"""Names and keywords of the type expression grammar.

This module defines the identifier patterns and reserved keywords used
by the type expression compiler and by record attribute declarations.

The rules defined here form part of the public declaration contract and
are relied upon by the compiler, the registry and the records.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated, Literal

from pydantic import Field

#: Base pattern for attribute names.
#: Names must start with a letter and may contain letters, digits, or underscores.
_NAME_PATTERN = r'[a-zA-Z][a-zA-Z0-9_]*'

#: Base pattern for record type names.
#: Dotted names allow registering records under a qualified name.
_TYPE_NAME_PATTERN = r'[a-zA-Z_][\w]*(\.[a-zA-Z_][\w]*)*'

#: Compiled pattern for record type names in expressions.
TYPE_NAME_PATTERN = regexp(
    rf'^(?P<name>{_TYPE_NAME_PATTERN})$',
    flags=ASCII,
)

#: Compiled pattern for container expressions: `list[...]` or `dict[...]`.
CONTAINER_PATTERN = regexp(
    r'^(?P<kind>list|dict)\[(?P<subtype>.*)\]$',
    flags=ASCII,
)

NULLABLE_MARKER = '?'

type PrimitiveKind = Literal['int', 'float', 'string', 'bool']
type ContainerKind = Literal['list', 'dict']
type Kind = Literal['int', 'float', 'string', 'bool', 'mixed', 'list', 'dict', 'record']

PRIMITIVES: tuple[PrimitiveKind, ...] = ('int', 'float', 'string', 'bool')
CONTAINERS: tuple[ContainerKind, ...] = ('list', 'dict')
MIXED = 'mixed'
RECORD = 'record'


AttributeName = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Attribute name',
        description=(
            'Name of a record attribute. '
            'Attribute names must start with a letter and may contain '
            'letters, digits, or underscores. '
            'Names are restricted to ASCII characters.'
        ),
        examples=[
            'id',
            'createdAt',
            'email_address',
        ],
    ),
]
