"""Type descriptors and the type expression compiler.

A type descriptor is the compiled form of a type expression such as
`int`, `?list[dict[string]]` or `Address`. Descriptors are immutable
and are shared by every record instance of the declaring class.

The grammar accepted by the compiler::

    type       := '?'? (primitive | 'mixed' | container | classname)
    primitive  := 'int' | 'float' | 'string' | 'bool'
    container  := ('list' | 'dict') ('[' type ']')?
    classname  := identifier naming a registered record type

A bracket-less `list` or `dict` holds `mixed` elements.
"""

from collections.abc import Callable, Sequence
from typing import Any, Self

from pydantic import Field, model_validator

from typed_records.errors import InvalidTypeExpressionError, UnknownTypeError
from typed_records.models import SchemaModel
from typed_records.names import (
    CONTAINER_PATTERN,
    CONTAINERS,
    MIXED,
    NULLABLE_MARKER,
    PRIMITIVES,
    RECORD,
    TYPE_NAME_PATTERN,
    Kind,
)

#: Resolves a record type name to the registered record class.
type Resolver = Callable[[str], type]

#: A type expression or an `(expression, default)` pair.
type Declaration = str | Sequence[Any]


class Default(SchemaModel):
    """Deferred default value of an attribute.

    The wrapped value is interpreted when a record is constructed:
    a callable is invoked, a string naming a callable attribute of the
    record is invoked, and anything else is used literally.

    A `Default` wrapping `None` is a declared null default, which is
    distinct from the absence of a default.
    """

    value: Any = Field(
        title='Deferred default',
        description='Literal value, zero-argument callable, or method name.',
    )


class TypeDescriptor(SchemaModel):
    """Compiled description of an expected value shape."""

    kind: Kind = Field(
        title='Kind',
        description='Primitive, `mixed`, container or record kind.',
    )

    nullable: bool = Field(
        default=False,
        title='Nullable flag',
        description='Whether `null` is an accepted value. Always set for `mixed`.',
    )

    subtype: 'TypeDescriptor | None' = Field(
        default=None,
        title='Element type',
        description='Descriptor of the elements of a `list` or `dict`.',
    )

    record: type | None = Field(
        default=None,
        title='Record class',
        description='Record class referenced by a `record` descriptor.',
    )

    default: Default | None = Field(
        default=None,
        title='Default value',
        description='Deferred default, absent unless explicitly declared.',
    )

    @model_validator(mode='after')
    def check_shape(self) -> Self:
        """Check the structural invariants of the descriptor.

        Returns:
            Self.

        Raises:
            ValueError: If the element type or record class do not
                match the kind, or `mixed` is not nullable.
        """
        if (self.subtype is not None) != (self.kind in CONTAINERS):
            raise ValueError('subtype must be set for list and dict kinds only')

        if (self.record is not None) != (self.kind == RECORD):
            raise ValueError('record class must be set for record kind only')

        if self.kind == MIXED and not self.nullable:
            raise ValueError('mixed kind is always nullable')

        return self

    @classmethod
    def mixed(cls) -> Self:
        """Create a descriptor accepting any value."""
        return cls(kind=MIXED, nullable=True)

    @classmethod
    def compile(cls, expression: Declaration,
                resolve: Resolver | None = None) -> Self:
        """Compile a type expression into a descriptor.

        Args:
            expression: A type expression string, or a two-element
                `(expression, default)` sequence.
            resolve: Callable resolving record type names to classes.
                Without it, record references can not be compiled.

        Returns:
            The compiled descriptor.

        Raises:
            InvalidTypeExpressionError: If the expression is malformed.
            UnknownTypeError: If a record type name does not resolve.
        """
        if isinstance(expression, (list, tuple)):
            if len(expression) != 2:  # noqa: PLR2004
                raise InvalidTypeExpressionError(
                    f'Invalid declaration {expression!r}, '
                    'must be <type> or (<type>, <default>)',
                )
            type_expression, default = expression
            descriptor = cls.compile(type_expression, resolve)
            return descriptor.model_copy(update={'default': Default(value=default)})

        if not isinstance(expression, str):
            raise InvalidTypeExpressionError(
                f'Type expression must be a string, not {type(expression).__name__}',
            )

        return cls._compile_text(expression, resolve)

    @classmethod
    def _compile_text(cls, expression: str,
                      resolve: Resolver | None = None) -> Self:
        """Recursive descent over the textual grammar."""
        text = expression.strip()

        nullable = text.startswith(NULLABLE_MARKER)
        if nullable:
            text = text[len(NULLABLE_MARKER):]

        if not text:
            raise InvalidTypeExpressionError(f'Empty type expression {expression!r}')

        if text == MIXED:
            if nullable:
                raise InvalidTypeExpressionError('mixed type cannot be nullable')
            return cls.mixed()

        if text in CONTAINERS:
            return cls(kind=text, nullable=nullable, subtype=cls.mixed())

        if match := CONTAINER_PATTERN.match(text):
            inner = match['subtype']
            if not inner.strip() or not cls._is_balanced(inner):
                raise InvalidTypeExpressionError(
                    f'Malformed container expression {expression!r}',
                )
            return cls(
                kind=match['kind'],
                nullable=nullable,
                subtype=cls._compile_text(inner, resolve),
            )

        if '[' in text or ']' in text:
            raise InvalidTypeExpressionError(f'Malformed brackets in {expression!r}')

        if text in PRIMITIVES:
            return cls(kind=text, nullable=nullable)

        if not TYPE_NAME_PATTERN.match(text):
            raise InvalidTypeExpressionError(f'Invalid type name {text!r}')

        if resolve is None:
            raise UnknownTypeError(f'Can not resolve type {text!r} without a registry')

        return cls(kind=RECORD, nullable=nullable, record=resolve(text))

    @staticmethod
    def _is_balanced(text: str) -> bool:
        """Check that brackets in the text are balanced and properly nested."""
        depth = 0
        for char in text:
            if char == '[':
                depth += 1
            elif char == ']':
                depth -= 1
                if depth < 0:
                    return False

        return depth == 0

    def equals(self, other: 'TypeDescriptor | None', *,
               consider_default: bool = False) -> bool:
        """Compare two descriptors.

        Args:
            other: Descriptor to compare with.
            consider_default: Whether defaults must also match. Used to
                tell a redefinition apart from a default override.

        Returns:
            Whether the descriptors describe the same shape.
        """
        if not isinstance(other, TypeDescriptor):
            return False

        if (self.kind, self.nullable, self.record) != (other.kind, other.nullable, other.record):
            return False

        if self.subtype is None or other.subtype is None:
            if self.subtype is not other.subtype:
                return False
        elif not self.subtype.equals(other.subtype, consider_default=consider_default):
            return False

        if consider_default:
            return self.default == other.default

        return True

    def __eq__(self, other: object) -> bool:
        """Default-insensitive equality."""
        if not isinstance(other, TypeDescriptor):
            return NotImplemented

        return self.equals(other)

    def __hash__(self) -> int:
        """Hash consistent with default-insensitive equality."""
        return hash((self.kind, self.nullable, self.record, self.subtype))

    def __str__(self) -> str:
        """Canonical type expression."""
        if self.kind == RECORD and self.record is not None:
            result = getattr(self.record, '__type_name__', self.record.__name__)
        else:
            result = self.kind

        if self.nullable and self.kind != MIXED:
            result = f'{NULLABLE_MARKER}{result}'

        if self.subtype is not None:
            result += f'[{self.subtype}]'

        return result

    @property
    def is_container(self) -> bool:
        """Whether the descriptor describes a `list` or a `dict`."""
        return self.kind in CONTAINERS

    @property
    def is_primitive(self) -> bool:
        """Whether the descriptor describes a primitive scalar."""
        return self.kind in PRIMITIVES
