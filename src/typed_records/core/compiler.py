"""Record definition compiler and type name registration.

This module defines a mixin responsible for registering record classes
under type names and for compiling their attribute declarations into
merged, immutable definitions.

A definition is compiled once per class and cached. Declarations are
merged along the class hierarchy, base classes first; a subclass may
redeclare an inherited attribute only with an identical type, while
the default value may be overridden freely.
"""

from collections.abc import Iterator, Mapping
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Any
from warnings import warn

from pydantic import Field, ValidationError

from typed_records.descriptors import Default, TypeDescriptor
from typed_records.errors import (
    AttributeDefinitionError,
    AttributeShadowError,
    DuplicateTypeError,
    ErrorContext,
    InvalidTypeExpressionError,
    SchemaError,
    SchemaWarning,
    UnknownTypeError,
)
from typed_records.models import SchemaModel
from typed_records.names import MIXED, TYPE_NAME_PATTERN, AttributeName

if TYPE_CHECKING:
    from threading import RLock

    from typed_records.descriptors import Declaration

#: Compiled definition of a record class: attribute name to descriptor.
type Definition = Mapping[str, TypeDescriptor]

logger = getLogger(__name__)


class AttributeDeclaration(SchemaModel):
    """Single validated entry of a record `ATTRIBUTES` declaration."""

    name: AttributeName

    declaration: Any = Field(
        default=MIXED,
        title='Declaration',
        description='Type expression or `(expression, default)` pair.',
    )


def iter_declarations(attributes: Any) -> Iterator[AttributeDeclaration]:  # noqa: ANN401
    """Iterate over the entries of an `ATTRIBUTES` declaration.

    Accepts a mapping of names to declarations, or a sequence whose
    items are `(name, declaration)` pairs or bare names. A bare name
    declares a `mixed` attribute.

    Args:
        attributes: Raw class-level declaration.

    Yields:
        Validated declarations in declaration order.

    Raises:
        AttributeDefinitionError: If an entry or a name is invalid.
    """
    items = attributes.items() if isinstance(attributes, Mapping) else attributes
    if isinstance(items, str):
        raise AttributeDefinitionError(
            f'Attributes must be declared as a mapping or a sequence, not {items!r}',
        )

    for item in items:
        if isinstance(item, str):
            fields = {'name': item}
        elif isinstance(item, (list, tuple)) and len(item) == 2:  # noqa: PLR2004
            fields = {'name': item[0], 'declaration': item[1]}
        else:
            raise AttributeDefinitionError(f'Invalid attribute declaration {item!r}')

        try:
            yield AttributeDeclaration.model_validate(fields)
        except ValidationError as base:
            raise AttributeDefinitionError(
                f'Invalid attribute name {fields['name']!r}',
            ) from base


class DefinitionCompilerMixin:
    """Mixin defining record registration and definition compiling.

    Attributes:
        strict_mode: If True, registering a name twice raises an error.
            If False, the issue is emitted as a warning and the later
            class replaces the earlier one.
    """

    strict_mode: bool = False

    types: dict[str, type]
    definitions: dict[type, Definition]

    _declared: dict[type, dict[str, TypeDescriptor]]
    _lock: 'RLock'

    def register(self, record: type, name: str | None = None) -> str:
        """Register a record class under a type name.

        Args:
            record: Record class.
            name: Type name to register. Defaults to the class name.

        Returns:
            The registered type name.

        Raises:
            InvalidTypeExpressionError: If the name is not a valid type name.
            DuplicateTypeError: If the name is taken on strict mode.
        """
        name = name or record.__name__
        if not TYPE_NAME_PATTERN.match(name):
            raise InvalidTypeExpressionError(f'Invalid type name {name!r}')

        with self._lock:
            current = self.types.get(name)
            if current is not None and current is not record and (error := self.emit_registry_issue(
                f'Record type {name!r} from {record.__module__!r} is shadowing an existing',
            )):
                raise error

            self.types[name] = record

        logger.debug('Registered record type %r as %s', name, record.__qualname__)

        return name

    def lookup(self, name: str) -> type:
        """Resolve a type name to a registered record class.

        Raises:
            UnknownTypeError: If no record class has this name.
        """
        try:
            return self.types[name]
        except KeyError:
            raise UnknownTypeError(
                f'Unknown record type {name!r}',
                context=ErrorContext(expected=name),
            ) from None

    def parse(self, expression: 'Declaration') -> TypeDescriptor:
        """Compile a type expression resolving record names in this registry."""
        return TypeDescriptor.compile(expression, self.lookup)

    def definition(self, record: type) -> Definition:
        """Get the merged attribute definition of a record class.

        The definition is compiled on the first request and cached;
        concurrent first requests compile it only once.

        Args:
            record: Record class.

        Returns:
            Read-only mapping of attribute names to descriptors,
            inherited attributes first.

        Raises:
            AttributeDefinitionError: If a declaration is invalid.
            AttributeShadowError: If an inherited attribute is redeclared
                with another type.
            InvalidTypeExpressionError: If a type expression is malformed.
            UnknownTypeError: If a referenced record type is not registered.
        """
        if (cached := self.definitions.get(record)) is not None:
            return cached

        with self._lock:
            if (cached := self.definitions.get(record)) is not None:
                return cached

            definition = self._compile_definition(record)
            self.definitions[record] = definition

        logger.debug(
            'Compiled definition of %s with %d attributes',
            record.__qualname__, len(definition),
        )

        return definition

    def emit_registry_issue(self, message: str) -> Exception | None:
        """Emit a registry warning or return the exception.

        Args:
            message: Warning message to emit.

        Returns:
            DuplicateTypeError on strict mode, otherwise `None`
                with producing a SchemaWarning.
        """
        if self.strict_mode:
            return DuplicateTypeError(message)

        warn(message, category=SchemaWarning, stacklevel=3)

        return None

    def clear(self) -> None:
        """Forget all registered record types and compiled definitions."""
        with self._lock:
            self.types = {}
            self.definitions = {}
            self._declared = {}

    def _compile_definition(self, record: type) -> Definition:
        """Merge declarations along the class hierarchy, base classes first."""
        merged: dict[str, TypeDescriptor] = {}

        for klass in reversed(record.__mro__):
            declared = self._compile_declarations(klass) if 'ATTRIBUTES' in vars(klass) else {}

            for name, descriptor in declared.items():
                inherited = merged.get(name)
                if inherited is not None and not inherited.equals(descriptor):
                    raise AttributeShadowError(
                        f'Attribute {name!r} of {klass.__qualname__} is shadowing '
                        f'an inherited attribute of type {inherited}',
                        context=ErrorContext(
                            path=[name],
                            expected=str(inherited),
                            actual=str(descriptor),
                        ),
                    )
                if inherited is not None and descriptor.default is None:
                    descriptor = inherited
                merged[name] = descriptor

            # Class-body values override defaults of inherited attributes.
            for name, value in vars(klass).get('__field_defaults__', {}).items():
                if name in merged and name not in declared:
                    merged[name] = merged[name].model_copy(update={'default': Default(value=value)})

        return MappingProxyType(merged)

    def _compile_declarations(self, klass: type) -> dict[str, TypeDescriptor]:
        """Compile the attributes declared by a single class."""
        if (cached := self._declared.get(klass)) is not None:
            return cached

        field_defaults: dict[str, Any] = vars(klass).get('__field_defaults__', {})
        compiled: dict[str, TypeDescriptor] = {}

        for item in iter_declarations(vars(klass)['ATTRIBUTES']):
            try:
                descriptor = self.parse(item.declaration)
            except SchemaError as error:
                error.prepend_path(f'{klass.__qualname__}.{item.name}')
                raise

            if descriptor.default is None and item.name in field_defaults:
                descriptor = self.parse((item.declaration, field_defaults[item.name]))

            compiled[item.name] = descriptor

        self._declared[klass] = compiled

        return compiled
