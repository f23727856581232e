"""Typed records.

A typed record is an object whose attributes are declared on the class
with type expressions and optional defaults::

    class User(TypedRecord):
        ATTRIBUTES = {
            'name': 'string',
            'age': ('?int', None),
            'emails': 'list[string]',
        }

Every assignment goes through the coercion engine of the registry the
class is bound to. Each attribute slot is in one of three states: unset,
holding `None`, or holding a value.
"""

import json
from collections.abc import Iterable, Mapping
from enum import Enum
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, ClassVar, Self

from yaml import safe_load

from typed_records.core.coercion import runtime_kind
from typed_records.core.compiler import iter_declarations
from typed_records.core.conversion import ConvertibleMixin, convert_value
from typed_records.core.registry import get_default_registry
from typed_records.descriptors import Default
from typed_records.errors import (
    AttributeDefinitionError,
    MissingAttributeError,
    SchemaError,
    TypeMismatchError,
    UninitializedAccessError,
    UnknownAttributeError,
)
from typed_records.values import NAMESPACES

if TYPE_CHECKING:
    from typed_records.core.compiler import Definition
    from typed_records.core.registry import SchemaRegistry
    from typed_records.descriptors import TypeDescriptor
    from typed_records.values import PlainValue, RawValue


class SlotState(Enum):
    """Lifecycle state of an attribute slot."""

    UNSET = 'unset'
    NULL = 'null'
    VALUE = 'value'


class AttributeProxy:
    """Data descriptor routing attribute access to the record slots."""

    def __init__(self, name: str) -> None:
        """Initialize the proxy for an attribute name."""
        self.name = name

    def __get__(self, instance: 'TypedRecord | None',
                owner: type | None = None) -> Any:  # noqa: ANN401
        if instance is None:
            return self
        return instance.get(self.name)

    def __set__(self, instance: 'TypedRecord', value: Any) -> None:  # noqa: ANN401
        instance.set(self.name, value)

    def __delete__(self, instance: 'TypedRecord') -> None:
        instance.unset(self.name)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.name!r})'


def resolve_default(record: 'TypedRecord', descriptor: 'TypeDescriptor') -> Default | None:
    """Resolve the declared default of an attribute for a record.

    A callable default is invoked without arguments. A string naming a
    callable member of the record (method, static or class method) is
    invoked. Anything else is used literally.

    Args:
        record: Record under construction.
        descriptor: Attribute descriptor.

    Returns:
        The resolved raw default, or `None` when no default is declared.
    """
    if descriptor.default is None:
        return None

    value = descriptor.default.value

    if isinstance(value, str):
        # Metaclass members are visible on the class only.
        if callable(getattr(type(record), value, None)) and hasattr(record, value):
            return Default(value=getattr(record, value)())
        return descriptor.default

    if callable(value):
        return Default(value=value())

    return descriptor.default


class TypedRecord(ConvertibleMixin):
    """Base class of typed records.

    Subclasses declare attributes in `ATTRIBUTES` and may bind to an
    explicit registry and type name::

        class Address(TypedRecord, registry=registry, name='geo.Address'):
            ATTRIBUTES = {'city': 'string'}

    Attributes:
        ATTRIBUTES: Mapping of names to declarations, or a sequence of
            `(name, declaration)` pairs and bare names.
    """

    ATTRIBUTES: ClassVar[Any] = {}

    __registry__: ClassVar['SchemaRegistry | None'] = None
    __type_name__: ClassVar[str]
    __field_defaults__: ClassVar[dict[str, Any]] = {}

    _values: dict[str, Any]

    def __init_subclass__(cls, *, registry: 'SchemaRegistry | None' = None,
                          name: str | None = None, **kwargs: Any) -> None:  # noqa: ANN401
        """Install attribute proxies and register the record class.

        Args:
            registry: Registry to bind the class to. Inherited from the
                base class, or the process-wide registry, when omitted.
            name: Type name to register. Defaults to the class name.
            kwargs: Passed through to the parent hook.

        Raises:
            AttributeDefinitionError: If a declaration is invalid or an
                attribute name collides with a record member.
            DuplicateTypeError: If the name is taken on a strict registry.
        """
        super().__init_subclass__(**kwargs)

        if registry is not None:
            cls.__registry__ = registry
        elif cls.__registry__ is None:
            cls.__registry__ = get_default_registry()

        cls.__field_defaults__ = {}
        names: list[str] = []
        if 'ATTRIBUTES' in vars(cls):
            names = [declaration.name for declaration in iter_declarations(cls.ATTRIBUTES)]
        names += [
            name for name in list(vars(cls))
            if name not in names and cls._is_inherited_attribute(name)
        ]
        cls._install_proxies(names)

        cls.__type_name__ = cls.__registry__.register(cls, name)

    @classmethod
    def _is_inherited_attribute(cls, name: str) -> bool:
        """Check whether a base class declares an attribute with this name."""
        for klass in cls.__mro__[1:]:
            if name in vars(klass):
                return isinstance(vars(klass)[name], AttributeProxy)

        return False

    @classmethod
    def _install_proxies(cls, names: Iterable[str]) -> None:
        """Replace attribute names on the class with attribute proxies.

        Plain class-body values found under these names, including names
        inherited from base classes, are kept as attribute defaults.
        """
        for name in names:
            if name in RESERVED_NAMES:
                raise AttributeDefinitionError(
                    f'Attribute {name!r} of {cls.__qualname__} collides with a record member',
                )

            member = vars(cls).get(name, AttributeProxy(name))
            if not isinstance(member, AttributeProxy):
                if callable(member) or isinstance(member, (classmethod, staticmethod, property)):
                    raise AttributeDefinitionError(
                        f'Attribute {name!r} of {cls.__qualname__} collides with a method',
                    )
                cls.__field_defaults__[name] = member

            setattr(cls, name, AttributeProxy(name))

    def __init__(self, *mappings: 'Mapping[str, RawValue] | SimpleNamespace',
                 **attributes: 'RawValue') -> None:
        """Construct a record from keyed data.

        Later mappings and keyword arguments take precedence over
        earlier ones. A key that is present with a `None` value counts
        as supplied.

        Args:
            mappings: Mappings or namespace objects with attribute values.
            attributes: Attribute values.

        Raises:
            TypeMismatchError: If a value can not be coerced.
            MissingAttributeError: If an attribute has no value and no
                default while uninitialized state is not allowed.
        """
        data: dict[str, Any] = {}
        for mapping in mappings:
            if isinstance(mapping, NAMESPACES):
                mapping = vars(mapping)
            if not isinstance(mapping, Mapping):
                raise TypeMismatchError.expected(self.__type_name__, mapping, runtime_kind(mapping))
            data.update(mapping)
        data.update(attributes)

        self._values = {}
        self._populate(data)

    def _populate(self, data: Mapping[str, Any]) -> None:
        """Assign every attribute of the definition from data or defaults."""
        registry = self.registry()

        for name, descriptor in self.definition().items():
            try:
                if name in data:
                    self._values[name] = registry.coerce(descriptor, data[name])
                elif (default := resolve_default(self, descriptor)) is not None:
                    self._values[name] = registry.coerce(descriptor, default.value)
                elif registry.settings.materialize_defaults_when_missing:
                    self._values[name] = registry.zero_value(descriptor)
                elif not registry.settings.allow_uninitialized_state:
                    raise MissingAttributeError(
                        f'Attribute {name!r} of {type(self).__qualname__} '
                        'has no value and no default',
                    )
            except SchemaError as error:
                error.prepend_path(name)
                raise

    @classmethod
    def registry(cls) -> 'SchemaRegistry':
        """Registry the record class is bound to."""
        return cls.__registry__ or get_default_registry()

    @classmethod
    def definition(cls) -> 'Definition':
        """Compiled attribute definition of the record class."""
        return cls.registry().definition(cls)

    @classmethod
    def from_mapping(cls, data: 'Mapping[str, RawValue] | SimpleNamespace', *,
                     strict: bool = False) -> Self:
        """Construct a record from a mapping.

        Args:
            data: Mapping or namespace object with attribute values.
            strict: Whether keys absent from the definition are rejected.

        Returns:
            A new record.

        Raises:
            UnknownAttributeError: On strict mode, for an unknown key.
                No attribute is assigned in that case.
            TypeMismatchError: If the data is not keyed or a value can
                not be coerced.
        """
        if isinstance(data, NAMESPACES):
            data = vars(data)

        if not isinstance(data, Mapping):
            raise TypeMismatchError.expected(cls.__type_name__, data, runtime_kind(data))

        if strict:
            definition = cls.definition()
            for key in data:
                if key not in definition:
                    raise UnknownAttributeError(
                        f'Unknown attribute {key!r} of {cls.__qualname__}',
                    )

        return cls(data)

    @classmethod
    def from_object(cls, source: Any, *, strict: bool = False) -> Self:  # noqa: ANN401
        """Construct a record from the public attributes of an object."""
        if isinstance(source, (Mapping, *NAMESPACES)):
            return cls.from_mapping(source, strict=strict)

        try:
            data = vars(source)
        except TypeError:
            raise TypeMismatchError.expected(
                cls.__type_name__, source, runtime_kind(source),
            ) from None

        return cls.from_mapping(
            {key: value for key, value in data.items() if not key.startswith('_')},
            strict=strict,
        )

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, 'RawValue']], *,
                   strict: bool = False) -> Self:
        """Construct a record from `(name, value)` pairs."""
        return cls.from_mapping(dict(pairs), strict=strict)

    @classmethod
    def from_json(cls, text: str | bytes, *, strict: bool = False) -> Self:
        """Construct a record from a JSON object."""
        return cls.from_mapping(json.loads(text), strict=strict)

    @classmethod
    def from_yaml(cls, text: str, *, strict: bool = False) -> Self:
        """Construct a record from a YAML mapping."""
        return cls.from_mapping(safe_load(text), strict=strict)

    def _descriptor(self, name: str) -> 'TypeDescriptor':
        """Get the descriptor of a declared attribute.

        Raises:
            UnknownAttributeError: If the name is not declared.
        """
        try:
            return self.definition()[name]
        except KeyError:
            raise UnknownAttributeError(
                f'Unknown attribute {name!r} of {type(self).__qualname__}',
            ) from None

    def get(self, name: str) -> Any:  # noqa: ANN401
        """Read an attribute.

        Args:
            name: Attribute name.

        Returns:
            The stored value. For an unset slot: the zero value when
            defaults are materialized, or `None` for nullable attributes
            when unset nullables read as null.

        Raises:
            UnknownAttributeError: If the name is not declared.
            UninitializedAccessError: If the slot is unset and can not
                be read.
        """
        descriptor = self._descriptor(name)
        if name in self._values:
            return self._values[name]

        registry = self.registry()
        if registry.settings.materialize_defaults_when_missing:
            value = self._values[name] = registry.zero_value(descriptor)
            return value

        if descriptor.nullable and registry.settings.uninitialized_nullable_reads_as_null:
            return None

        raise UninitializedAccessError(
            f'Attribute {name!r} of {type(self).__qualname__} must not be '
            'accessed before initialization',
        )

    def set(self, name: str, value: 'RawValue') -> None:
        """Coerce and store an attribute value.

        Raises:
            UnknownAttributeError: If the name is not declared.
            TypeMismatchError: If the value can not be coerced.
        """
        descriptor = self._descriptor(name)
        try:
            self._values[name] = self.registry().coerce(descriptor, value)
        except SchemaError as error:
            error.prepend_path(name)
            raise

    def unset(self, name: str) -> None:
        """Return an attribute slot to the unset state."""
        self._descriptor(name)
        self._values.pop(name, None)

    def is_set(self, name: str) -> bool:
        """Check whether an attribute slot holds a value or `None`."""
        self._descriptor(name)
        return name in self._values

    def state(self, name: str) -> SlotState:
        """Get the lifecycle state of an attribute slot."""
        if not self.is_set(name):
            return SlotState.UNSET

        if self._values[name] is None:
            return SlotState.NULL

        return SlotState.VALUE

    def is_initialized(self) -> bool:
        """Check whether every declared attribute is set."""
        return not self.uninitialized_attributes()

    def uninitialized_attributes(self) -> list[str]:
        """Names of the unset attributes, in declaration order."""
        return [name for name in self.definition() if name not in self._values]

    def to_plain(self) -> dict[str, 'PlainValue']:
        """Convert to a plain dict, reading every attribute."""
        return {
            name: convert_value(descriptor, self.get(name))
            for name, descriptor in self.definition().items()
        }

    def to_object(self) -> SimpleNamespace:
        """Convert to a namespace object, reading every attribute."""
        return SimpleNamespace(**{
            name: convert_value(descriptor, self.get(name), 'object')
            for name, descriptor in self.definition().items()
        })

    def __setattr__(self, name: str, value: Any) -> None:  # noqa: ANN401
        if not name.startswith('_') and not self._is_attribute(name):
            raise UnknownAttributeError(
                f'Unknown attribute {name!r} of {type(self).__qualname__}',
            )
        super().__setattr__(name, value)

    @classmethod
    def _is_attribute(cls, name: str) -> bool:
        """Check whether a public name is backed by an attribute proxy."""
        return isinstance(getattr(cls, name, None), AttributeProxy)

    def __delattr__(self, name: str) -> None:
        if not name.startswith('_') and not self._is_attribute(name):
            raise UnknownAttributeError(
                f'Unknown attribute {name!r} of {type(self).__qualname__}',
            )
        super().__delattr__(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedRecord):
            return NotImplemented

        return type(self) is type(other) and self._values == other._values

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ', '.join(f'{name}={value!r}' for name, value in self._values.items())
        return f'{type(self).__name__}({values})'


#: Names that attributes must not shadow.
RESERVED_NAMES = frozenset(dir(TypedRecord))
