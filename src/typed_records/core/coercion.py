"""Value coercion engine.

This module defines the mixin that turns raw values into values
conforming to a type descriptor. Rules are evaluated in order:

1. `None` is accepted only by nullable descriptors;
2. `mixed` wraps plain sequences and mappings into typed containers
   of `mixed` and passes anything else through;
3. primitives are checked, or converted when strict checking is off;
4. `list` and `dict` accept typed containers of the same element type
   and rebuild plain data element by element;
5. records accept their own instances and build from plain mappings.

Coercion never mutates its input.
"""

from math import isfinite
from typing import TYPE_CHECKING, Any

from typed_records.containers import TypedContainer, TypedList, TypedMapping
from typed_records.descriptors import TypeDescriptor
from typed_records.errors import ErrorContext, NotNullableError, TypeMismatchError
from typed_records.values import MAPPINGS, NAMESPACES, SEQUENCES, is_number, to_number

if TYPE_CHECKING:
    from typed_records.settings import Settings
    from typed_records.values import RawValue

MIXED = TypeDescriptor.mixed()

TRUE_LITERAL = 'true'
FALSE_LITERAL = 'false'


def runtime_kind(value: 'RawValue') -> str:
    """Describe the runtime kind of a value for diagnostics.

    Args:
        value: Any value.

    Returns:
        A type-expression-like name such as `int`, `list[string]`,
        or the record type name.
    """
    if value is None:
        return 'null'

    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, int):
        return 'int'
    if isinstance(value, float):
        return 'float'
    if isinstance(value, str):
        return 'string'

    if isinstance(value, TypedContainer):
        return value.type_name
    if isinstance(value, SEQUENCES):
        return 'list'
    if isinstance(value, MAPPINGS + NAMESPACES):
        return 'dict'

    return getattr(type(value), '__type_name__', type(value).__name__)


class CoercionMixin:
    """Mixin providing descriptor-driven value coercion.

    The policy is read from `settings`; containers built during
    coercion are bound to the instance this mixin is part of, so
    nested values are admitted under the same policy.
    """

    settings: 'Settings'

    def coerce(self, descriptor: TypeDescriptor, value: 'RawValue') -> Any:  # noqa: ANN401, PLR0911
        """Coerce a raw value into a value conforming to a descriptor.

        Args:
            descriptor: Expected shape.
            value: Raw value.

        Returns:
            The typed value.

        Raises:
            NotNullableError: If `None` is given for a non-nullable descriptor.
            TypeMismatchError: If the value can not be coerced.
            SchemaError: Any error raised while building nested records.
        """
        if value is None:
            if descriptor.nullable:
                return None
            raise NotNullableError(
                f'Expected {descriptor}, but received null',
                context=ErrorContext(expected=str(descriptor), actual='null'),
            )

        match descriptor.kind:
            case 'mixed':
                return self._coerce_mixed(value)
            case 'int':
                return self._coerce_int(descriptor, value)
            case 'float':
                return self._coerce_float(descriptor, value)
            case 'string':
                return self._coerce_string(descriptor, value)
            case 'bool':
                return self._coerce_bool(descriptor, value)
            case 'list':
                return self._coerce_list(descriptor, value)
            case 'dict':
                return self._coerce_dict(descriptor, value)

        return self._coerce_record(descriptor, value)

    def zero_value(self, descriptor: TypeDescriptor) -> Any:  # noqa: ANN401, PLR0911
        """Return the zero value of a descriptor.

        Nullable descriptors (and `mixed`) have a `None` zero value.

        Args:
            descriptor: Attribute descriptor.

        Returns:
            `""`, `0`, `0.0`, `False`, an empty typed container, or a
            record built from an empty mapping.
        """
        if descriptor.nullable:
            return None

        match descriptor.kind:
            case 'string':
                return ''
            case 'bool':
                return False
            case 'int':
                return 0
            case 'float':
                return 0.0
            case 'list':
                return TypedList(descriptor.subtype, self)  # type: ignore[arg-type]
            case 'dict':
                return TypedMapping(descriptor.subtype, self)  # type: ignore[arg-type]

        return descriptor.record.from_mapping({})  # type: ignore[union-attr]

    @property
    def _lenient(self) -> bool:
        """Whether conversion between kinds is enabled."""
        return not self.settings.strict_type_checking

    @property
    def _extended(self) -> bool:
        """Whether scalars are promoted to single-element containers."""
        return self._lenient and self.settings.extended_container_conversion

    def _is_empty_zero(self, value: 'RawValue') -> bool:
        """Check whether a value is an empty string read as zero."""
        return value == '' and self.settings.empty_string_is_zero

    @staticmethod
    def _mismatch(descriptor: TypeDescriptor, value: 'RawValue') -> TypeMismatchError:
        """Build a mismatch error for a descriptor."""
        return TypeMismatchError.expected(str(descriptor), value, runtime_kind(value))

    def _coerce_mixed(self, value: 'RawValue') -> Any:  # noqa: ANN401
        """Wrap plain containers, pass everything else through."""
        if isinstance(value, SEQUENCES):
            return TypedList.from_plain(MIXED, value, self)  # type: ignore[arg-type]

        if isinstance(value, MAPPINGS + NAMESPACES):
            return TypedMapping.from_plain(MIXED, value, self)  # type: ignore[arg-type]

        return value

    def _coerce_int(self, descriptor: TypeDescriptor, value: 'RawValue') -> int:
        """Coerce to an integer."""
        if self._lenient:
            if isinstance(value, bool):
                value = int(value)
            elif isinstance(value, float) and isfinite(value):
                value = int(value)
            elif isinstance(value, str):
                number = to_number(value)
                if number is not None and isfinite(number):
                    value = int(number)
                elif self._is_empty_zero(value):
                    value = 0

        if not is_number(value) or isinstance(value, float):
            raise self._mismatch(descriptor, value)

        return value  # type: ignore[no-any-return]

    def _coerce_float(self, descriptor: TypeDescriptor, value: 'RawValue') -> float:
        """Coerce to a float; integers are always widened."""
        if self._lenient:
            if isinstance(value, bool):
                value = float(value)
            elif isinstance(value, str):
                number = to_number(value)
                if number is not None:
                    value = float(number)
                elif self._is_empty_zero(value):
                    value = 0.0

        if not is_number(value):
            raise self._mismatch(descriptor, value)

        return float(value)

    def _coerce_string(self, descriptor: TypeDescriptor, value: 'RawValue') -> str:
        """Coerce to a string."""
        if self._lenient:
            if isinstance(value, bool):
                value = TRUE_LITERAL if value else FALSE_LITERAL
            elif is_number(value):
                value = str(value)

        if not isinstance(value, str):
            raise self._mismatch(descriptor, value)

        return value

    def _coerce_bool(self, descriptor: TypeDescriptor, value: 'RawValue') -> bool:
        """Coerce to a boolean."""
        if self._lenient:
            if is_number(value):
                value = value != 0
            elif isinstance(value, str):
                number = to_number(value)
                if number is not None:
                    value = number != 0
                elif self._is_empty_zero(value):
                    value = False
                elif value.lower() == TRUE_LITERAL:
                    value = True
                elif value.lower() == FALSE_LITERAL:
                    value = False

        if not isinstance(value, bool):
            raise self._mismatch(descriptor, value)

        return value

    def _promote(self, descriptor: TypeDescriptor, value: 'RawValue') -> Any:  # noqa: ANN401
        """Coerce a scalar against the element type of a container descriptor.

        Raises:
            TypeMismatchError: Against the container descriptor if the
                scalar does not fit the element type.
        """
        try:
            return self.coerce(descriptor.subtype, value)  # type: ignore[arg-type]
        except TypeMismatchError as base:
            raise self._mismatch(descriptor, value) from base

    def _coerce_list(self, descriptor: TypeDescriptor, value: 'RawValue') -> TypedList:
        """Coerce to a typed list."""
        subtype: TypeDescriptor = descriptor.subtype  # type: ignore[assignment]

        if isinstance(value, TypedList) and value.type == subtype:
            return value

        if isinstance(value, SEQUENCES):
            return TypedList.from_plain(subtype, value, self)  # type: ignore[arg-type]

        if self._extended and not isinstance(value, TypedContainer):
            element = self._promote(descriptor, value)
            return TypedList.from_plain(subtype, [element], self)  # type: ignore[arg-type]

        raise self._mismatch(descriptor, value)

    def _coerce_dict(self, descriptor: TypeDescriptor, value: 'RawValue') -> TypedMapping:
        """Coerce to a typed mapping."""
        subtype: TypeDescriptor = descriptor.subtype  # type: ignore[assignment]

        if isinstance(value, TypedMapping) and value.type == subtype:
            return value

        if isinstance(value, MAPPINGS + NAMESPACES):
            return TypedMapping.from_plain(subtype, value, self)  # type: ignore[arg-type]

        if self._extended and not isinstance(value, TypedContainer):
            element = self._promote(descriptor, value)
            return TypedMapping.from_plain(subtype, {'0': element}, self)  # type: ignore[arg-type]

        raise self._mismatch(descriptor, value)

    def _coerce_record(self, descriptor: TypeDescriptor, value: 'RawValue') -> Any:  # noqa: ANN401
        """Coerce to an instance of the referenced record class."""
        record = descriptor.record
        if record is None:  # pragma: no cover
            raise self._mismatch(descriptor, value)

        if isinstance(value, record):
            return value

        if isinstance(value, (*MAPPINGS, *NAMESPACES, TypedMapping)):
            return record.from_mapping(value)  # type: ignore[attr-defined]

        raise self._mismatch(descriptor, value)
