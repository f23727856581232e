"""Typed containers.

A typed container holds values of a single element type. Every value
written into it passes through the coercion engine of its registry, so
a container never holds a value that does not conform to its element
type.

Two flavours are provided:
- `TypedMapping`, keyed by strings;
- `TypedList`, keyed by contiguous integer indexes starting at zero.
"""

from abc import abstractmethod
from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping, MutableSequence
from functools import cmp_to_key
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Self

from typed_records.core.conversion import ConvertibleMixin, convert_value
from typed_records.descriptors import TypeDescriptor
from typed_records.errors import (
    ContainerIndexError,
    ContainerKeyError,
    EmptyContainerError,
    SchemaError,
    TypeMismatchError,
)

if TYPE_CHECKING:
    from typed_records.core.registry import SchemaRegistry
    from typed_records.values import PlainValue


def _default_registry() -> 'SchemaRegistry':
    """Return the process-wide registry."""
    from typed_records.core.registry import get_default_registry  # noqa: PLC0415

    return get_default_registry()


class TypedContainer(ConvertibleMixin):
    """Common base of typed containers.

    Attributes:
        type: Element type shared by every value of the container.
        registry: Registry whose coercion policy admits values.
    """

    type: TypeDescriptor
    registry: 'SchemaRegistry'

    def __init__(self, element_type: TypeDescriptor | str = 'mixed',
                 registry: 'SchemaRegistry | None' = None) -> None:
        """Create an empty container.

        Args:
            element_type: Element descriptor or type expression.
            registry: Registry used for coercion and type names.
                Defaults to the process-wide registry.
        """
        self.registry = registry or _default_registry()

        if not isinstance(element_type, TypeDescriptor):
            element_type = self.registry.parse(element_type)
        self.type = element_type

    @property
    @abstractmethod
    def type_name(self) -> str:
        """Type expression describing the container."""

    def _coerce(self, key: str | int, value: Any) -> Any:  # noqa: ANN401
        """Coerce a value against the element type.

        Raises:
            SchemaError: With the element key prepended to its path.
        """
        try:
            return self.registry.coerce(self.type, value)
        except SchemaError as error:
            error.prepend_path(f'[{key!r}]')
            raise

    def _derive(self, values: Any) -> Self:  # noqa: ANN401
        """Create a container of the same type holding already valid values."""
        result = type(self)(self.type, self.registry)
        result._values = values  # type: ignore[attr-defined]
        return result

    def __repr__(self) -> str:
        """Developer representation."""
        return f'{type(self).__name__}({str(self.type)!r}, {self._values!r})'  # type: ignore[attr-defined]


class TypedMapping(TypedContainer, MutableMapping[str, Any]):
    """String-keyed container with a fixed element type.

    Integer keys are accepted and normalized to their decimal string,
    so plain data decoded from sources with numeric keys can be loaded.
    """

    def __init__(self, element_type: TypeDescriptor | str = 'mixed',
                 registry: 'SchemaRegistry | None' = None) -> None:
        """Create an empty mapping."""
        super().__init__(element_type, registry)
        self._values: dict[str, Any] = {}

    @classmethod
    def from_plain(cls, element_type: TypeDescriptor | str,
                   data: Mapping[Any, Any] | SimpleNamespace,
                   registry: 'SchemaRegistry | None' = None) -> Self:
        """Build a mapping from plain keyed data.

        Args:
            element_type: Element descriptor or type expression.
            data: A mapping or a namespace object.
            registry: Registry used for coercion.

        Returns:
            A new mapping with every value coerced to the element type.
        """
        result = cls(element_type, registry)
        if isinstance(data, SimpleNamespace):
            data = vars(data)

        for key, value in data.items():
            result[key] = value

        return result

    @property
    def type_name(self) -> str:
        """Type expression describing the mapping."""
        return f'dict[{self.type}]'

    @staticmethod
    def _normalize_key(key: Any) -> str:  # noqa: ANN401
        """Validate and normalize a mapping key.

        Raises:
            TypeMismatchError: If the key is neither a string nor an integer.
        """
        if isinstance(key, str):
            return key

        if isinstance(key, int) and not isinstance(key, bool):
            return str(key)

        raise TypeMismatchError.expected('string key', key, type(key).__name__)

    def __getitem__(self, key: str | int) -> Any:  # noqa: ANN401
        """Read the value stored under a key."""
        name = self._normalize_key(key)
        if name not in self._values:
            raise ContainerKeyError(f'Key {name!r} is not present')

        return self._values[name]

    def __setitem__(self, key: str | int, value: Any) -> None:  # noqa: ANN401
        """Coerce and store a value under a key."""
        name = self._normalize_key(key)
        self._values[name] = self._coerce(name, value)

    def __delitem__(self, key: str | int) -> None:
        """Remove a key."""
        name = self._normalize_key(key)
        if name not in self._values:
            raise ContainerKeyError(f'Key {name!r} is not present')

        del self._values[name]

    def __contains__(self, key: object) -> bool:
        """Check whether a key is present."""
        try:
            return self._normalize_key(key) in self._values
        except TypeMismatchError:
            return False

    def __iter__(self) -> Iterator[str]:
        """Iterate over keys in insertion order."""
        return iter(self._values)

    def __len__(self) -> int:
        """Number of stored values."""
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        """Compare with another mapping of the same type or a plain dict."""
        if isinstance(other, TypedMapping):
            return self.type == other.type and self._values == other._values

        if isinstance(other, dict):
            return self._values == other

        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def filter(self, predicate: Callable[[Any, str], bool]) -> Self:
        """Select entries matching a predicate.

        Args:
            predicate: Callable receiving `(value, key)`.

        Returns:
            A new mapping of the same type with the matching entries.
        """
        return self._derive({
            key: value
            for key, value in self._values.items()
            if predicate(value, key)
        })

    def to_plain(self) -> dict[str, 'PlainValue']:
        """Convert to a plain dict."""
        return {
            key: convert_value(self.type, value)
            for key, value in self._values.items()
        }

    def to_object(self) -> SimpleNamespace:
        """Convert to a namespace object."""
        return SimpleNamespace(**{
            key: convert_value(self.type, value, 'object')
            for key, value in self._values.items()
        })


class TypedList(TypedContainer, MutableSequence[Any]):
    """Integer-indexed container with a fixed element type.

    Indexes are contiguous from zero. A negative index addresses from
    the end; any index resolving outside `[0, len)` is rejected rather
    than extending the list.
    """

    def __init__(self, element_type: TypeDescriptor | str = 'mixed',
                 registry: 'SchemaRegistry | None' = None) -> None:
        """Create an empty list."""
        super().__init__(element_type, registry)
        self._values: list[Any] = []

    @classmethod
    def from_plain(cls, element_type: TypeDescriptor | str,
                   data: Iterable[Any],
                   registry: 'SchemaRegistry | None' = None) -> Self:
        """Build a list from a plain sequence.

        Args:
            element_type: Element descriptor or type expression.
            data: Any iterable of values.
            registry: Registry used for coercion.

        Returns:
            A new list with every value coerced to the element type.
        """
        result = cls(element_type, registry)
        result.extend(data)

        return result

    @property
    def type_name(self) -> str:
        """Type expression describing the list."""
        return f'list[{self.type}]'

    def _resolve(self, index: Any, *, insert: bool = False) -> int:  # noqa: ANN401
        """Resolve a possibly negative index to a position.

        Args:
            index: Candidate index.
            insert: Whether the position right after the end is valid.

        Raises:
            TypeMismatchError: If the index is not an integer.
            ContainerIndexError: If the index is out of range.
        """
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeMismatchError.expected('integer index', index, type(index).__name__)

        size = len(self._values)
        position = size + index if index < 0 else index

        upper = size + 1 if insert else size
        if not 0 <= position < upper:
            raise ContainerIndexError(f'Index {index} is out of range for length {size}')

        return position

    def __getitem__(self, index: int | slice) -> Any:  # noqa: ANN401
        """Read a value, or a sub-list for a slice."""
        if isinstance(index, slice):
            return self._derive(self._values[index])

        return self._values[self._resolve(index)]

    def __setitem__(self, index: int | slice, value: Any) -> None:  # noqa: ANN401
        """Coerce and overwrite an existing position."""
        if isinstance(index, slice):
            start = index.indices(len(self._values))[0]
            self._values[index] = [
                self._coerce(start + offset, item)
                for offset, item in enumerate(value)
            ]
            return

        position = self._resolve(index)
        self._values[position] = self._coerce(position, value)

    def __delitem__(self, index: int | slice) -> None:
        """Remove a position, shifting the following values."""
        if isinstance(index, slice):
            del self._values[index]
            return

        del self._values[self._resolve(index)]

    def __iter__(self) -> Iterator[Any]:
        """Iterate over values."""
        return iter(self._values)

    def __len__(self) -> int:
        """Number of stored values."""
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        """Compare with another list of the same type or a plain sequence."""
        if isinstance(other, TypedList):
            return self.type == other.type and self._values == other._values

        if isinstance(other, (list, tuple)):
            return self._values == list(other)

        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def insert(self, index: int, value: Any) -> None:  # noqa: ANN401
        """Coerce and insert a value before a position."""
        position = self._resolve(index, insert=True)
        self._values.insert(position, self._coerce(position, value))

    def pop(self, index: int = -1) -> Any:  # noqa: ANN401
        """Remove and return a value, the last one by default.

        Raises:
            EmptyContainerError: If the list is empty.
        """
        if not self._values:
            raise EmptyContainerError('List is empty')

        return self._values.pop(self._resolve(index))

    def shift(self) -> Any:  # noqa: ANN401
        """Remove and return the first value."""
        return self.pop(0)

    def unshift(self, *values: Any) -> None:  # noqa: ANN401
        """Coerce and prepend values, keeping their argument order."""
        self._values[0:0] = [
            self._coerce(position, value)
            for position, value in enumerate(values)
        ]

    def first(self) -> Any:  # noqa: ANN401
        """Return the first value.

        Raises:
            EmptyContainerError: If the list is empty.
        """
        if not self._values:
            raise EmptyContainerError('List is empty')

        return self._values[0]

    def last(self) -> Any:  # noqa: ANN401
        """Return the last value.

        Raises:
            EmptyContainerError: If the list is empty.
        """
        if not self._values:
            raise EmptyContainerError('List is empty')

        return self._values[-1]

    def slice(self, offset: int, length: int | None = None) -> Self:
        """Return a contiguous sub-list.

        Args:
            offset: Start position; negative values count from the end.
            length: Number of values; negative values stop that many
                values before the end. `None` slices to the end.

        Returns:
            A new list of the same type. Values are not coerced again.
        """
        size = len(self._values)
        start = max(size + offset, 0) if offset < 0 else offset

        if length is None:
            stop = size
        elif length < 0:
            stop = size + length
        else:
            stop = start + length

        return self._derive(self._values[start:stop])

    def sort(self, comparator: Callable[[Any, Any], int] | None = None, *,
             reverse: bool = False) -> Self:
        """Return a sorted copy.

        Args:
            comparator: Three-way comparison callable. Natural ordering
                is used when omitted.
            reverse: Whether to sort in descending order.

        Returns:
            A new list of the same type; the list itself is unchanged.
        """
        key = cmp_to_key(comparator) if comparator is not None else None
        return self._derive(sorted(self._values, key=key, reverse=reverse))

    def filter(self, predicate: Callable[[Any, int], bool]) -> Self:
        """Select values matching a predicate.

        Args:
            predicate: Callable receiving `(value, index)`.

        Returns:
            A new list of the same type with the matching values.
        """
        return self._derive([
            value
            for index, value in enumerate(self._values)
            if predicate(value, index)
        ])

    def keys(self) -> list[int]:
        """Return the indexes."""
        return list(range(len(self._values)))

    def values(self) -> list[Any]:
        """Return a copy of the values."""
        return list(self._values)

    def items(self) -> list[tuple[int, Any]]:
        """Return `(index, value)` pairs."""
        return list(enumerate(self._values))

    def to_plain(self) -> list['PlainValue']:
        """Convert to a plain list."""
        return [convert_value(self.type, value) for value in self._values]

    def to_object(self) -> list[Any]:
        """Convert to a list of namespace objects."""
        return [convert_value(self.type, value, 'object') for value in self._values]
