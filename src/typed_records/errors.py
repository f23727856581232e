"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report type expression compilation failures, record declaration issues,
and coercion failures in a structured and extensible way.

Every error raised by the engine inherits from `SchemaError` and, where
Python has a natural builtin counterpart (`TypeError`, `KeyError`,
`IndexError`, `AttributeError`), from that builtin as well, so callers may
handle them either way.
"""

from os import linesep
from typing import Any, TypedDict

from yaml import dump

from typed_records.values import MAPPINGS, SCALARS, SEQUENCES

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_INDENT = 4


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Path segments of the failing element, outermost first.
    path: list[str]

    #: Expected type expression.
    expected: str | None
    #: Runtime kind of the offending value.
    actual: str | None

    #: Offending value.
    value: Any


class ErrorFormatter:
    """Utility class for formatting schema-related errors.

    This formatter is responsible for producing human-readable
    error messages with an optional element path and a YAML-based
    snippet of the offending value.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with path and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        location = cls.get_location_string(context, indent=FORMAT_INDENT)
        snippet = cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)
        if not location and not snippet:
            return message

        message += linesep
        message += location
        message += snippet

        return message

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format the element path.

        Args:
            context: Error context containing the path segments.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location line, or an empty string when the
            error has no path.
        """
        indent = cls._ensure_indent(indent)

        path = cls.join_path(context.get('path') or [])
        if not path:
            return ''

        return f'{indent}at "{path}"{linesep}'

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the offending value.

        Args:
            context: Error context containing the value.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if 'value' not in context:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(context['value'], indent)
        snippet += linesep

        return snippet

    @staticmethod
    def join_path(path: list[str]) -> str:
        """Join path segments into a dotted path.

        Index segments (already rendered as `[n]`) are appended without
        a separator.
        """
        result = ''
        for segment in path:
            if result and not segment.startswith('['):
                result += '.'
            result += segment

        return result

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Plain mappings and sequences are sanitized item by item, other
        non-scalar objects (typed containers and records included) are
        replaced with a placeholder.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                str(key): cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to a YAML-formatted string.

        Args:
            value: Arbitrary value to serialize.
            indent: Optional indentation prefix.

        Returns:
            A YAML-formatted string representation of the value.
        """
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class SchemaWarning(UserWarning):
    """Warning emitted for non-fatal registry issues.

    This warning is used when a record class replaces another one under
    the same registered name in relaxed mode.
    """


class SchemaError(Exception, ErrorFormatter):
    """Base exception for all typed-records errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional path and value.
        """
        self.message = message
        self.context = context or ErrorContext()

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    @property
    def path(self) -> str:
        """Dotted path of the failing element."""
        return self.join_path(self.context.get('path') or [])

    def prepend_path(self, segment: str) -> None:
        """Prefix the element path with an outer segment.

        Used while an error propagates out of nested records and
        containers, so the final path points from the outermost
        value to the failing element.

        Args:
            segment: Attribute name or `[key]` segment.
        """
        self.context['path'] = [segment, *(self.context.get('path') or [])]


class InvalidTypeExpressionError(SchemaError, ValueError):
    """Error raised for a malformed or unsupported type expression."""


class UnknownTypeError(SchemaError, LookupError):
    """Error raised when a type expression references an unknown record class."""


class DuplicateTypeError(SchemaError, ValueError):
    """Error raised when a record name is registered twice in strict mode."""


class AttributeDefinitionError(SchemaError, TypeError):
    """Error raised for an invalid attribute declaration.

    This covers invalid attribute names, names colliding with record
    methods, and declarations that are neither an expression nor an
    `(expression, default)` pair.
    """


class AttributeShadowError(AttributeDefinitionError):
    """Error raised when an inherited attribute is redeclared with another type."""


class UnknownAttributeError(SchemaError, AttributeError):
    """Error raised on access to an attribute absent from the definition."""


class MissingAttributeError(SchemaError, TypeError):
    """Error raised when a required attribute has no value and no default."""


class UninitializedAccessError(SchemaError, AttributeError):
    """Error raised when an unset attribute is read."""


class TypeMismatchError(SchemaError, TypeError):
    """Error raised when a value can not be coerced to the expected type."""

    @classmethod
    def expected(cls, expected: str, value: Any,  # noqa: ANN401
                 actual: str) -> 'TypeMismatchError':
        """Create a mismatch error for a value.

        Args:
            expected: Expected type expression.
            value: Offending value.
            actual: Runtime kind of the offending value.

        Returns:
            An initialized error with expected/actual diagnostics.
        """
        return cls(
            f'Expected {expected}, but received {actual}',
            context=ErrorContext(expected=expected, actual=actual, value=value),
        )


class NotNullableError(TypeMismatchError):
    """Error raised when `None` is supplied for a non-nullable type."""


class EmptyContainerError(SchemaError, IndexError):
    """Error raised when reading from an empty list."""


class ContainerIndexError(SchemaError, IndexError):
    """Error raised for a list index out of range."""


class ContainerKeyError(SchemaError, KeyError):
    """Error raised for a mapping key that is not present."""
