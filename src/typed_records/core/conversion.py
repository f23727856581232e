"""Conversion of typed values back to plain data.

This module is the outbound half of the engine: it turns records and
typed containers into plain nested data (`to_plain`), into an
attribute-style object graph (`to_object`), and into JSON or YAML text.
"""

import json
from abc import ABC, abstractmethod
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Literal

from yaml import safe_dump

if TYPE_CHECKING:
    from typed_records.descriptors import TypeDescriptor
    from typed_records.values import PlainValue

type Mode = Literal['plain', 'object']

JSON_INDENT = 4


class ConvertibleMixin(ABC):
    """Base for values that convert themselves to plain data.

    Records and typed containers implement the two conversion methods;
    text serialization is derived from the plain form.
    """

    @abstractmethod
    def to_plain(self) -> 'PlainValue':
        """Convert to plain nested dicts and lists."""

    @abstractmethod
    def to_object(self) -> Any:  # noqa: ANN401
        """Convert to nested namespaces and lists."""

    def to_json(self, pretty: bool = False) -> str:
        """Serialize to a JSON string.

        Args:
            pretty: Whether to indent the output.

        Returns:
            JSON text of the plain form.
        """
        if pretty:
            return json.dumps(self.to_plain(), indent=JSON_INDENT, ensure_ascii=False)

        return json.dumps(self.to_plain(), ensure_ascii=False)

    def to_yaml(self) -> str:
        """Serialize to a YAML string."""
        return safe_dump(self.to_plain(), sort_keys=False, allow_unicode=True)

    def __str__(self) -> str:
        """Pretty JSON representation."""
        return self.to_json(pretty=True)


def convert(value: Any, mode: Mode = 'plain') -> Any:  # noqa: ANN401
    """Recursively convert any value held by a record or container.

    Args:
        value: A typed or plain value.
        mode: `plain` for dicts and lists, `object` for namespaces and lists.

    Returns:
        The converted value. Scalars and foreign objects pass through.
    """
    if isinstance(value, ConvertibleMixin):
        return value.to_plain() if mode == 'plain' else value.to_object()

    if isinstance(value, dict):
        items = {key: convert(item, mode) for key, item in value.items()}
        return items if mode == 'plain' else SimpleNamespace(**items)

    if isinstance(value, (list, tuple)):
        return [convert(item, mode) for item in value]

    return value


def convert_value(descriptor: 'TypeDescriptor', value: Any,  # noqa: ANN401
                  mode: Mode = 'plain') -> Any:  # noqa: ANN401
    """Convert a value according to the descriptor it was coerced against.

    Args:
        descriptor: Descriptor of the attribute or container element.
        value: Stored value.
        mode: `plain` for dicts and lists, `object` for namespaces and lists.

    Returns:
        The converted value.
    """
    if value is None:
        return None

    if descriptor.is_primitive:
        return value

    return convert(value, mode)
