"""Core schema engine.

This module defines the runtime machinery shared by records and typed
containers.

It provides:
- compiling and caching record definitions along class hierarchies;
- registering record classes under type names;
- coercing raw values into typed values under a settings policy;
- converting typed values back to plain data.

The primary public entry point is `SchemaRegistry`.
"""

from .conversion import ConvertibleMixin, convert, convert_value
from .registry import SchemaRegistry, get_default_registry

__all__ = (
    'ConvertibleMixin',
    'SchemaRegistry',
    'convert',
    'convert_value',
    'get_default_registry',
)
