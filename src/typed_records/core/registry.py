"""Schema registry.

This module defines the registry tying together record type names,
compiled record definitions and the coercion policy.

Record classes register themselves on declaration; their definitions
are compiled lazily on first use. A process-wide default registry is
used by records that do not name one explicitly.
"""

from threading import Lock, RLock

from typed_records.settings import Settings

from .coercion import CoercionMixin
from .compiler import DefinitionCompilerMixin

_default_registry: 'SchemaRegistry | None' = None
_default_lock = Lock()


class SchemaRegistry(CoercionMixin, DefinitionCompilerMixin):
    """Registry of record types with a coercion policy.

    The registry is responsible for:
    - resolving type names used in type expressions;
    - compiling and caching merged record definitions;
    - coercing raw values under its settings.

    Registered types and compiled definitions are shared between
    threads; their mutation is serialized by an internal lock.
    """

    def __init__(self, settings: Settings | None = None, *,
                 strict: bool = False) -> None:
        """Initialize the registry.

        Args:
            settings: Coercion and lifecycle policy. Resolved from the
                environment when omitted.
            strict: Whether to raise errors instead of emitting warnings
                when a type name is registered twice.
        """
        self.settings = settings or Settings()
        self.strict_mode = strict

        self._lock = RLock()
        self.clear()

    def __repr__(self) -> str:
        """Developer representation."""
        return f'{type(self).__name__}(types={sorted(self.types)!r}, strict={self.strict_mode!r})'


def get_default_registry() -> SchemaRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _default_registry  # noqa: PLW0603

    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = SchemaRegistry()

    return _default_registry
