"""Tests configurations and fixtures."""

from typing import TYPE_CHECKING

import pytest

from typed_records import SchemaRegistry, Settings, TypedRecord

if TYPE_CHECKING:
    from collections.abc import Callable

#: Flags pinned for tests, independent from the environment.
DEFAULT_FLAGS = {
    'strict_type_checking': True,
    'extended_container_conversion': False,
    'empty_string_is_zero': True,
    'materialize_defaults_when_missing': False,
    'allow_uninitialized_state': True,
    'uninitialized_nullable_reads_as_null': True,
}


@pytest.fixture
def make_registry() -> 'Callable[..., SchemaRegistry]':
    """Provide a factory of isolated registries.

    Each registry is created with pinned settings; keyword arguments
    override individual flags. Record classes declared against such a
    registry do not leak into the process-wide one.

    Returns:
        A callable accepting settings flags and a `strict` keyword.
    """
    def make(*, strict: bool = True, **flags: bool) -> SchemaRegistry:
        """Create a registry with pinned settings."""
        return SchemaRegistry(Settings(**{**DEFAULT_FLAGS, **flags}), strict=strict)

    return make


@pytest.fixture
def registry(make_registry: 'Callable[..., SchemaRegistry]') -> SchemaRegistry:
    """Provide a strict registry with default policy flags."""
    return make_registry()


@pytest.fixture
def lenient(make_registry: 'Callable[..., SchemaRegistry]') -> SchemaRegistry:
    """Provide a registry with relaxed primitive coercion."""
    return make_registry(strict_type_checking=False)


@pytest.fixture
def models(registry: SchemaRegistry) -> dict[str, type[TypedRecord]]:
    """Provide a small record model bound to the `registry` fixture.

    Returns:
        Record classes by name: `Address`, `User` and `Admin`.
    """
    class Address(TypedRecord, registry=registry):
        ATTRIBUTES = {
            'city': 'string',
            'zip': '?string',
        }

    class User(TypedRecord, registry=registry):
        ATTRIBUTES = {
            'name': 'string',
            'age': '?int',
            'emails': ('list[string]', list),
            'address': '?Address',
        }

    class Admin(User):
        ATTRIBUTES = (
            ('level', ('int', 1)),
            'notes',
        )

    return {
        'Address': Address,
        'User': User,
        'Admin': Admin,
    }
