"""Coercion and lifecycle policy settings.

The engine behaviour is controlled by a small set of flags. They are
resolved once, from keyword arguments or from `TYPED_RECORDS_*`
environment variables, and are read-only afterwards.
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from typed_records.models import SettingsModel

ENV_PREFIX = 'TYPED_RECORDS_'


class Settings(SettingsModel):
    """Policy flags of a schema registry.

    Example:
        Relax primitive coercion for a registry::

            registry = SchemaRegistry(Settings(strict_type_checking=False))
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        frozen=True,
        extra='ignore',
    )

    strict_type_checking: bool = Field(
        default=True,
        title='Strict type checking',
        description=(
            'Require values to already have the native kind of the target '
            'primitive. When disabled, numeric strings, booleans and numbers '
            'are converted between each other.'
        ),
    )

    extended_container_conversion: bool = Field(
        default=False,
        title='Extended container conversion',
        description=(
            'Promote a scalar to a single-element list or dict when it '
            'coerces to the element type. Only effective when strict type '
            'checking is disabled.'
        ),
    )

    empty_string_is_zero: bool = Field(
        default=True,
        title='Empty string is zero',
        description=(
            'Convert an empty string to `0`, `0.0` or `false` for numeric and '
            'boolean targets. Only effective when strict type checking is '
            'disabled.'
        ),
    )

    materialize_defaults_when_missing: bool = Field(
        default=False,
        title='Materialize defaults',
        description=(
            'Store the zero value of the attribute type when no value and no '
            'default are available.'
        ),
    )

    allow_uninitialized_state: bool = Field(
        default=True,
        title='Allow uninitialized state',
        description=(
            'Leave attributes without value and default unset instead of '
            'failing the construction.'
        ),
    )

    uninitialized_nullable_reads_as_null: bool = Field(
        default=True,
        title='Uninitialized nullable reads as null',
        description=(
            'Return `null` when an unset nullable attribute is read instead '
            'of failing.'
        ),
    )
