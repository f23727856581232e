"""Base Pydantic models for schema elements.

This module defines the foundational model classes used by descriptors,
declarations and settings. It enforces immutability and strict schema
validation so that compiled schemas are deterministic and can be shared
between record instances.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all schema elements.

    Design principles enforced by this model:
        - Immutability: compiled elements cannot be modified after creation.
          A descriptor compiled once per class is reused by every instance.
        - Strict schema validation: unknown or extra fields are rejected.

    Record classes and deferred defaults are arbitrary Python objects,
    so arbitrary types are allowed.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
          Coercion policy is fixed for the lifetime of a registry.
        - Tolerant schema handling: unknown or extra fields are ignored.
          This allows the surrounding environment to contain unrelated
          variables without breaking configuration resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
