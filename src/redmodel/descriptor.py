"""
Model descriptors.

Every Record subclass gets a ModelDescriptor when the class is defined. It
freezes what the record layer needs to know about the type: its name,
declared fields, options and the attribute -> machine mapping.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from redmodel.core.config import RecordOptions, get_settings
from redmodel.core.identity import table_namespace
from redmodel.core.validation import StateValidator, bind_machines
from redmodel.storage.expiration import ExpirationManager
from redmodel.storage.redis_store import get_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelDescriptor:
    """Immutable description of a model type."""

    model_name: str
    qualified_name: str
    options: RecordOptions
    field_names: tuple[str, ...]
    validator: StateValidator

    @classmethod
    def build(cls, model: type, options: RecordOptions | None = None) -> ModelDescriptor:
        """
        Describe a model class.

        Args:
            model: A Record subclass with its pydantic fields built
            options: Options to attach; read from ``model.__options__`` if None
        """
        options = options if options is not None else getattr(model, "__options__", RecordOptions())
        field_names = tuple(model.model_fields)
        machines = bind_machines(options.state_machines, field_names, model.__name__)

        descriptor = cls(
            model_name=model.__name__,
            qualified_name=f"{model.__module__}.{model.__qualname__}",
            options=options,
            field_names=field_names,
            validator=StateValidator(machines),
        )
        logger.debug(
            f"Described {descriptor.model_name}: fields={list(field_names)} "
            f"governed={sorted(machines)} ttl={options.expires_in}"
        )
        return descriptor

    def with_ttl(self, value: int | float | timedelta | None) -> ModelDescriptor:
        """Copy of this descriptor carrying new options with a different TTL."""
        return ModelDescriptor(
            model_name=self.model_name,
            qualified_name=self.qualified_name,
            options=self.options.with_ttl(value),
            field_names=self.field_names,
            validator=self.validator,
        )

    @property
    def namespace(self) -> str:
        """Counter namespace, including the configured key prefix."""
        base = self.options.namespace or table_namespace(self.qualified_name)
        return f"{get_settings().key_prefix}{base}"

    @property
    def ttl(self) -> int | None:
        """Model TTL, falling back to Settings.default_ttl."""
        if self.options.expires_in is not None:
            return self.options.expires_in
        return get_settings().default_ttl

    @property
    def expiration(self) -> ExpirationManager:
        return ExpirationManager(self.ttl)

    @property
    def store(self) -> Any:
        """Hash store for this model: its own, or the process-wide one."""
        if self.options.store is not None:
            return self.options.store
        return get_store()
