"""
Codacy instance registry.

Parses the ``codacy`` configuration tree into an ordered, immutable set of
instance records and resolves request-time instance names against it.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_NAME = "default"


class ConfigurationError(ValueError):
    """Base class for invalid or unusable Codacy configuration."""


class ConfigurationConflictError(ConfigurationError):
    """Both a named default instance and top level default fields were given."""


class ConfigurationIncompleteError(ConfigurationError):
    """A required configuration value is missing."""


class InstanceNotFoundError(ConfigurationError):
    """No configured instance matches the requested name."""


class DefaultInstanceNotFoundError(InstanceNotFoundError):
    """No instance named ``default`` is configured."""


@dataclass(frozen=True, slots=True)
class InstanceRecord:
    """Connection details for one Codacy instance."""

    name: str
    base_url: str
    api_key: str = field(repr=False)
    external_base_url: str | None = None


def _required_string(entry: Mapping[str, Any], key: str, index: int) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigurationIncompleteError(
            f"Codacy instance at index {index} is missing required string '{key}'."
        )
    return value


def _optional_string(entry: Mapping[str, Any], key: str) -> str | None:
    value = entry.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"Codacy config value '{key}' must be a string.")
    return value or None


def _parse_named_instances(raw: Any) -> list[InstanceRecord]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigurationIncompleteError("Codacy 'instances' must be a list of instance objects.")

    records = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            raise ConfigurationIncompleteError(
                f"Codacy instance at index {index} must be an object."
            )
        records.append(
            InstanceRecord(
                name=_required_string(entry, "name", index),
                base_url=_required_string(entry, "baseUrl", index),
                api_key=_required_string(entry, "apiKey", index),
                external_base_url=_optional_string(entry, "externalBaseUrl"),
            )
        )
    return records


class InstanceRegistry:
    """Read-only collection of configured Codacy instances."""

    def __init__(self, instances: list[InstanceRecord] | tuple[InstanceRecord, ...]) -> None:
        self._instances = tuple(instances)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "InstanceRegistry":
        """
        Build the registry from the ``codacy`` configuration tree.

        A default instance may be declared either through the top level
        ``baseUrl``/``externalBaseUrl``/``apiKey`` fields or through a named
        instance called ``default``, never both. Top level ``baseUrl`` and
        ``apiKey`` must be given together.
        """
        named = _parse_named_instances(config.get("instances"))
        has_named_default = any(record.name == DEFAULT_INSTANCE_NAME for record in named)

        base_url = _optional_string(config, "baseUrl")
        external_base_url = _optional_string(config, "externalBaseUrl")
        api_key = _optional_string(config, "apiKey")

        if has_named_default and (base_url or external_base_url or api_key):
            raise ConfigurationConflictError(
                f"Found both a named codacy instance with name {DEFAULT_INSTANCE_NAME} "
                "and top level baseUrl or apiKey config. Use only one style of config."
            )

        none_present = not base_url and not api_key
        all_present = bool(base_url and api_key)
        if not (all_present or none_present):
            raise ConfigurationIncompleteError(
                "Found partial default codacy config. All (or none) of baseUrl and apiKey must be provided."
            )

        if all_present:
            named.append(
                InstanceRecord(
                    name=DEFAULT_INSTANCE_NAME,
                    base_url=base_url,
                    api_key=api_key,
                    external_base_url=external_base_url,
                )
            )

        registry = cls(named)
        logger.info("Codacy instances configured", extra={"instances": registry.names()})
        return registry

    @property
    def instances(self) -> tuple[InstanceRecord, ...]:
        return self._instances

    def names(self) -> list[str]:
        return [record.name for record in self._instances]

    def resolve(self, name: str | None = None) -> InstanceRecord:
        """Return the first instance matching ``name``, or the default one when omitted."""
        if not name or name == DEFAULT_INSTANCE_NAME:
            for record in self._instances:
                if record.name == DEFAULT_INSTANCE_NAME:
                    return record
            if name == DEFAULT_INSTANCE_NAME:
                raise DefaultInstanceNotFoundError(
                    f"Instance '{DEFAULT_INSTANCE_NAME}' was requested but no codacy instance "
                    f"named {DEFAULT_INSTANCE_NAME} is configured."
                )
            raise DefaultInstanceNotFoundError(
                "Couldn't find a default codacy instance in the config. Either configure an "
                f"instance with name {DEFAULT_INSTANCE_NAME} or add a prefix to your annotation value."
            )

        for record in self._instances:
            if record.name == name:
                return record
        raise InstanceNotFoundError(f"Couldn't find a codacy instance in the config with name {name}")
