"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any, Mapping

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

PREDEFINED_KEYS = ("only", "except", "substitutes", "system_map", "system_key", "metadata")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_reference_list(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset)) and not isinstance(value, str)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                errors.append(ValidationError(
                    field="logging.level",
                    message=f"Must be one of {', '.join(LOG_LEVELS)}",
                    value=value
                ))

        for flag in ("format_json", "include_timestamp", "include_caller"):
            if flag in params and not isinstance(params[flag], bool):
                errors.append(ValidationError(
                    field=f"logging.{flag}",
                    message="Must be a boolean",
                    value=params[flag]
                ))

        return errors

    @staticmethod
    def validate_session_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate session thread parameters."""
        errors = []

        if "thread_name_prefix" in params:
            value = params["thread_name_prefix"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="session.thread_name_prefix",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "daemon" in params and not isinstance(params["daemon"], bool):
            errors.append(ValidationError(
                field="session.daemon",
                message="Must be a boolean",
                value=params["daemon"]
            ))

        return errors

    @staticmethod
    def validate_system_config(config: Any) -> list[ValidationError]:
        """Validate a declarative system configuration for with_config."""
        if not isinstance(config, Mapping):
            return [ValidationError(field="config", message="Must be a mapping", value=config)]

        errors = []

        for key in ("only", "except"):
            if key in config and not _is_reference_list(config[key]):
                errors.append(ValidationError(
                    field=key,
                    message="Must be a list of states or state ids",
                    value=config[key]
                ))

        for key in ("substitutes", "system_map"):
            if key in config and not isinstance(config[key], Mapping):
                errors.append(ValidationError(
                    field=key,
                    message="Must be a mapping keyed by state or state id",
                    value=config[key]
                ))

        if "system_key" in config:
            value = config["system_key"]
            if not isinstance(value, (str, int)) or isinstance(value, bool):
                errors.append(ValidationError(
                    field="system_key",
                    message="Must be a string or an integer",
                    value=value
                ))

        if "metadata" in config:
            value = config["metadata"]
            if not (callable(value) or isinstance(value, str)):
                errors.append(ValidationError(
                    field="metadata",
                    message="Must be a predicate or a dotted reference to one",
                    value=value
                ))

        for key in config:
            if key in PREDEFINED_KEYS:
                continue
            if not isinstance(key, str) or not ("." in key or ":" in key):
                errors.append(ValidationError(
                    field=str(key),
                    message="Unknown key; custom keys must be dotted references to wrapper functions",
                    value=config[key]
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete engine configuration."""
        errors = []

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        if "session" in config:
            errors.extend(ConfigValidator.validate_session_params(config["session"]))

        return errors
