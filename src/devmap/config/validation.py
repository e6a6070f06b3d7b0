"""
Configuration Validation for DevMap

This module validates configuration values, ensuring they have the expected
types and allowed values before the configuration is turned into dataclasses.
"""

from typing import Any, Dict

from ..error_handling import ConfigurationError


class ValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field: str = None):
        """Initialize validation error.

        Args:
            message: Error message
            field: Optional field name that caused the error
        """
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message, context={"field": field} if field else None)


class ConfigValidator:
    """Validates configuration values and structure.

    Example:
        >>> validator = ConfigValidator()
        >>> validator.validate_config(config_dict)
        >>> validator.validate_value('logging.level', 'INFO')
    """

    SECTIONS = ['paths', 'user', 'registry', 'logging']

    VALIDATION_RULES = {
        'version': {
            'type': str,
            'allowed_values': ['1.0'],
        },
        'paths.home': {
            'type': str,
            'non_empty': True,
        },
        'paths.projects_path': {
            'type': str,
            'non_empty': True,
        },
        'paths.registry_file': {
            'type': str,
            'non_empty': True,
        },
        'paths.templates_path': {
            'type': str,
            'non_empty': True,
        },
        'user.name': {
            'type': str,
            'non_empty': True,
        },
        'registry.template_repository': {
            'type': str,
        },
        'logging.level': {
            'type': str,
            'allowed_values': ['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        },
        'logging.json': {
            'type': bool,
        },
    }

    def validate_config(self, config: Dict[str, Any]) -> None:
        """Validate complete configuration structure and values.

        Sections may be partial; missing keys are filled from defaults later.

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(config, dict):
            raise ValidationError("Configuration must be a mapping")

        if 'version' in config:
            self.validate_value('version', config['version'])

        for section in self.SECTIONS:
            if section not in config:
                continue
            values = config[section]
            if not isinstance(values, dict):
                raise ValidationError(f"Section '{section}' must be a mapping")
            for key, value in values.items():
                self.validate_value(f"{section}.{key}", value)

    def validate_value(self, key: str, value: Any) -> None:
        """Validate a single configuration value.

        Args:
            key: Dotted key (e.g. 'paths.projects_path')
            value: Value to validate

        Raises:
            ValidationError: If the key is unknown or the value is invalid
        """
        rules = self.VALIDATION_RULES.get(key)
        if rules is None:
            raise ValidationError("Unknown configuration key", field=key)

        expected_type = rules['type']
        # bool is a subclass of int; only accept exact types
        if type(value) is not expected_type:
            raise ValidationError(
                f"Expected {expected_type.__name__}, got {type(value).__name__}",
                field=key,
            )

        if rules.get('non_empty') and not value.strip():
            raise ValidationError("Value must not be empty", field=key)

        allowed = rules.get('allowed_values')
        if allowed is not None and value not in allowed:
            raise ValidationError(
                f"Value {value!r} not in allowed values {allowed}",
                field=key,
            )
