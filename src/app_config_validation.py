"""Cross-field validation of loaded application properties."""

from __future__ import annotations

from dataclasses import dataclass

from app_config_schema import AppConfigurationError, HaloProperties

EXTERNAL_URL_REQUIRED_CODE = "external-url.required.when-using-absolute-permalink"


@dataclass(frozen=True)
class ValidationError:
    """A rejected property value keyed by field name."""
    field: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message} [{self.code}]"


class ConfigValidationError(AppConfigurationError):
    """Raised when loaded properties violate a cross-field rule."""

    def __init__(self, errors: list[ValidationError]):
        self.errors = list(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"Invalid configuration: {details}")


def validate(properties: HaloProperties) -> list[ValidationError]:
    """Return every cross-field violation found in ``properties``."""
    errors: list[ValidationError] = []
    if properties.use_absolute_permalink and properties.external_url is None:
        errors.append(
            ValidationError(
                field="external_url",
                code=EXTERNAL_URL_REQUIRED_CODE,
                message=(
                    "External URL is required when property "
                    "`use-absolute-permalink` is set to true."
                ),
            )
        )
    return errors


def ensure_valid(properties: HaloProperties) -> HaloProperties:
    errors = validate(properties)
    if errors:
        raise ConfigValidationError(errors)
    return properties
