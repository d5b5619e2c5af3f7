"""Custom exceptions used across PDSFlow."""


class PDSFlowError(Exception):
    """Base error for the application."""


class ConfigError(PDSFlowError):
    """Configuration related error."""


class RegistryError(ConfigError):
    """Raised when a coordinate registry file is malformed."""


class AssetError(PDSFlowError):
    """Raised when a template or font asset is missing or unreadable."""


class TemplateMismatchError(PDSFlowError):
    """Raised when the template lacks a page or sheet the registry refers to."""


class RenderError(PDSFlowError):
    """Raised by the public API when a render aborts; the cause is chained."""
