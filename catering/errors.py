from __future__ import annotations


class CateringError(Exception):
    """Base class for every failure raised while building a catering grid."""


class ValidationError(CateringError):
    """The inbound payload is malformed or missing a required array."""


class ConfigurationError(CateringError):
    """A mandatory static asset (template, stylesheet, sheet style) is missing or empty."""


class RenderError(CateringError):
    """The grid or one of its rendered forms is internally inconsistent."""
