from __future__ import annotations


class ConfigurationError(ValueError):
    """A field description is incomplete, ambiguous or inconsistent."""


class IncompatibleFieldsError(ValueError):
    """Two fields cannot be combined by a field-algebra operation."""


class DomainError(ValueError):
    """A quantity or time interval lies outside the domain an operation supports."""


class ConvergenceWarning(UserWarning):
    """An iterative procedure stopped before reaching its tolerance."""
