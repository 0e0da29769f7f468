"""
Error taxonomy.

"Not authorized" is never an error: it is a result with group=None.
Everything here is a failure the caller has to deal with.
"""


class QualificationError(Exception):
    """Base class for every error raised by this package."""


class TrainingDataError(QualificationError):
    """Training records could not be read or refreshed.

    Callers must treat this as a hard failure and grant nothing.
    """


class ConfigError(QualificationError):
    pass


class UnknownScopeError(QualificationError, LookupError):
    """A cache scope (event occurrence) does not exist."""


class StaffingConfigError(QualificationError, ValueError):
    """A staffing requirement has a bad pattern or count."""
