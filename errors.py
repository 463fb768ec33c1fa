"""
Error types raised along the daily fortune pipeline.
"""


class FortuneError(Exception):
    """Base class for every failure the pipeline knows how to report."""


class ValidationError(FortuneError):
    """Malformed or impossible date/time input."""


class ComputationError(FortuneError):
    """The calendar backend could not resolve a date or luck cycle."""


class RemoteAPIError(FortuneError):
    """Chat completion or push API answered with a failure."""


class ParseError(FortuneError):
    """The model output is not valid structured text."""
