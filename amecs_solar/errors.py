"""Errors raised while building SolarData from a feed."""


class ParseError(Exception):
    """Base class for every failure to parse a solar feed.

    Subclasses form a closed set; each has a fixed message. Where a lower-level
    failure caused the error it is kept on ``cause`` (and chained).
    """
    message = "Failed to parse solar feed"

    def __init__(self, cause=None):
        super().__init__(self.message)
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class HeaderLineIsNotFound(ParseError):
    message = "HeaderLine is not found"


class HeaderLineIsNotValid(ParseError):
    message = "Invalid HeaderLine was supplied"


class NonUtcZoneSupplied(ParseError):
    """Raised when the header names a timezone other than UTC."""
    message = "Non UTC time was supplied, Currently, it's not supported"

    def __init__(self, zone):
        super().__init__()
        self.zone = zone


class InvalidBaseTime(ParseError):
    message = "Invalid Base Time"


class InvalidValueInData(ParseError):
    """Raised when a body token is not a number.

    Attributes:
        token (str): The offending text
    """
    message = "Invalid value in data"

    def __init__(self, cause, token):
        super().__init__(cause)
        self.token = token


class InvalidLineWasSupplied(ParseError):
    message = "Invalid line was supplied"


class SourceReadError(ParseError):
    """Raised when reading the underlying source fails."""
    message = "I/O Error"
