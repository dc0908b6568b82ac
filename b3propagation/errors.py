"""Exceptions raised by b3propagation.

Malformed carrier content is never an error: extraction maps it to an empty
result. These exceptions cover programmer and configuration mistakes only.
"""

from __future__ import annotations


class B3Error(Exception):
    """
    Base exception for b3propagation.

    ``details`` carries the offending config path, option or argument name
    and is appended to the message when the error is printed.
    """

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{name}={value}" for name, value in self.details.items())
        return f"{self.message} ({context})"


class ConfigError(B3Error):
    """A config file, environment variable or override could not be applied."""


class ValidationError(B3Error):
    """A required carrier, getter, setter or key factory was None."""

    def __init__(self, argument: str):
        super().__init__(f"{argument} == None")
        self.argument = argument
