from __future__ import annotations


class ComponentCheckError(Exception):
    """Base class for every error raised by the component check."""


class DataUnavailable(ComponentCheckError):
    """A remote source (QA website, release history, project info) could not be read."""


class MalformedConstraint(ComponentCheckError, ValueError):
    def __init__(self, constraint: str, reason: str = "") -> None:
        self.constraint = constraint
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid version constraint '{constraint}'{detail}")


InvalidConstraint = MalformedConstraint


class AuthenticationMissing(ComponentCheckError):
    """No QA API credentials could be obtained."""


class InvalidConfiguration(ComponentCheckError, ValueError):
    """A configuration or option value is not supported."""


class MalformedManifest(ComponentCheckError):
    """The lock file is missing or has no package list."""
