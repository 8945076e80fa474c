# actions/errors.py
# -*- coding: utf-8 -*-
"""
Exceptions raised by the domain and project actions.
"""


class ProvisioningError(Exception):
    """Base class for action failures the CLI reports with exit status 1."""


class DomainValidationError(ProvisioningError):
    """A vhost did not serve the expected sentinel over HTTP or HTTPS."""

    def __init__(self, url: str, expected: str, received):
        self.url = url
        self.expected = expected
        self.received = received
        super().__init__(
            f"Validation failed for {url}: expected '{expected}', got '{received}'"
        )


class PrerequisiteError(ProvisioningError):
    """A required binary, service or credential is missing."""
