from __future__ import annotations


class SnippetExecError(Exception):
    """Base class for host-level failures raised by snippet-exec."""


class SessionInitError(SnippetExecError):
    """The embedded interpreter session could not be bootstrapped."""


class SessionClosedError(SnippetExecError):
    """A snippet was submitted to a session that has already been closed."""


class StagingError(SnippetExecError):
    """A temp script could not be written or given its permissions."""
