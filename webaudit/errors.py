class AuditError(Exception):
    """Base class for failures that abort a whole audit."""


class LaunchError(AuditError):
    """The browser process could not be started."""


class SessionClosedError(AuditError):
    """An operation was attempted on a session that is not open."""
