class VmError(Exception):
    """Base exception for vm errors."""


class PersistenceError(VmError):
    """Config file missing, unreadable, unwritable or malformed."""


class ProcessError(VmError):
    """Vagrant executable not found or could not be started."""


class NotFoundError(VmError):
    """Named entry not registered."""
