"""Domain errors for EMR Bootstrap."""


class BootstrapError(RuntimeError):
    """Raised when the bootstrap cannot continue safely."""


class AuthFailure(BootstrapError):
    """The remote resource provider rejected the credentials."""


class RemoteError(BootstrapError):
    """The remote resource provider failed on its side."""


class TransportFailure(BootstrapError):
    """The remote could not be reached or the URL is malformed."""


class ArchiveError(BootstrapError):
    """A module archive could not be expanded."""


class SeedingError(BootstrapError):
    """The database client could not load the SQL dump."""


class CommandError(SeedingError):
    """An external command could not be spawned or did not finish in time."""
