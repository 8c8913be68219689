"""Exception types raised by the logging subsystem."""


class ApplogError(Exception):
    """Base class for all applog errors."""


class FolderUnavailable(ApplogError):
    """The log folder could not be located or created."""


class WriteFailure(ApplogError):
    """A sink failed to write a rendered line."""

    def __init__(self, sink_id: str, cause: Exception):
        super().__init__(f"{sink_id}: {cause}")
        self.sink_id = sink_id
        self.cause = cause
