"""Cluster space checker specific exceptions."""


class ClusterSpaceError(Exception):
    """Base class for the errors raised while checking node free space."""

    def __init__(self, message: str, *args):
        self.message = message
        super().__init__(message, *args)


class ConfigurationError(ClusterSpaceError):
    """Invalid checker arguments or destination storage class configuration."""


class SchedulabilityError(ClusterSpaceError):
    """The node can't host the probe job."""

    def __init__(self, message: str, *args, node: str = "", marker: str = ""):
        self.node = node
        self.marker = marker
        super().__init__(message, *args)


class ParseError(ClusterSpaceError):
    """The probe job output can't be parsed."""


class CheckTimeoutError(ClusterSpaceError):
    """A wait exceeded its deadline."""


class VolumeDeletionTimeoutError(CheckTimeoutError):
    """A temporary PV has not been reclaimed in time."""

    def __init__(self, message: str, *args, volume: str = ""):
        self.volume = volume
        super().__init__(message, *args)


class CheckCancelledError(ClusterSpaceError):
    """The caller cancelled the operation."""

    def __init__(self, message: str = "context cancelled", *args):
        super().__init__(message, *args)


class ResourceStoreError(ClusterSpaceError):
    """A request to the Kubernetes API failed."""


class ProbeJobError(ResourceStoreError):
    """The probe job completed with a failure."""


class CleanupError(ClusterSpaceError):
    """Several temporary resources failed to be removed."""

    def __init__(self, errors: list[ClusterSpaceError], *args):
        self.errors = errors
        message = "failed to delete temporary pvcs: "
        message += "; ".join(e.message for e in errors)
        super().__init__(message, *args)
