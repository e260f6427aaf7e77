class ExporterException(Exception):
    pass


class ConfigError(ExporterException):
    """Startup configuration is unusable; the exporter must not start."""


class CollectionError(ExporterException):
    """Collecting one resource failed. Carries the resource identifier."""

    def __init__(self, resource: str, message: str):
        self.resource = resource
        super().__init__(f"{resource}: {message}")


class MalformedResourceError(CollectionError):
    pass


class UpstreamError(CollectionError):
    """Transport failure, HTTP error status or a body that is not JSON."""


class SnapshotDecodeError(CollectionError):
    """The upstream JSON does not match the expected account schema."""
