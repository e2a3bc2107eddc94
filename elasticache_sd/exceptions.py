"""Custom exception hierarchy for the ElastiCache discovery service."""


class DiscoveryError(Exception):
    """Base exception for all service errors."""


class ConfigError(DiscoveryError):
    """Invalid or missing configuration."""


class ProviderError(DiscoveryError):
    """A read call against the cloud provider failed."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class IdentityResolutionError(DiscoveryError):
    """The caller's account ID could not be determined."""


class RegionResolutionError(DiscoveryError):
    """No region could be determined within the allowed attempts."""


class ResolutionCancelled(DiscoveryError):
    """Shutdown was requested while resolving the region."""


class RecordContractError(DiscoveryError):
    """A ready cache node is missing a field the API promises to populate."""

    def __init__(self, message: str, field_name: str):
        super().__init__(message)
        self.field_name = field_name


class OutputError(DiscoveryError):
    """The file_sd output could not be written."""
