"""Exception hierarchy for fleet provisioning."""

from typing import Optional


class FleetError(Exception):
    """Base class for all fleet provisioning errors."""


class ConfigError(FleetError, ValueError):
    """Invalid fleet configuration (raised before any work starts)."""


class SourceFetchError(FleetError):
    """The base bundle could not be fetched. Fatal for install."""


class IdentityError(FleetError):
    """An error scoped to one fleet identity."""

    def __init__(self, identity: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"[{identity}] {message}")
        self.identity = identity
        self.message = message
        self.cause = cause


class ArtifactGenerationError(IdentityError):
    """Rendering or writing an identity's artifacts failed."""


class ApplyError(IdentityError):
    """The orchestration API rejected a create/apply for an identity."""


class DeleteError(IdentityError):
    """The orchestration API failed to remove an identity's resource."""
