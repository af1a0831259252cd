"""Error taxonomy for ReelScout.

Every error carries a ``kind`` string and a human-readable message so the
HTTP layer can report it as ``{"kind": ..., "message": ...}``. Messages
name configuration variables, never their values.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ReelScoutError(Exception):
    kind = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message}


class ConfigurationError(ReelScoutError):
    kind = "configuration_error"


class ValidationError(ReelScoutError):
    """Malformed caller input, e.g. a non-positive movie id."""

    kind = "validation_error"


class NotFoundError(ReelScoutError):
    kind = "not_found"


class UpstreamError(ReelScoutError):
    """Base class for failures of the catalog or generative collaborators."""

    kind = "upstream_error"


class UpstreamAuthError(UpstreamError):
    kind = "upstream_auth"


class UpstreamNetworkError(UpstreamError):
    kind = "upstream_network"


class UpstreamGenericError(UpstreamError):
    kind = "upstream_error"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.status is not None:
            data["status"] = self.status
        return data


class MalformedGenerationOutput(ReelScoutError):
    """The generative backend answered, but not with the expected JSON."""

    kind = "malformed_generation_output"
