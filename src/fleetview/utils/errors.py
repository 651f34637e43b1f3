"""Error types raised by the resource access layer.

Every error carries an ``http_status`` so the request handling layer can map
it to a response without inspecting messages. Infrastructure failures use the
5xx range, request problems the 4xx range.
"""

from __future__ import annotations


class FleetviewError(Exception):
    """Base error for fleetview operations."""

    http_status: int = 500

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.http_status = status


class NotFoundError(FleetviewError):
    """A resource kind or a resource instance does not exist."""

    http_status = 404

    def __init__(self, kind: str, name: str | None = None, namespace: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        if name is None:
            message = f"could not find coordinate for kind {kind}"
        elif not name:
            message = f"{kind} collection not found"
            if namespace:
                message = f"{message} in namespace '{namespace}'"
        elif namespace:
            message = f"{kind} '{name}' not found in namespace '{namespace}'"
        else:
            message = f"{kind} '{name}' not found"
        super().__init__(message)


class ConflictError(FleetviewError):
    """An optimistic-concurrency write lost against a concurrent change."""

    http_status = 409


class ValidationError(FleetviewError):
    """The API server rejected a request body or parameters."""

    http_status = 400


class AuthenticationError(FleetviewError):
    """The API server rejected the credentials."""

    http_status = 401


class CatalogUnavailableError(FleetviewError):
    """The resource catalog could not be enumerated."""

    http_status = 503


class ConfigurationError(FleetviewError):
    """Cluster credentials could not be loaded."""

    http_status = 500


class NotInitializedError(FleetviewError, RuntimeError):
    """The client registry was used before it was initialized.

    This is a startup defect, not a per-request failure: no request can be
    served without credentials.
    """

    http_status = 500
