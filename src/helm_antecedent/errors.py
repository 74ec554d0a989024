"""Errors raised while verifying or claiming release ownership."""

from __future__ import annotations


class OwnershipError(Exception):
    """Base class for ownership errors."""


class BackendConstructionError(OwnershipError):
    """The cluster backend handle could not be built."""


class SchemaDiscoveryError(OwnershipError):
    """The resource type table could not be built from live discovery."""


class ResolutionError(OwnershipError):
    """A kind/version is not served by the cluster."""

    def __init__(self, api_version: str, kind: str) -> None:
        self.api_version = api_version
        self.kind = kind
        super().__init__(f"no resource type for {kind} in {api_version}")


class FetchError(OwnershipError):
    """Reading a live object failed terminally or ran out of retries."""

    def __init__(self, kind: str, namespace: str, name: str, *, transient: bool) -> None:
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.transient = transient
        reason = "retries exhausted" if transient else "terminal error"
        super().__init__(f"failed to get {kind} '{namespace}/{name}' ({reason})")


class PatchError(OwnershipError):
    """Annotating a single resource failed."""

    def __init__(self, kind: str, namespace: str, name: str, cause: Exception) -> None:
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.cause = cause
        super().__init__(
            f"failed to mark resource '{kind}/{name}' with antecedent annotation: {cause}"
        )
