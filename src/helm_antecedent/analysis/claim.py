"""Stamp the antecedent annotation on every resource of a release."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from helm_antecedent.analysis.ownership import Backend, open_backend, resolved_resources
from helm_antecedent.config import ANTECEDENT_ANNOTATION
from helm_antecedent.core.discovery import ResourceType, TypeResolver
from helm_antecedent.core.kubectl import KubeOptions
from helm_antecedent.errors import OwnershipError, PatchError, ResolutionError
from helm_antecedent.parser.manifest import ReleaseManifest, ResourceDescriptor
from helm_antecedent.release import ReleaseIdentifier


@dataclass
class ResourceOutcome:
    descriptor: ResourceDescriptor
    resource_type: ResourceType | None = None
    error: OwnershipError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ClaimResult:
    identifier: str
    outcomes: list[ResourceOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[ResourceOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


def build_annotation_patch(identifier: ReleaseIdentifier | str) -> dict:
    """Merge patch setting only the antecedent annotation."""
    return {"metadata": {"annotations": {ANTECEDENT_ANNOTATION: str(identifier)}}}


def claim_ownership(
    manifest: ReleaseManifest,
    identifier: ReleaseIdentifier | str,
    backend: Backend | None = None,
    options: KubeOptions | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> ClaimResult:
    """Annotate every resource of the release with identifier.

    Best effort: resources whose type can't be resolved or whose patch fails
    are logged and recorded in the result, and the loop carries on. Only a
    failure to open the backend or run discovery raises. Callers converge by
    claiming again on a later reconciliation.
    """
    log = logger or structlog.get_logger(__name__)
    backend = open_backend(backend, options)
    resolver = TypeResolver.from_backend(backend)

    patch = build_annotation_patch(identifier)
    result = ClaimResult(identifier=str(identifier))

    for descriptor, resolved in resolved_resources(manifest, resolver):
        if isinstance(resolved, ResolutionError):
            log.error(
                "failed to get resource type mapping",
                kind=descriptor.kind,
                api_version=descriptor.api_version,
                name=descriptor.name,
                error=str(resolved),
            )
            result.outcomes.append(ResourceOutcome(descriptor, error=resolved))
            continue

        outcome = ResourceOutcome(descriptor, resource_type=resolved)
        try:
            backend.patch(resolved, descriptor.namespace, descriptor.name, patch)
        except Exception as e:
            outcome.error = PatchError(descriptor.kind, descriptor.namespace, descriptor.name, e)
            log.error(
                "failed to mark resource with antecedent annotation",
                kind=descriptor.kind,
                name=descriptor.name,
                namespace=descriptor.namespace,
                error=str(e),
            )
        result.outcomes.append(outcome)

    log.info(
        "release claimed",
        identifier=result.identifier,
        annotated=len(result.succeeded),
        failed=len(result.failed),
    )
    return result
