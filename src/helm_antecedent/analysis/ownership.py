"""Ownership verification via the antecedent annotation."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterator, Protocol

import structlog

from helm_antecedent.config import ANTECEDENT_ANNOTATION
from helm_antecedent.core.discovery import ResourceType, TypeResolver
from helm_antecedent.core.kubectl import KubectlBackend, KubeOptions, is_transient
from helm_antecedent.core.retry import DEFAULT_RETRY, RetryPolicy, retry_with_backoff
from helm_antecedent.errors import FetchError, ResolutionError
from helm_antecedent.parser.manifest import ReleaseManifest, ResourceDescriptor, with_namespace
from helm_antecedent.release import ReleaseIdentifier

logger = structlog.get_logger(__name__)


class Backend(Protocol):
    def get(self, resource_type: ResourceType, namespace: str, name: str) -> dict: ...

    def patch(
        self, resource_type: ResourceType, namespace: str, name: str, merge_document: dict
    ) -> dict: ...

    def get_raw(self, path: str) -> dict: ...


@dataclass
class OwnershipCheck:
    owned: bool
    value: str = ""
    resource: ResourceDescriptor | None = None

    @property
    def unclaimed(self) -> bool:
        return self.resource is None

    def __iter__(self) -> Iterator[object]:
        # Allows `owned, value = verify_ownership(...)`
        return iter((self.owned, self.value))


def open_backend(backend: Backend | None, options: KubeOptions | None) -> Backend:
    """Return the given backend or build a fresh kubectl one for this call."""
    if backend is not None:
        return backend
    return KubectlBackend(options)


def resolved_resources(
    manifest: ReleaseManifest, resolver: TypeResolver
) -> Iterator[tuple[ResourceDescriptor, ResourceType | ResolutionError]]:
    """Yield each descriptor (namespace defaulted) with its type or the miss."""
    for descriptor in manifest.descriptors():
        descriptor = with_namespace(descriptor, manifest.namespace)
        try:
            yield descriptor, resolver.resolve(descriptor.api_version, descriptor.kind)
        except ResolutionError as e:
            yield descriptor, e


def verify_ownership(
    manifest: ReleaseManifest,
    expected: ReleaseIdentifier | str,
    backend: Backend | None = None,
    options: KubeOptions | None = None,
    policy: RetryPolicy = DEFAULT_RETRY,
    sleep: Callable[[float], None] = time.sleep,
) -> OwnershipCheck:
    """Check whether the release's resources are annotated with expected.

    Resources are fetched in manifest order and the first one carrying the
    antecedent annotation decides the result; the rest are not looked at.
    When none carries it the release is considered unclaimed and safe to
    take over: ``OwnershipCheck(owned=True, value="")``.

    Raises FetchError when a live object can't be read, and
    BackendConstructionError/SchemaDiscoveryError when the call can't start.
    """
    expected_value = str(expected)
    backend = open_backend(backend, options)
    resolver = TypeResolver.from_backend(backend)

    for descriptor, resolved in resolved_resources(manifest, resolver):
        if isinstance(resolved, ResolutionError):
            logger.debug("skip_unresolved", kind=descriptor.kind, name=descriptor.name)
            continue

        live = _fetch(backend, resolved, descriptor, policy, sleep)
        annotations = (live.get("metadata") or {}).get("annotations") or {}
        if ANTECEDENT_ANNOTATION in annotations:
            value = annotations[ANTECEDENT_ANNOTATION]
            return OwnershipCheck(
                owned=value == expected_value,
                value=value,
                resource=descriptor,
            )

    return OwnershipCheck(owned=True)


def _fetch(
    backend: Backend,
    resource_type: ResourceType,
    descriptor: ResourceDescriptor,
    policy: RetryPolicy,
    sleep: Callable[[float], None],
) -> dict:
    try:
        return retry_with_backoff(
            lambda: backend.get(resource_type, descriptor.namespace, descriptor.name),
            is_transient,
            policy,
            sleep=sleep,
        )
    except Exception as e:
        raise FetchError(
            descriptor.kind,
            descriptor.namespace,
            descriptor.name,
            transient=is_transient(e),
        ) from e
