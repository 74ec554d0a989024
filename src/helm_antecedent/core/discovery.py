"""Live API discovery and kind -> resource type resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import structlog

from helm_antecedent.errors import ResolutionError, SchemaDiscoveryError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResourceType:
    group: str
    version: str
    kind: str
    plural: str
    namespaced: bool

    @property
    def kubectl_name(self) -> str:
        """Fully qualified resource argument, e.g. deployments.v1.apps."""
        if not self.group:
            return self.plural
        return f"{self.plural}.{self.version}.{self.group}"


class DiscoveryClient(Protocol):
    def get_raw(self, path: str) -> dict: ...


def split_api_version(api_version: str) -> tuple[str, str]:
    """'apps/v1' -> ('apps', 'v1'), 'v1' -> ('', 'v1')."""
    if "/" in api_version:
        group, _, version = api_version.partition("/")
        return group, version
    return "", api_version


class TypeResolver:
    """Table of (group, version, kind) -> ResourceType.

    Built from live discovery for a single operation and never cached, since
    the served types can change between calls (CRDs come and go).
    """

    def __init__(self, types: list[ResourceType]) -> None:
        self._table: dict[tuple[str, str, str], ResourceType] = {}
        for rt in types:
            self._table.setdefault((rt.group, rt.version, rt.kind), rt)

    @classmethod
    def from_backend(cls, client: DiscoveryClient) -> TypeResolver:
        """Walk /api and /apis and collect every served resource type.

        Raises SchemaDiscoveryError when /api or /apis can't be read, or when
        no resource types come back at all. A group version that fails on its
        own is logged and left out, so its kinds resolve as misses.
        """
        try:
            core = client.get_raw("/api")
            groups = client.get_raw("/apis")
            group_versions = [("", v, f"/api/{v}") for v in core.get("versions", [])]
            for group in groups.get("groups", []):
                for gv in group.get("versions", []):
                    group_versions.append(
                        (group["name"], gv["version"], f"/apis/{gv['groupVersion']}")
                    )
        except Exception as e:
            raise SchemaDiscoveryError(f"API discovery failed: {e}") from e

        types: list[ResourceType] = []
        for group, version, path in group_versions:
            try:
                types += _resource_types(client.get_raw(path), group, version)
            except Exception as e:
                logger.warning(
                    "skipping unavailable group version",
                    group_version=path.split("/", 2)[2],
                    error=str(e),
                )

        if not types:
            raise SchemaDiscoveryError("API discovery returned no resource types")
        logger.debug("discovery_complete", resource_types=len(types))
        return cls(types)

    def resolve(self, api_version: str, kind: str) -> ResourceType:
        """Look up the resource type serving kind at api_version."""
        group, version = split_api_version(api_version)
        try:
            return self._table[(group, version, kind)]
        except KeyError:
            raise ResolutionError(api_version, kind) from None


def _resource_types(doc: dict, group: str, version: str) -> list[ResourceType]:
    """Convert an APIResourceList document into ResourceTypes."""
    if not isinstance(doc, dict) or "resources" not in doc:
        raise SchemaDiscoveryError(
            f"malformed discovery document for {group or 'core'}/{version}"
        )
    types: list[ResourceType] = []
    for res in doc["resources"]:
        # Skip subresources like pods/log and deployments/scale
        if "/" in res["name"]:
            continue
        types.append(ResourceType(
            group=group,
            version=version,
            kind=res["kind"],
            plural=res["name"],
            namespaced=bool(res.get("namespaced", False)),
        ))
    return types
