from __future__ import annotations

import copy
from typing import Any

import pytest

from helm_antecedent.core.discovery import ResourceType
from helm_antecedent.core.kubectl import KubectlError

DISCOVERY: dict[str, dict] = {
    "/api": {"kind": "APIVersions", "versions": ["v1"]},
    "/api/v1": {
        "kind": "APIResourceList",
        "groupVersion": "v1",
        "resources": [
            {"name": "configmaps", "namespaced": True, "kind": "ConfigMap"},
            {"name": "services", "namespaced": True, "kind": "Service"},
            {"name": "namespaces", "namespaced": False, "kind": "Namespace"},
            {"name": "pods", "namespaced": True, "kind": "Pod"},
            {"name": "pods/log", "namespaced": True, "kind": "Pod"},
        ],
    },
    "/apis": {
        "kind": "APIGroupList",
        "groups": [
            {
                "name": "apps",
                "versions": [{"groupVersion": "apps/v1", "version": "v1"}],
            },
            {
                "name": "rbac.authorization.k8s.io",
                "versions": [
                    {"groupVersion": "rbac.authorization.k8s.io/v1", "version": "v1"},
                ],
            },
        ],
    },
    "/apis/apps/v1": {
        "kind": "APIResourceList",
        "groupVersion": "apps/v1",
        "resources": [
            {"name": "deployments", "namespaced": True, "kind": "Deployment"},
            {"name": "deployments/scale", "namespaced": True, "kind": "Scale"},
        ],
    },
    "/apis/rbac.authorization.k8s.io/v1": {
        "kind": "APIResourceList",
        "groupVersion": "rbac.authorization.k8s.io/v1",
        "resources": [
            {"name": "clusterroles", "namespaced": False, "kind": "ClusterRole"},
            {"name": "roles", "namespaced": True, "kind": "Role"},
        ],
    },
}


def server_error(reason: str, message: str = "") -> KubectlError:
    """A KubectlError as kubectl reports it for a server status."""
    return KubectlError(
        ["kubectl", "get"], 1, f"Error from server ({reason}): {message or reason}\n"
    )


def not_found(plural: str, name: str) -> KubectlError:
    return server_error("NotFound", f'{plural} "{name}" not found')


def _merge(target: dict, patch: dict) -> dict:
    """RFC 7386 merge patch."""
    for key, value in patch.items():
        if value is None:
            target.pop(key, None)
        elif isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class FakeBackend:
    """In-memory cluster implementing get/patch/get_raw."""

    def __init__(self, discovery: dict[str, dict] | None = None) -> None:
        self.discovery = copy.deepcopy(DISCOVERY if discovery is None else discovery)
        self.objects: dict[tuple[str, str, str], dict] = {}
        self.get_errors: dict[tuple[str, str, str], list[Exception]] = {}
        self.patch_errors: dict[tuple[str, str, str], Exception] = {}
        self.calls: list[tuple[str, str, str, str]] = []

    @staticmethod
    def _key(plural: str, namespace: str, name: str, namespaced: bool = True) -> tuple[str, str, str]:
        return (plural, namespace if namespaced else "", name)

    def add(self, plural: str, namespace: str, name: str, annotations: dict | None = None,
            namespaced: bool = True, **body: Any) -> dict:
        obj = {"metadata": {"name": name, "namespace": namespace}, **body}
        if annotations is not None:
            obj["metadata"]["annotations"] = dict(annotations)
        self.objects[self._key(plural, namespace, name, namespaced)] = obj
        return obj

    def obj(self, plural: str, namespace: str, name: str, namespaced: bool = True) -> dict:
        return self.objects[self._key(plural, namespace, name, namespaced)]

    def get_raw(self, path: str) -> dict:
        self.calls.append(("get_raw", path, "", ""))
        if path not in self.discovery:
            raise server_error("NotFound", f"the server could not find {path}")
        return copy.deepcopy(self.discovery[path])

    def get(self, resource_type: ResourceType, namespace: str, name: str) -> dict:
        self.calls.append(("get", resource_type.plural, namespace, name))
        key = self._key(resource_type.plural, namespace, name, resource_type.namespaced)
        pending = self.get_errors.get(key)
        if pending:
            raise pending.pop(0)
        if key not in self.objects:
            raise not_found(resource_type.plural, name)
        return copy.deepcopy(self.objects[key])

    def patch(self, resource_type: ResourceType, namespace: str, name: str,
              merge_document: dict) -> dict:
        self.calls.append(("patch", resource_type.plural, namespace, name))
        key = self._key(resource_type.plural, namespace, name, resource_type.namespaced)
        if key in self.patch_errors:
            raise self.patch_errors[key]
        if key not in self.objects:
            raise not_found(resource_type.plural, name)
        _merge(self.objects[key], merge_document)
        return copy.deepcopy(self.objects[key])

    def fetched(self) -> list[tuple[str, str, str]]:
        return [c[1:] for c in self.calls if c[0] == "get"]

    def patched(self) -> list[tuple[str, str, str]]:
        return [c[1:] for c in self.calls if c[0] == "patch"]


class RecordingLogger:
    """Stand-in for a structlog bound logger that keeps every event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict]] = []

    def _log(self, level: str, event: str, **kw: Any) -> None:
        self.events.append((level, event, kw))

    def debug(self, event: str, **kw: Any) -> None:
        self._log("debug", event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log("info", event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log("warning", event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log("error", event, **kw)

    def errors(self) -> list[dict]:
        return [kw for level, _, kw in self.events if level == "error"]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def no_sleep() -> list[float]:
    """Collects requested sleeps instead of sleeping; pass .append as sleep."""
    return []
