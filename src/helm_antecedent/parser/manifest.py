"""Multi-doc YAML parsing into resource descriptors."""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field

import yaml

from helm_antecedent.config import DEFAULT_NAMESPACE


@dataclass
class ResourceDescriptor:
    api_version: str
    kind: str
    namespace: str
    name: str
    body: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ReleaseManifest:
    """Rendered manifest of a release plus the namespace it was installed in."""

    text: str
    namespace: str = DEFAULT_NAMESPACE

    def descriptors(self) -> list[ResourceDescriptor]:
        return parse_multi_doc(self.text, default_namespace=self.namespace)


def with_namespace(descriptor: ResourceDescriptor, namespace: str) -> ResourceDescriptor:
    """Return descriptor with an empty namespace replaced by namespace."""
    if descriptor.namespace:
        return descriptor
    return dataclasses.replace(descriptor, namespace=namespace)


def parse_multi_doc(yaml_text: str, default_namespace: str = "") -> list[ResourceDescriptor]:
    """Split multi-doc YAML (---) into ResourceDescriptors, in manifest order.

    Skips empty docs, docs that fail to parse, and non-resource docs (those
    without apiVersion/kind). List documents are replaced by their items.
    """
    descriptors: list[ResourceDescriptor] = []

    for raw_doc in _split_raw_docs(yaml_text):
        stripped = raw_doc.strip()
        if not stripped:
            continue

        try:
            body = yaml.safe_load(stripped)
        except yaml.YAMLError:
            continue

        if not _is_resource(body):
            continue

        # Charts may ship List documents; only their items are resources
        if _is_list(body):
            for item in body["items"]:
                if _is_resource(item):
                    descriptors.append(_to_descriptor(item, default_namespace))
            continue

        descriptors.append(_to_descriptor(body, default_namespace))

    return descriptors


def _is_resource(body: object) -> bool:
    return isinstance(body, dict) and bool(body.get("apiVersion")) and bool(body.get("kind"))


def _is_list(body: dict) -> bool:
    return isinstance(body.get("items"), list)


def _to_descriptor(body: dict, default_namespace: str) -> ResourceDescriptor:
    body = copy.deepcopy(body)
    metadata = body.get("metadata") or {}
    return ResourceDescriptor(
        api_version=str(body["apiVersion"]),
        kind=str(body["kind"]),
        namespace=metadata.get("namespace") or default_namespace,
        name=metadata.get("name") or "",
        body=body,
    )


def _split_raw_docs(yaml_text: str) -> list[str]:
    """Split multi-doc YAML by --- delimiters, returning raw text per doc."""
    docs: list[str] = []
    current_lines: list[str] = []

    for line in yaml_text.splitlines(keepends=True):
        if line.rstrip() == "---" or line.startswith("--- "):
            if current_lines:
                docs.append("".join(current_lines))
                current_lines = []
        else:
            current_lines.append(line)

    if current_lines:
        docs.append("".join(current_lines))

    return docs
