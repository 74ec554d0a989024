"""Release identifiers stored in the antecedent annotation."""

from __future__ import annotations

from dataclasses import dataclass

CLUSTER_SCOPE = "<cluster>"


@dataclass(frozen=True)
class ReleaseIdentifier:
    """Identity of the object that owns a release, e.g. a HelmRelease.

    Serialised as ``<namespace>:<kind>/<name>`` with the kind lower-cased;
    cluster-scoped owners use ``<cluster>`` as namespace.
    """

    namespace: str
    kind: str
    name: str

    def __str__(self) -> str:
        namespace = self.namespace or CLUSTER_SCOPE
        return f"{namespace}:{self.kind.lower()}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> ReleaseIdentifier:
        """Parse the string form, raising ValueError when malformed."""
        namespace, sep, rest = value.partition(":")
        kind, slash, name = rest.partition("/")
        if not sep or not slash or not namespace or not kind or not name or "/" in name:
            raise ValueError(
                f"invalid release identifier {value!r}, expected <namespace>:<kind>/<name>"
            )
        if namespace == CLUSTER_SCOPE:
            namespace = ""
        return cls(namespace=namespace, kind=kind.lower(), name=name)
