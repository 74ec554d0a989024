"""Shell out to helm CLI."""

from __future__ import annotations

from helm_antecedent.core.kubectl import KubeOptions
from helm_antecedent.core.runner import run


def get_manifest(release: str, namespace: str, options: KubeOptions | None = None) -> str:
    """helm get manifest <release> -n <namespace> -> raw YAML string."""
    options = options or KubeOptions()
    cmd = ["helm", "get", "manifest", release, "-n", namespace]
    cmd += options.flags(context_flag="--kube-context")
    return run(cmd, timeout=options.timeout)
