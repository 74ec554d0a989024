"""Shell out to kubectl CLI."""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass

from helm_antecedent.config import DEFAULT_TIMEOUT, TRANSIENT_MESSAGES, TRANSIENT_REASONS
from helm_antecedent.core.discovery import ResourceType
from helm_antecedent.core.runner import RunError, RunTimeout, run
from helm_antecedent.errors import BackendConstructionError

_REASON_RE = re.compile(r"Error from server \((\w+)\)")


class KubectlError(RunError):
    """A kubectl command failed; `reason` is the server status reason, if any."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str) -> None:
        super().__init__(cmd, returncode, stderr)
        match = _REASON_RE.search(stderr)
        self.reason = match.group(1) if match else None


@dataclass
class KubeOptions:
    kubeconfig: str | None = None
    kube_context: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    def flags(self, context_flag: str = "--context") -> list[str]:
        """Connection flags; helm spells the context flag --kube-context."""
        flags: list[str] = []
        if self.kubeconfig:
            flags += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            flags += [context_flag, self.kube_context]
        return flags


def is_transient(err: Exception) -> bool:
    """Whether a backend error is worth retrying.

    Connection resets, internal errors, timeouts, rate limiting and anything
    suggesting a retry delay are transient. Everything else, NotFound
    included, is terminal.
    """
    if isinstance(err, RunTimeout):
        return True
    if not isinstance(err, RunError):
        return False
    if getattr(err, "reason", None) in TRANSIENT_REASONS:
        return True
    stderr = err.stderr.lower()
    return any(fragment in stderr for fragment in TRANSIENT_MESSAGES)


class KubectlBackend:
    """Get, patch and discovery calls against one cluster via kubectl.

    One instance is built per verify/claim call and then dropped.
    """

    def __init__(self, options: KubeOptions | None = None, binary: str = "kubectl") -> None:
        self.options = options or KubeOptions()
        path = shutil.which(binary)
        if path is None:
            raise BackendConstructionError(f"{binary} not found on PATH")
        self.binary = path

    def get(self, resource_type: ResourceType, namespace: str, name: str) -> dict:
        """kubectl get <type> <name> -o json -> live object."""
        cmd = [self.binary, "get", resource_type.kubectl_name, name, "-o", "json"]
        cmd += self._namespace_flags(resource_type, namespace)
        return self._run_json(cmd)

    def patch(
        self, resource_type: ResourceType, namespace: str, name: str, merge_document: dict
    ) -> dict:
        """kubectl patch --type merge -> patched object."""
        cmd = [
            self.binary, "patch", resource_type.kubectl_name, name,
            "--type", "merge",
            "-p", json.dumps(merge_document),
            "-o", "json",
        ]
        cmd += self._namespace_flags(resource_type, namespace)
        return self._run_json(cmd)

    def get_raw(self, path: str) -> dict:
        """kubectl get --raw <path> -> decoded JSON document."""
        return self._run_json([self.binary, "get", "--raw", path])

    @staticmethod
    def _namespace_flags(resource_type: ResourceType, namespace: str) -> list[str]:
        if resource_type.namespaced and namespace:
            return ["-n", namespace]
        return []

    def _run_json(self, cmd: list[str]) -> dict:
        cmd = cmd + self.options.flags()
        try:
            output = run(cmd, timeout=self.options.timeout)
        except RunTimeout:
            raise
        except RunError as e:
            raise KubectlError(e.cmd, e.returncode, e.stderr) from e
        return json.loads(output)
