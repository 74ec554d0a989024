"""Annotation key, retry schedule, and other settings."""

from __future__ import annotations

# Annotation recording the release identifier that owns a resource. Used
# instead of ownerReferences because those cannot cross namespaces.
ANTECEDENT_ANNOTATION = "helm.fluxcd.io/antecedent"

DEFAULT_NAMESPACE = "default"

# Default subprocess timeout in seconds
DEFAULT_TIMEOUT = 60

# Default fetch retry schedule: 10ms, 50ms, 250ms between 4 attempts
RETRY_INITIAL_INTERVAL = 0.01
RETRY_FACTOR = 5.0
RETRY_JITTER = 0.1
RETRY_STEPS = 4

# Server status reasons (from "Error from server (<Reason>)") that are retried
TRANSIENT_REASONS: set[str] = {
    "InternalError",
    "Timeout",
    "ServerTimeout",
    "TooManyRequests",
}

# Lower-cased stderr fragments that mark a retryable failure
TRANSIENT_MESSAGES: tuple[str, ...] = (
    "connection reset by peer",
    "i/o timeout",
    "retry after",
    "retry-after",
    "please try again later",
)
