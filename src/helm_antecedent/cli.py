"""Click CLI entry point for helm-antecedent."""

from __future__ import annotations

import functools
import sys
from typing import Callable

import click

from helm_antecedent.analysis.claim import claim_ownership
from helm_antecedent.analysis.ownership import verify_ownership
from helm_antecedent.config import DEFAULT_NAMESPACE, DEFAULT_TIMEOUT
from helm_antecedent.core.helm import get_manifest
from helm_antecedent.core.kubectl import KubeOptions
from helm_antecedent.core.runner import RunError
from helm_antecedent.errors import OwnershipError
from helm_antecedent.logging_config import configure_logging
from helm_antecedent.parser.manifest import ReleaseManifest
from helm_antecedent.release import ReleaseIdentifier

EXIT_ERROR = 1
EXIT_OWNED_ELSEWHERE = 2
EXIT_PARTIAL_CLAIM = 3


@click.group()
@click.version_option(package_name="helm-antecedent")
def main() -> None:
    """helm-antecedent: Verify and claim ownership of Helm release resources."""


def _release_options(func: Callable) -> Callable:
    """Options shared by verify and claim."""
    options = [
        click.argument("identifier"),
        click.option("-r", "--release", default=None, help="Read the manifest of this installed release"),
        click.option(
            "-f", "--file", "manifest_file",
            type=click.File("r"), default=None,
            help="Read the manifest from a file ('-' for stdin)",
        ),
        click.option("-n", "--namespace", default=DEFAULT_NAMESPACE, help="Release namespace"),
        click.option("--kubeconfig", default=None, help="Path to kubeconfig"),
        click.option("--kube-context", default=None, help="Kubernetes context to use"),
        click.option("--timeout", default=DEFAULT_TIMEOUT, type=float, help="Per-command timeout in seconds"),
        click.option("--log-level", default="WARNING", help="Log level"),
        click.option("--json-logs", is_flag=True, help="Emit logs as JSON"),
    ]
    for option in reversed(options):
        func = option(func)

    @functools.wraps(func)
    def wrapper(**kwargs):
        configure_logging(kwargs.pop("log_level"), kwargs.pop("json_logs"))
        try:
            ReleaseIdentifier.parse(kwargs["identifier"])
        except ValueError:
            # Any string is a valid annotation value; only warn on odd shapes
            click.echo(
                f"Warning: '{kwargs['identifier']}' is not of the form <namespace>:<kind>/<name>",
                err=True,
            )
        return func(**kwargs)

    return wrapper


def _load_manifest(
    release: str | None,
    manifest_file,
    namespace: str,
    options: KubeOptions,
) -> ReleaseManifest:
    if (release is None) == (manifest_file is None):
        raise click.UsageError("Exactly one of --release or --file is required")
    if release is not None:
        text = get_manifest(release, namespace, options)
    else:
        text = manifest_file.read()
    return ReleaseManifest(text=text, namespace=namespace)


@main.command()
@_release_options
def verify(
    identifier: str,
    release: str | None,
    manifest_file,
    namespace: str,
    kubeconfig: str | None,
    kube_context: str | None,
    timeout: float,
) -> None:
    """Check whether a release's resources are owned by IDENTIFIER."""
    options = KubeOptions(kubeconfig=kubeconfig, kube_context=kube_context, timeout=timeout)
    try:
        manifest = _load_manifest(release, manifest_file, namespace, options)
        check = verify_ownership(manifest, identifier, options=options)
    except (RunError, OwnershipError) as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Ownership could not be determined; refusing to adopt.", err=True)
        sys.exit(EXIT_ERROR)

    if check.unclaimed:
        click.echo("unclaimed")
    elif check.owned:
        click.echo(f"owned by {check.value}")
    else:
        click.echo(f"claimed by {check.value}")
        sys.exit(EXIT_OWNED_ELSEWHERE)


@main.command()
@_release_options
@click.option("--strict", is_flag=True, help="Exit non-zero when any resource was not annotated")
def claim(
    identifier: str,
    release: str | None,
    manifest_file,
    namespace: str,
    kubeconfig: str | None,
    kube_context: str | None,
    timeout: float,
    strict: bool,
) -> None:
    """Annotate every resource of a release with IDENTIFIER."""
    options = KubeOptions(kubeconfig=kubeconfig, kube_context=kube_context, timeout=timeout)
    try:
        manifest = _load_manifest(release, manifest_file, namespace, options)
        result = claim_ownership(manifest, identifier, options=options)
    except (RunError, OwnershipError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_ERROR)

    for outcome in result.outcomes:
        d = outcome.descriptor
        status = "annotated" if outcome.ok else f"failed: {outcome.error}"
        click.echo(f"{d.kind}/{d.name} ({d.namespace}): {status}")
    click.echo(f"{len(result.succeeded)} annotated, {len(result.failed)} failed")

    if strict and not result.ok:
        sys.exit(EXIT_PARTIAL_CLAIM)
