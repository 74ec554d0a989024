from __future__ import annotations

import pytest

from helm_antecedent.release import ReleaseIdentifier


def test_string_form():
    assert str(ReleaseIdentifier("flux", "HelmRelease", "podinfo")) == "flux:helmrelease/podinfo"
    assert str(ReleaseIdentifier("", "ClusterThing", "x")) == "<cluster>:clusterthing/x"


def test_parse():
    rid = ReleaseIdentifier.parse("flux:HelmRelease/podinfo")
    assert rid == ReleaseIdentifier("flux", "helmrelease", "podinfo")
    assert ReleaseIdentifier.parse("<cluster>:clusterthing/x").namespace == ""


@pytest.mark.parametrize("value", [
    "",
    "podinfo",
    "flux/podinfo",
    "flux:helmrelease",
    ":helmrelease/podinfo",
    "flux:/podinfo",
    "flux:helmrelease/",
    "flux:helmrelease/a/b",
])
def test_parse_rejects_malformed(value):
    with pytest.raises(ValueError):
        ReleaseIdentifier.parse(value)
