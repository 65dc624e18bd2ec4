from dataclasses import replace
from datetime import datetime, timezone

import pytest

from upstream_deps.models import (
    AssetNotFoundError,
    DepVersion,
    GithubRelease,
    NoSourceCodeError,
)


def test_dep_version_defaults_are_empty():
    dep = DepVersion(version="1.0.0")
    assert (dep.uri, dep.sha256, dep.cpe) == ("", "", "")
    assert dep.release_date is None
    assert dep.deprecation_date is None


def test_dep_version_equality_follows_fields():
    date = datetime(2020, 6, 27, tzinfo=timezone.utc)
    first = DepVersion(version="1.0.0", uri="some-url", sha256="some-sha", release_date=date)
    second = DepVersion(version="1.0.0", uri="some-url", sha256="some-sha", release_date=date)
    assert first == second
    assert replace(first, sha256="other-sha") != first


def test_github_release_is_immutable():
    release = GithubRelease(
        tag_name="v1.0.0", published_date=datetime(2020, 6, 27, tzinfo=timezone.utc)
    )
    with pytest.raises(AttributeError):
        release.tag_name = "v2.0.0"
    assert release.tag_name == "v1.0.0"


def test_no_source_code_error_compares_by_version():
    assert NoSourceCodeError("1.0.0") == NoSourceCodeError("1.0.0")
    assert not NoSourceCodeError("1.0.0") == NoSourceCodeError("2.0.0")
    assert hash(NoSourceCodeError("1.0.0")) == hash(NoSourceCodeError("1.0.0"))


def test_no_source_code_error_carries_version():
    err = NoSourceCodeError("1.9.0")
    assert err.version == "1.9.0"
    assert "1.9.0" in str(err)
    assert isinstance(err, Exception)


def test_asset_not_found_error_compares_by_name():
    err = AssetNotFoundError("yarn-v1.0.0.tar.gz")
    assert err == AssetNotFoundError("yarn-v1.0.0.tar.gz")
    assert not err == AssetNotFoundError("yarn-v2.0.0.tar.gz")
    assert err.asset_name == "yarn-v1.0.0.tar.gz"
    assert "yarn-v1.0.0.tar.gz" in str(err)