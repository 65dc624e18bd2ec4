from datetime import datetime, timezone

import pytest

from upstream_deps.models import AssetNotFoundError, DepVersion, GithubRelease, NoSourceCodeError
from upstream_deps.yarn import Yarn

ASSET_CONTENT = '{"browser_download_url":"some-source-url", "key":"some_value"}'


def utc(year, month, day):
    return datetime(year, month, day, tzinfo=timezone.utc)


class FakeWebClient:
    def __init__(self, *responses: str) -> None:
        self.responses = [r.encode() for r in responses]
        self.urls: list[str] = []

    def get(self, url):
        self.urls.append(url)
        return self.responses[len(self.urls) - 1]

    def download(self, url, output_path):
        raise AssertionError("download should not be called")


class FakeGithubClient:
    def __init__(self, releases, asset_url="some-asset-url", download_error=None):
        self.releases = releases
        self.asset_url = asset_url
        self.download_error = download_error
        self.release_tag_calls = []
        self.download_calls = []
        self.asset_calls = []

    def get_release_tags(self, org, repo):
        self.release_tag_calls.append((org, repo))
        return list(self.releases)

    def download_release_asset(self, org, repo, version, filename, output_path):
        self.download_calls.append((org, repo, version, filename, output_path))
        if self.download_error is not None:
            raise self.download_error
        return self.asset_url

    def get_release_asset(self, org, repo, version, filename):
        self.asset_calls.append((org, repo, version, filename))
        return b"some-signature"


class FakeChecksummer:
    def __init__(self):
        self.asc_calls = []

    def verify_asc(self, signature, path, *args):
        self.asc_calls.append((signature, path, args))

    def get_sha256(self, path):
        return "some-source-sha"


TWO_RELEASES = [
    GithubRelease("v2.0.0", utc(2020, 6, 28)),
    GithubRelease("v1.0.0", utc(2020, 6, 27)),
]


def test_get_all_version_refs_skips_prereleases():
    client = FakeGithubClient(
        [
            GithubRelease("v3.0.0", utc(2020, 6, 30)),
            GithubRelease("v1.0.1", utc(2020, 6, 29)),
            GithubRelease("v2.0.0", utc(2020, 6, 28)),
            GithubRelease("v2.0.0-exp.1", utc(2020, 6, 28)),
            GithubRelease("v1.0.0", utc(2020, 6, 27)),
        ]
    )
    yarn = Yarn(FakeChecksummer(), client, FakeWebClient())

    assert yarn.get_all_version_refs() == ["3.0.0", "1.0.1", "2.0.0", "1.0.0"]
    assert client.release_tag_calls == [("yarnpkg", "yarn")]


def test_get_all_version_refs_skips_versions_before_0_7_0():
    client = FakeGithubClient(
        [
            GithubRelease("v0.7.0", utc(2016, 6, 1)),
            GithubRelease("0.6.3", utc(2016, 5, 1)),
        ]
    )
    yarn = Yarn(FakeChecksummer(), client, FakeWebClient())
    assert yarn.get_all_version_refs() == ["0.7.0"]


def test_get_all_version_refs_rejects_bad_tag():
    client = FakeGithubClient([GithubRelease("not-a-version", utc(2020, 1, 1))])
    yarn = Yarn(FakeChecksummer(), client, FakeWebClient())
    with pytest.raises(ValueError, match="failed to parse version"):
        yarn.get_all_version_refs()


def test_get_dependency_version():
    client = FakeGithubClient(TWO_RELEASES)
    web = FakeWebClient("some-gpg-key", ASSET_CONTENT)
    checksummer = FakeChecksummer()
    yarn = Yarn(checksummer, client, web)

    dep = yarn.get_dependency_version("1.0.0")

    assert dep == DepVersion(
        version="1.0.0",
        uri="some-source-url",
        sha256="some-source-sha",
        release_date=utc(2020, 6, 27),
        deprecation_date=None,
        cpe="cpe:2.3:a:yarnpkg:yarn:1.0.0:*:*:*:*:*:*:*",
    )
    assert web.urls == ["https://dl.yarnpkg.com/debian/pubkey.gpg", "some-asset-url"]
    assert client.asset_calls == [("yarnpkg", "yarn", "v1.0.0", "yarn-v1.0.0.tar.gz.asc")]

    org, repo, version, filename, path = client.download_calls[0]
    assert (org, repo, version, filename) == ("yarnpkg", "yarn", "v1.0.0", "yarn-v1.0.0.tar.gz")

    signature, asc_path, keys = checksummer.asc_calls[0]
    assert signature == "some-signature"
    assert asc_path == path
    assert keys == ("some-gpg-key",)


def test_missing_asset_raises_no_source_code_error():
    client = FakeGithubClient(
        [GithubRelease("v1.0.0", utc(2020, 6, 27))],
        asset_url="",
        download_error=AssetNotFoundError("yarn-v1.0.0.tar.gz"),
    )
    yarn = Yarn(FakeChecksummer(), client, FakeWebClient("some-gpg-key", ASSET_CONTENT))

    with pytest.raises(NoSourceCodeError) as info:
        yarn.get_dependency_version("1.0.0")
    assert info.value == NoSourceCodeError("1.0.0")


def test_other_missing_asset_is_not_translated():
    client = FakeGithubClient(
        [GithubRelease("v1.0.0", utc(2020, 6, 27))],
        download_error=AssetNotFoundError("something-else.tar.gz"),
    )
    yarn = Yarn(FakeChecksummer(), client, FakeWebClient("some-gpg-key", ASSET_CONTENT))

    with pytest.raises(AssetNotFoundError) as info:
        yarn.get_dependency_version("1.0.0")
    assert info.value.asset_name == "something-else.tar.gz"


def test_get_dependency_version_unknown():
    yarn = Yarn(FakeChecksummer(), FakeGithubClient(TWO_RELEASES), FakeWebClient())
    with pytest.raises(ValueError, match="could not find yarn version 9.0.0"):
        yarn.get_dependency_version("9.0.0")


def test_get_release_date():
    yarn = Yarn(FakeChecksummer(), FakeGithubClient(TWO_RELEASES), FakeWebClient())
    release_date = yarn.get_release_date("v1.0.0")
    assert release_date.isoformat() == "2020-06-27T00:00:00+00:00"


def test_get_release_date_unknown():
    yarn = Yarn(FakeChecksummer(), FakeGithubClient(TWO_RELEASES), FakeWebClient())
    with pytest.raises(ValueError, match="could not find release date for version 1.0.0"):
        yarn.get_release_date("1.0.0")