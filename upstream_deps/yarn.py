"""Release lookups for Yarn."""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime

import semver

from upstream_deps.models import (
    AssetNotFoundError,
    Checksummer,
    DepVersion,
    GithubClient,
    GithubRelease,
    NoSourceCodeError,
    WebClient,
)

_ORG = "yarnpkg"
_REPO = "yarn"
_GPG_KEY_URL = "https://dl.yarnpkg.com/debian/pubkey.gpg"

# Releases before 0.7.0 have no source asset and their tags carry no "v".
_MINIMUM_VERSION = semver.Version(0, 7, 0)


def _parse_semver(version: str) -> semver.Version:
    try:
        return semver.Version.parse(version.removeprefix("v"), optional_minor_and_patch=True)
    except (ValueError, TypeError) as err:
        raise ValueError(f"failed to parse version: {err}") from err


class Yarn:
    """Looks up Yarn releases on GitHub."""

    def __init__(
        self, checksummer: Checksummer, github_client: GithubClient, web_client: WebClient
    ) -> None:
        self.checksummer = checksummer
        self.github_client = github_client
        self.web_client = web_client

    def get_all_version_refs(self) -> list[str]:
        """Return the final release versions from 0.7.0 on, without the "v" prefix."""
        versions = []
        for release in self.github_client.get_release_tags(_ORG, _REPO):
            name = release.tag_name.removeprefix("v")
            parsed = _parse_semver(name)
            if parsed < _MINIMUM_VERSION or parsed.prerelease:
                continue
            versions.append(name)
        return versions

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release, given without the "v" prefix."""
        tag_name = f"v{version}"
        for release in self.github_client.get_release_tags(_ORG, _REPO):
            if release.tag_name == tag_name:
                return self._create_dependency_version(version, tag_name, release)
        raise ValueError(f"could not find yarn version {version}")

    def get_release_date(self, version: str) -> datetime:
        """Return the date the release tagged ``version`` was published."""
        for release in self.github_client.get_release_tags(_ORG, _REPO):
            if release.tag_name == version:
                return release.published_date
        raise ValueError(f"could not find release date for version {version}")

    def _create_dependency_version(
        self, version: str, tag_name: str, release: GithubRelease
    ) -> DepVersion:
        gpg_key = self.web_client.get(_GPG_KEY_URL).decode("utf-8", errors="replace")
        asset_name = f"yarn-{tag_name}.tar.gz"

        with tempfile.TemporaryDirectory(prefix="yarn") as temp_dir:
            asset_path = os.path.join(temp_dir, asset_name)
            try:
                asset_url = self.github_client.download_release_asset(
                    _ORG, _REPO, tag_name, asset_name, asset_path
                )
            except AssetNotFoundError as err:
                if err == AssetNotFoundError(asset_name):
                    raise NoSourceCodeError(version) from err
                raise

            asset_content = self.web_client.get(asset_url)
            try:
                asset = json.loads(asset_content)
            except ValueError as err:
                raise ValueError(f"could not unmarshal asset url content: {err}") from err
            if not isinstance(asset, dict):
                raise ValueError("could not unmarshal asset url content: not a JSON object")
            download_url = asset.get("browser_download_url") or ""

            signature = self.github_client.get_release_asset(
                _ORG, _REPO, tag_name, f"{asset_name}.asc"
            ).decode("utf-8", errors="replace")
            self.checksummer.verify_asc(signature, asset_path, gpg_key)
            sha256 = self.checksummer.get_sha256(asset_path)

        return DepVersion(
            version=version,
            uri=download_url,
            sha256=sha256,
            release_date=release.published_date,
            deprecation_date=None,
            cpe=f"cpe:2.3:a:yarnpkg:yarn:{version}:*:*:*:*:*:*:*",
        )