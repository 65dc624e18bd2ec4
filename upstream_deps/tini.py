"""Release lookups for tini."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime

from upstream_deps.models import Checksummer, DepVersion, GithubClient, GithubRelease

_ORG = "krallin"
_REPO = "tini"


class Tini:
    """Looks up tini releases on GitHub."""

    def __init__(self, checksummer: Checksummer, github_client: GithubClient) -> None:
        self.checksummer = checksummer
        self.github_client = github_client

    def get_all_version_refs(self) -> list[str]:
        """Return the tag of every release, in the order GitHub lists them."""
        return [release.tag_name for release in self.github_client.get_release_tags(_ORG, _REPO)]

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release."""
        return self._create_dependency_version(version, self._find_release(version))

    def get_release_date(self, version: str) -> datetime:
        """Return the date a release was published."""
        for release in self.github_client.get_release_tags(_ORG, _REPO):
            if release.tag_name == version:
                return release.published_date
        raise ValueError(f"could not find release date for version {version}")

    def _find_release(self, version: str) -> GithubRelease:
        for release in self.github_client.get_release_tags(_ORG, _REPO):
            if release.tag_name == version:
                return release
        raise ValueError(f"could not find tini version {version}")

    def _create_dependency_version(self, version: str, release: GithubRelease) -> DepVersion:
        with tempfile.TemporaryDirectory(prefix="tini") as temp_dir:
            tarball_path = os.path.join(temp_dir, f"tini-{version}.tar.gz")
            tarball_url = self.github_client.download_source_tarball(
                _ORG, _REPO, version, tarball_path
            )
            sha256 = self.checksummer.get_sha256(tarball_path)

        return DepVersion(
            version=version,
            uri=tarball_url,
            sha256=sha256,
            release_date=release.published_date,
            deprecation_date=None,
            cpe=f"cpe:2.3:a:tini_project:tini:{version.removeprefix('v')}:*:*:*:*:*:*:*",
        )