"""Release lookups for the Rust compiler."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime

import semver

from upstream_deps.models import Checksummer, DepVersion, GithubClient, WebClient

_GPG_KEY_URL = "https://static.rust-lang.org/rust-key.gpg.ascii"


def _parse_semver(version: str) -> semver.Version:
    try:
        return semver.Version.parse(version.removeprefix("v"), optional_minor_and_patch=True)
    except (ValueError, TypeError) as err:
        raise ValueError(f"failed to parse version {version}: {err}") from err


def _dependency_url(version: str) -> str:
    return f"https://static.rust-lang.org/dist/rustc-{version}-src.tar.gz"


def _signature_url(version: str) -> str:
    return f"{_dependency_url(version)}.asc"


class Rust:
    """Looks up Rust compiler source releases."""

    def __init__(
        self, checksummer: Checksummer, github_client: GithubClient, web_client: WebClient
    ) -> None:
        self.checksummer = checksummer
        self.github_client = github_client
        self.web_client = web_client

    def get_all_version_refs(self) -> list[str]:
        """Return the final release tags with a major version above zero."""
        versions = []
        for tag in self.github_client.get_tags("rust-lang", "rust"):
            if tag.startswith("release-"):
                continue
            parsed = _parse_semver(tag)
            if parsed.prerelease or parsed.major == 0:
                continue
            versions.append(tag)
        return versions

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release."""
        release_date = self.get_release_date(version)
        url = _dependency_url(version)
        return DepVersion(
            version=version,
            uri=url,
            sha256=self._get_dependency_sha(url, version),
            release_date=release_date,
            deprecation_date=None,
            cpe=f"cpe:2.3:a:rust-lang:rust:{version}:*:*:*:*:*:*:*",
        )

    def get_release_date(self, version: str) -> datetime:
        """Return the date a release was tagged."""
        return self.github_client.get_release_date("rust-lang", "rust", version)

    def _get_dependency_sha(self, url: str, version: str) -> str:
        gpg_key = self.web_client.get(_GPG_KEY_URL).decode("utf-8", errors="replace")
        signature = self.web_client.get(_signature_url(version)).decode("utf-8", errors="replace")
        with tempfile.TemporaryDirectory(prefix="rust") as temp_dir:
            path = os.path.join(temp_dir, url.rsplit("/", 1)[-1])
            self.web_client.download(url, path)
            self.checksummer.verify_asc(signature, path, gpg_key)
            return self.checksummer.get_sha256(path)