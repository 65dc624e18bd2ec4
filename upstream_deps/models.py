"""Shared value types, errors and client interfaces for dependency lookups."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable


@dataclass
class DepVersion:
    """A single released version of an upstream dependency."""

    version: str
    uri: str = ""
    sha256: str = ""
    release_date: datetime | None = None
    deprecation_date: datetime | None = None
    cpe: str = ""


@dataclass(frozen=True)
class GithubRelease:
    """A published release of a GitHub repository."""

    tag_name: str
    published_date: datetime


class NoSourceCodeError(Exception):
    """Raised when a version has no downloadable source code."""

    def __init__(self, version: str) -> None:
        super().__init__(f"no source code available for version {version}")
        self.version = version

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NoSourceCodeError):
            return NotImplemented
        return self.version == other.version

    def __hash__(self) -> int:
        return hash((NoSourceCodeError, self.version))


class AssetNotFoundError(Exception):
    """Raised when a named release asset does not exist."""

    def __init__(self, asset_name: str) -> None:
        super().__init__(f"could not find asset {asset_name}")
        self.asset_name = asset_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssetNotFoundError):
            return NotImplemented
        return self.asset_name == other.asset_name

    def __hash__(self) -> int:
        return hash((AssetNotFoundError, self.asset_name))


@runtime_checkable
class Checksummer(Protocol):
    """Verifies and computes checksums of downloaded files."""

    def verify_md5(self, path: str, md5: str) -> None:
        """Raise if the file at ``path`` does not have the given MD5."""
        ...

    def verify_asc(self, signature: str, path: str, *args: str) -> None:
        """Raise if ``signature`` does not verify ``path`` against any of the public keys."""
        ...

    def get_sha256(self, path: str) -> str:
        """Return the hex SHA256 of the file at ``path``."""
        ...


@runtime_checkable
class WebClient(Protocol):
    """Fetches documents and files over HTTP."""

    def get(self, url: str) -> bytes:
        """Return the body found at ``url``."""
        ...

    def download(self, url: str, output_path: str) -> None:
        """Save the body found at ``url`` to ``output_path``."""
        ...


@runtime_checkable
class GithubClient(Protocol):
    """Queries repositories hosted on GitHub."""

    def get_tags(self, org: str, repo: str) -> list[str]:
        """Return the tag names of a repository."""
        ...

    def get_release_tags(self, org: str, repo: str) -> list[GithubRelease]:
        """Return the published releases of a repository."""
        ...

    def get_release_date(self, org: str, repo: str, tag: str) -> datetime:
        """Return the date a tag was released."""
        ...

    def download_source_tarball(
        self, org: str, repo: str, version: str, output_path: str
    ) -> str:
        """Save the source tarball of ``version`` and return its URL."""
        ...

    def download_release_asset(
        self, org: str, repo: str, version: str, filename: str, output_path: str
    ) -> str:
        """Save a release asset and return its URL."""
        ...

    def get_release_asset(
        self, org: str, repo: str, version: str, filename: str
    ) -> bytes:
        """Return the contents of a release asset."""
        ...