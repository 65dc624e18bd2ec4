"""Release lookups for Ruby."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import yaml

from upstream_deps.models import Checksummer, DepVersion, NoSourceCodeError, WebClient

_RELEASES_URL = "https://www.ruby-lang.org/en/downloads/releases/"
_RELEASES_YAML_URL = (
    "https://raw.githubusercontent.com/ruby/www.ruby-lang.org/master/_data/releases.yml"
)
_MIRROR_INDEX_URL = "https://cache.ruby-lang.org/pub/ruby/index.txt"

_RELEASE_RE = re.compile(r">Ruby (\d+\.\d+\.\d+)</td>\n<td>(\d\d\d\d-\d\d-\d\d)<", re.ASCII)


@dataclass(frozen=True)
class RubyRelease:
    """A release listed on the Ruby releases page."""

    version: str
    date: str

    @property
    def release_date(self) -> datetime:
        """The release date, parsed as a UTC midnight."""
        try:
            return datetime.strptime(self.date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError as err:
            raise ValueError(f"could not parse release date: {err}") from err


def _yaml_text(value: Any) -> str:
    return "" if value is None else str(value)


def _yaml_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


class Ruby:
    """Looks up Ruby releases on ruby-lang.org."""

    def __init__(self, checksummer: Checksummer, web_client: WebClient) -> None:
        self.checksummer = checksummer
        self.web_client = web_client

    def get_all_version_refs(self) -> list[str]:
        """Return every release version in the order the releases page lists them."""
        return [release.version for release in self._get_all_releases()]

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release."""
        releases = self._get_all_releases()
        url, sha256 = self._get_url_and_sha(version)
        for release in releases:
            if release.version == version:
                return DepVersion(
                    version=version,
                    uri=url,
                    sha256=sha256,
                    release_date=release.release_date,
                    deprecation_date=None,
                    cpe=f"cpe:2.3:a:ruby-lang:ruby:{version}:*:*:*:*:*:*:*",
                )
        raise ValueError(f"could not find version {version}")

    def get_release_date(self, version: str) -> datetime:
        """Return the date a release was published."""
        for release in self._get_all_releases():
            if release.version == version:
                return release.release_date
        raise ValueError(f"could not find release date for version {version}")

    def _get_all_releases(self) -> list[RubyRelease]:
        body = self.web_client.get(_RELEASES_URL).decode("utf-8", errors="replace")
        return [RubyRelease(version=v, date=d) for v, d in _RELEASE_RE.findall(body)]

    def _get_url_and_sha(self, version: str) -> tuple[str, str]:
        try:
            return self._get_url_and_sha_from_yaml(version)
        except NoSourceCodeError as err:
            if err != NoSourceCodeError(version):
                raise
            return self._get_url_and_sha_from_mirror(version)

    def _get_url_and_sha_from_yaml(self, version: str) -> tuple[str, str]:
        body = self.web_client.get(_RELEASES_YAML_URL)
        try:
            releases = yaml.safe_load(body)
        except yaml.YAMLError as err:
            raise ValueError(f"could not unmarshal yaml releases file: {err}") from err
        if releases is None:
            releases = []
        if not isinstance(releases, list):
            raise ValueError("could not unmarshal yaml releases file: not a list")

        for entry in releases:
            release = _yaml_mapping(entry)
            if _yaml_text(release.get("version")) != version:
                continue
            url = _yaml_text(_yaml_mapping(release.get("url")).get("gz"))
            sha256 = _yaml_text(_yaml_mapping(release.get("sha256")).get("gz"))
            if url and sha256:
                return url, sha256
            break

        raise NoSourceCodeError(version)

    def _get_url_and_sha_from_mirror(self, version: str) -> tuple[str, str]:
        body = self.web_client.get(_MIRROR_INDEX_URL).decode("utf-8", errors="replace")
        accepted = {version, f"{version}-0", f"{version}-p0"}
        for line in body.split("\n"):
            if not line.startswith("ruby"):
                continue
            fields = line.split()
            if len(fields) < 4:
                continue
            if fields[0].removeprefix("ruby-") in accepted and fields[1].endswith("tar.gz"):
                return fields[1], fields[3]
        raise ValueError(f"could not find URL and SHA256 for version {version}")