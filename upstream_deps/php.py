"""Release lookups for PHP."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from upstream_deps.models import Checksummer, DepVersion, WebClient

_INDEX_URL = "https://www.php.net/releases/index.php?json"

_DATE_FORMATS = ("%d %b %Y", "%d %B %Y")

_VERSIONS_MISSING_CHECKSUM = frozenset(
    {
        "5.1.6", "5.1.5", "5.1.4", "5.1.3", "5.1.2", "5.1.1", "5.1.0",
        "5.0.5", "5.0.4", "5.0.3", "5.0.2", "5.0.1", "5.0.0",
        "4.4.5", "4.4.4", "4.4.3", "4.4.2", "4.4.1", "4.4.0",
        "4.3.11", "4.3.10", "4.3.9", "4.3.8", "4.3.7", "4.3.6",
        "4.3.5", "4.3.4", "4.3.3", "4.3.2", "4.3.1", "4.3.0",
        "4.2.3", "4.2.2", "4.2.1", "4.2.0",
        "4.1.2", "4.1.1", "4.1.0",
        "4.0.6", "4.0.5", "4.0.4", "4.0.3", "4.0.2", "4.0.1", "4.0.0",
    }
)

_VERSIONS_WITH_WRONG_CHECKSUM = frozenset({"5.3.25", "5.3.11", "5.2.14"})


@dataclass(frozen=True)
class PhpSource:
    """One downloadable file of a PHP release."""

    filename: str = ""
    sha256: str = ""
    md5: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> PhpSource:
        return cls(
            filename=data.get("filename") or "",
            sha256=data.get("sha256") or "",
            md5=data.get("md5") or "",
        )


@dataclass(frozen=True)
class PhpRawRelease:
    """A release entry as published in the php.net releases feed."""

    date: str = ""
    source: tuple[PhpSource, ...] = ()
    museum: bool = False

    @classmethod
    def from_json(cls, data: Any) -> PhpRawRelease:
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a release object, got {data!r}")
        return cls(
            date=data.get("date") or "",
            source=tuple(PhpSource.from_json(item) for item in data.get("source") or ()),
            museum=bool(data.get("museum", False)),
        )


@dataclass(frozen=True)
class PhpRelease:
    """A PHP release with its parsed date."""

    version: str
    date: datetime
    source: tuple[PhpSource, ...] = field(default=())


def _load_object(body: bytes, what: str) -> dict[str, Any]:
    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except ValueError as err:
        raise ValueError(f"could not unmarshal {what}: {err}\n{text}") from err
    if not isinstance(data, dict):
        raise ValueError(f"could not unmarshal {what}: not a JSON object\n{text}")
    return data


def _parse_date(date: str) -> datetime:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(date, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"release date '{date}' did not match any expected patterns")


def _deprecation_date(release_date: datetime) -> datetime:
    year = release_date.year + 3
    try:
        return datetime(year, release_date.month, release_date.day, tzinfo=timezone.utc)
    except ValueError:
        # 29 February rolls over to 1 March in a non-leap year.
        return datetime(year, 3, 1, tzinfo=timezone.utc)


class Php:
    """Looks up PHP releases on php.net."""

    def __init__(self, checksummer: Checksummer, web_client: WebClient) -> None:
        self.checksummer = checksummer
        self.web_client = web_client

    def get_all_version_refs(self) -> list[str]:
        """Return every release version, newest first."""
        releases = sorted(
            self._get_php_releases(),
            key=lambda release: (release.date, release.version),
            reverse=True,
        )
        return [release.version for release in releases]

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release."""
        release = self._get_release(version)
        url = self._dependency_url(release, version)
        sha256 = self._get_dependency_sha(release, version)
        release_date = _parse_date(release.date)
        return DepVersion(
            version=version,
            uri=url,
            sha256=sha256,
            release_date=release_date,
            deprecation_date=_deprecation_date(release_date),
            cpe=f"cpe:2.3:a:php:php:{version}:*:*:*:*:*:*:*",
        )

    def get_release_date(self, version: str) -> datetime:
        """Return the date a release was published."""
        return _parse_date(self._get_release(version).date)

    def _get_php_releases(self) -> list[PhpRelease]:
        lines = _load_object(self.web_client.get(_INDEX_URL), "version lines response")
        releases = []
        for line in sorted(key for key in lines if key != "3"):
            body = self.web_client.get(f"{_INDEX_URL}&version={line}&max=1000")
            raw_releases = _load_object(body, "version lines response")
            for version, raw in raw_releases.items():
                release = PhpRawRelease.from_json(raw)
                releases.append(
                    PhpRelease(
                        version=version,
                        date=_parse_date(release.date),
                        source=release.source,
                    )
                )
        return releases

    def _get_release(self, version: str) -> PhpRawRelease:
        body = self.web_client.get(f"{_INDEX_URL}&version={version}")
        return PhpRawRelease.from_json(_load_object(body, "version response"))

    def _get_dependency_sha(self, release: PhpRawRelease, version: str) -> str:
        for file in release.source:
            if os.path.splitext(file.filename)[1] != ".gz":
                continue
            if file.sha256:
                return file.sha256
            if file.md5 or version in _VERSIONS_MISSING_CHECKSUM:
                return self._sha256_from_release_file(release, file, version)
            raise ValueError(f"could not find SHA256 or MD5 for {version}")
        raise ValueError(f"could not find .tar.gz file for {version}")

    def _sha256_from_release_file(
        self, release: PhpRawRelease, file: PhpSource, version: str
    ) -> str:
        with tempfile.TemporaryDirectory(prefix="php") as temp_dir:
            output_path = os.path.join(temp_dir, file.filename)
            self.web_client.download(self._dependency_url(release, version), output_path)
            if version not in _VERSIONS_WITH_WRONG_CHECKSUM and file.md5:
                self.checksummer.verify_md5(output_path, file.md5)
            return self.checksummer.get_sha256(output_path)

    @staticmethod
    def _dependency_url(release: PhpRawRelease, version: str) -> str:
        if release.museum:
            return f"https://museum.php.net/php{version[:1]}/php-{version}.tar.gz"
        return f"https://www.php.net/distributions/php-{version}.tar.gz"