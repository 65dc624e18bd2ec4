"""Release lookups for packages published on PyPI."""

from __future__ import annotations

import functools
import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any

import semver

from upstream_deps.models import Checksummer, DepVersion, WebClient

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})\Z",
    re.ASCII,
)


def _parse_rfc3339(value: str) -> datetime:
    match = _RFC3339.match(value)
    if match is None:
        raise ValueError(f"'{value}' is not an RFC 3339 timestamp")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), microsecond, tzinfo=tz
    )


def _parse_semver(version: str) -> semver.Version:
    try:
        return semver.Version.parse(version.removeprefix("v"), optional_minor_and_patch=True)
    except (ValueError, TypeError) as err:
        raise ValueError(f"could not parse '{version}' as semver") from err


def _newest_first(left: DepVersion, right: DepVersion) -> int:
    if left.release_date != right.release_date:
        return -1 if left.release_date > right.release_date else 1
    left_version = _parse_semver(left.version)
    right_version = _parse_semver(right.version)
    if left_version > right_version:
        return -1
    if left_version < right_version:
        return 1
    return 0


class PyPi:
    """Looks up source releases of a project on PyPI."""

    def __init__(self, product_name: str, checksummer: Checksummer, web_client: WebClient) -> None:
        self.product_name = product_name
        self.checksummer = checksummer
        self.web_client = web_client

    def get_all_version_refs(self) -> list[str]:
        """Return every final source release version, newest first."""
        releases = self._get_releases()
        releases.sort(key=functools.cmp_to_key(_newest_first))
        return [release.version for release in releases]

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release."""
        for release in self._get_releases():
            if release.version == version:
                return release
        raise ValueError(f"could not find release with version {version}")

    def get_release_date(self, version: str) -> datetime | None:
        """Return the upload time of a release."""
        for release in self._get_releases():
            if release.version == version:
                return release.release_date
        raise ValueError(f"could not find release date for version {version}")

    def _get_releases(self) -> list[DepVersion]:
        body = self.web_client.get(f"https://pypi.org/pypi/{self.product_name}/json")
        try:
            metadata: Any = json.loads(body)
        except ValueError as err:
            raise ValueError(f"could not unmarshal project metadata: {err}") from err
        if not isinstance(metadata, dict):
            raise ValueError("could not unmarshal project metadata: not a JSON object")

        releases = []
        for version, files in (metadata.get("releases") or {}).items():
            for file in files or ():
                if "b" in version or "dev" in version:
                    continue
                if file.get("packagetype") != "sdist":
                    continue

                upload_time = file.get("upload_time_iso_8601") or ""
                try:
                    uploaded = _parse_rfc3339(upload_time)
                except ValueError as err:
                    raise ValueError(
                        f"could not parse upload time '{upload_time}' as date for version {version}: {err}"
                    ) from err

                sha256 = (file.get("digests") or {}).get("sha256") or ""
                if not sha256:
                    raise ValueError(f"could not find sha256 for version {version}")

                cpe = ""
                if self.product_name == "pip":
                    cpe = f"cpe:2.3:a:pypa:pip:{version}:*:*:*:*:python:*:*"

                releases.append(
                    DepVersion(
                        version=version,
                        uri=file.get("url") or "",
                        sha256=sha256,
                        release_date=uploaded,
                        cpe=cpe,
                    )
                )
        return releases