"""Release lookups for CPython source releases."""

from __future__ import annotations

import os
import re
import tempfile
from datetime import datetime, timezone

from upstream_deps.models import Checksummer, DepVersion, WebClient

_DOWNLOADS_URL = "https://www.python.org/downloads/"

_VERSION_RE = re.compile(r"release-number.*Python ([\d]+\.[\d]+\.[\d]+)", re.ASCII)
_RELEASE_DATE_RE = re.compile(r"Release Date:</strong> ([\w]{3})[\w\.]* ([\d]+), ([\d]+)", re.ASCII)
_SOURCE_URI_RE = re.compile(r'<a href="(.*)">Gzipped source tar ?ball')
_MD5_FROM_FILES_RE = re.compile(r"<td>([0-9a-f]{32})</td>")
_MD5_FROM_PRE_RE = re.compile(r"([0-9a-f]{32}).*[\d]+.*\.tgz", re.ASCII)
_MD5_FROM_BLOCKQUOTE_RE = re.compile(r"<tt .*>([0-9a-f]{32})</tt>.*\.tgz")
_FULL_END_DATE_RE = re.compile(r'release-end">([\d]{4}-[\d]{2}-[\d]{2})', re.ASCII)
_MONTH_END_DATE_RE = re.compile(r'release-end">([\d]{4}-[\d]{2})', re.ASCII)

_MONTHS = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}

_VERSIONS_WITH_WRONG_CHECKSUM = frozenset({"3.1.0"})


def _release_date(month: str, day: str, year: str) -> datetime:
    number = _MONTHS.get(month.lower())
    if number is None or len(day) > 2 or len(year) != 4:
        raise ValueError(f"could not parse release date: '{month} {day}, {year}'")
    try:
        return datetime(int(year), number, int(day), tzinfo=timezone.utc)
    except ValueError as err:
        raise ValueError(f"could not parse release date: {err}") from err


def _url_basename(url: str) -> str:
    return url.rstrip("/").rsplit("/", 1)[-1]


class Python:
    """Looks up CPython releases on python.org."""

    def __init__(self, checksummer: Checksummer, web_client: WebClient) -> None:
        self.checksummer = checksummer
        self.web_client = web_client

    def get_all_version_refs(self) -> list[str]:
        """Return every release version listed on the downloads page, in page order."""
        body = self.web_client.get(_DOWNLOADS_URL).decode("utf-8", errors="replace")
        return [match[1] for match in map(_VERSION_RE.search, body.split("\n")) if match]

    def get_dependency_version(self, version: str) -> DepVersion:
        """Return the details of one release."""
        source_uri, release_date, md5s = self._get_release_metadata(version)
        sha256 = self._get_dependency_sha256(source_uri, md5s, version)
        deprecation_date = self._get_deprecation_date(version)
        return DepVersion(
            version=version,
            uri=source_uri,
            sha256=sha256,
            release_date=release_date,
            deprecation_date=deprecation_date,
            cpe=f"cpe:2.3:a:python:python:{version}:*:*:*:*:*:*:*",
        )

    def get_release_date(self, version: str) -> datetime:
        """Return the date a release was published."""
        _, release_date, _ = self._get_release_metadata(version)
        return release_date

    def _get_release_metadata(self, version: str) -> tuple[str, datetime, list[str]]:
        url = f"https://www.python.org/downloads/release/python-{version.replace('.', '')}/"
        lines = self.web_client.get(url).decode("utf-8", errors="replace").split("\n")

        date_parts: tuple[str, str, str] | None = None
        source_uri = ""
        md5s: list[str] = []

        for i, line in enumerate(lines):
            if match := _RELEASE_DATE_RE.search(line):
                date_parts = (match[1], match[2], match[3])
                continue

            if match := _SOURCE_URI_RE.search(line):
                source_uri = match[1]
                if i + 3 < len(lines) and (md5 := _MD5_FROM_FILES_RE.search(lines[i + 3])):
                    md5s.append(md5[1])
                continue

            if match := _MD5_FROM_PRE_RE.search(line):
                md5s.append(match[1])
                continue

            if match := _MD5_FROM_BLOCKQUOTE_RE.search(line):
                md5s.append(match[1])

        if not source_uri:
            raise ValueError("could not find source URI on download page")
        if not md5s:
            raise ValueError("could not find MD5 on download page")
        if date_parts is None:
            raise ValueError("could not find release date on download page")

        return source_uri, _release_date(*date_parts), md5s

    def _get_dependency_sha256(self, source_uri: str, md5s: list[str], version: str) -> str:
        with tempfile.TemporaryDirectory(prefix="python") as temp_dir:
            path = os.path.join(temp_dir, _url_basename(source_uri))
            self.web_client.download(source_uri, path)

            if version not in _VERSIONS_WITH_WRONG_CHECKSUM and not any(
                self._md5_matches(path, md5) for md5 in md5s
            ):
                raise ValueError(f"md5 did not match any of [{','.join(md5s)}]")

            return self.checksummer.get_sha256(path)

    def _md5_matches(self, path: str, md5: str) -> bool:
        try:
            self.checksummer.verify_md5(path, md5)
        except Exception:
            return False
        return True

    def _get_deprecation_date(self, version: str) -> datetime | None:
        lines = self.web_client.get(_DOWNLOADS_URL).decode("utf-8", errors="replace").split("\n")
        version_line = ".".join(version.split(".")[:2])
        marker = f'release-version">{version_line}'

        for i, line in enumerate(lines):
            if marker not in line or i + 3 >= len(lines):
                continue
            target = lines[i + 3]
            if match := _FULL_END_DATE_RE.search(target):
                return datetime.strptime(match[1], "%Y-%m-%d").replace(tzinfo=timezone.utc)
            if match := _MONTH_END_DATE_RE.search(target):
                return datetime.strptime(match[1], "%Y-%m").replace(tzinfo=timezone.utc)
        return None