# upstream-deps

A library that lists the released versions of several projects: PHP, CPython,
packages on PyPI, Ruby, Rust, tini and Yarn. For any single release it collects
what is needed to pin that release as a build dependency. This covers the
source URI, its SHA-256, the release date, a deprecation date where one is
known, and a CPE identifier.

## Install

```
pip install .
```

## How it works

Each dependency class does no network or file work of its own. It takes
collaborators that do the I/O. These are typed as protocols in
`upstream_deps.models`:

- `WebClient`
  - `get(url)` returns the response body as bytes.
  - `download(url, output_path)` saves a URL to a file.
- `Checksummer`
  - `verify_md5(path, md5)` and `verify_asc(signature, path, *keys)` raise an
    exception when the check fails.
  - `get_sha256(path)` returns a hex digest.
- `GithubClient`
  - `get_tags`, `get_release_tags` and `get_release_date` look up tags and
    releases.
  - `download_source_tarball`, `download_release_asset` and
    `get_release_asset` fetch source tarballs and release assets.

`upstream_deps.models` also defines these types:

- `DepVersion` has the fields `version`, `uri`, `sha256`, `release_date`,
  `deprecation_date` and `cpe`.
- `GithubRelease` has the fields `tag_name` and `published_date`.
- `NoSourceCodeError` and `AssetNotFoundError` are the two error types.

## Usage

```python
from upstream_deps.php import Php

php = Php(checksummer=my_checksummer, web_client=my_web_client)

versions = php.get_all_version_refs()      # newest first
dep = php.get_dependency_version("7.4.4")  # a DepVersion
print(dep.uri, dep.sha256, dep.release_date, dep.deprecation_date, dep.cpe)
```

Each class is built from the collaborators it needs:

| Class | Module | Constructor |
|---|---|---|
| `Php` | `upstream_deps.php` | `Php(checksummer, web_client)` |
| `PyPi` | `upstream_deps.pypi` | `PyPi(product_name, checksummer, web_client)` |
| `Python` | `upstream_deps.python` | `Python(checksummer, web_client)` |
| `Ruby` | `upstream_deps.ruby` | `Ruby(checksummer, web_client)` |
| `Rust` | `upstream_deps.rust` | `Rust(checksummer, github_client, web_client)` |
| `Tini` | `upstream_deps.tini` | `Tini(checksummer, github_client)` |
| `Yarn` | `upstream_deps.yarn` | `Yarn(checksummer, github_client, web_client)` |

Every class offers the same three methods:

- `get_all_version_refs()` lists the known versions.
- `get_dependency_version(version)` returns a `DepVersion` for one version.
- `get_release_date(version)` returns the release date of one version.

### How each class lists and fills in versions

**Php**
- Lists all releases, newest first. Releases from the same day are ordered by
  version.
- Sets the deprecation date to three years after the release.

**PyPi**
- Lists only final source distributions, newest upload first. Ties are broken
  by semantic version.
- Fills in a CPE only for `pip`.

**Python**
- Lists versions in the order the downloads page shows them.
- Takes the deprecation date from the end-of-support column, when it is there.

**Ruby**
- Lists versions in the order the releases page shows them.
- Takes the gzip URL and SHA-256 from the release data file. When that file
  has none, it looks them up in the mirror index instead.

**Rust**
- Lists final tags with a major version of 1 or more.
- Verifies the GPG signature of the source tarball.

**Tini**
- Lists release tags as they are, keeping the leading `v`.

**Yarn**
- Lists final releases from 0.7.0 on, without the leading `v`.
  `get_dependency_version` takes the version without the `v`.
  `get_release_date` takes the full tag name, such as `v1.0.0`.

### Errors

- If fetched data is missing or malformed, `ValueError` is raised.
- If a checksum or signature check fails, the collaborator's exception is
  raised.
- If a Yarn release has no source asset, `NoSourceCodeError` is raised.

## What this package does not include

- There are no concrete HTTP, GitHub or checksum clients. You supply objects
  that satisfy the protocols above.
- There is no command-line tool, server or storage. The package is a library
  only.

## Tests

```
pip install .[test]
pytest
```