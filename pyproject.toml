[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "upstream-deps"
version = "0.1.0"
description = "List released versions of language runtimes and tools and describe their source artifacts"
requires-python = ">=3.10"
keywords = ["dependencies", "releases", "checksums", "cpe", "buildpacks"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "pyyaml",
    "semver",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["upstream_deps"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
