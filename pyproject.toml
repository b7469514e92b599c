[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lsmcore"
version = "0.1.0"
description = "Building blocks of an LSM-tree storage engine: write batches, version edits, snapshots, counters and level metadata."
requires-python = ">=3.10"
dependencies = [
    "sortedcontainers",
]
keywords = ["lsm", "storage-engine", "key-value", "manifest", "write-batch", "varint"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["lsmcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
