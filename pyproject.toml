[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lsmdb"
version = "0.1.0"
description = "Building blocks of an LSM-tree relational database: manifest log, compaction planning and a SQL parser"
requires-python = ">=3.10"
dependencies = []
keywords = ["lsm-tree", "database", "compaction", "sstable", "manifest", "sql", "parser"]
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
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lsmdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
