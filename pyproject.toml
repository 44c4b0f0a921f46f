[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smtx"
version = "1.0.0"
description = "A spin-then-yield shared mutex (reader-writer lock) with timed and non-blocking acquisition"
requires-python = ">=3.10"
dependencies = []
keywords = ["rwlock", "reader-writer lock", "shared mutex", "threading", "synchronization", "concurrency"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
smtx-stress = "smtx.stress:main"

[tool.hatch.build.targets.wheel]
packages = ["smtx"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
