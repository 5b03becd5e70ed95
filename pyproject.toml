[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "corekit"
version = "0.1.0"
description = "Spaced primes, levelled per-domain logging, n-ary trees, per-thread slots, an event main loop and shared-library file names"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "main loop",
    "event loop",
    "timeouts",
    "idle",
    "poll",
    "logging",
    "tree",
    "thread-local",
    "primes",
]
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
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["corekit"]

[tool.pytest.ini_options]
addopts = "-ra"
