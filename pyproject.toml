[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mpvkit"
version = "0.1.0"
description = "Hierarchical allocation contexts, monotonic timers, terminal key decoding and console helpers for media player front ends"
requires-python = ">=3.10"
dependencies = []
keywords = ["terminal", "keyboard", "timer", "allocation", "console", "ansi", "semaphore"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mpvkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
