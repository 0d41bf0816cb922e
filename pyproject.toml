[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "coroot"
version = "0.1.0"
description = "Application model, health checks, incidents and SQLite-backed project storage for observability tooling"
requires-python = ">=3.10"
dependencies = []
keywords = ["observability", "monitoring", "slo", "incidents", "health-checks", "kubernetes", "flame-graph"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["coroot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
