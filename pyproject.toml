[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "udfkit"
version = "0.1.0"
description = "Building blocks for user-defined sources, sinks, source transformers, side inputs and session reducers in streaming pipelines"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "streaming",
    "udf",
    "session-window",
    "reduce",
    "sink",
    "source",
    "side-input",
    "pipeline",
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["udfkit"]

[tool.hatch.build.targets.sdist]
include = ["udfkit", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
