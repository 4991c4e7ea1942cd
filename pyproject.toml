[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ohmylimit"
version = "0.1.0"
description = "Prompt translation bridge and terminal helpers for a Codex app-server session"
requires-python = ">=3.11"
keywords = ["codex", "translation", "llm", "app-server", "terminal", "jsonl"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: User Interfaces",
    "Typing :: Typed",
]
dependencies = [
    "httpx>=0.24",
    "tomli-w>=1.0",
    "wcwidth>=0.2",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "pytest-asyncio>=0.21",
    "respx>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["ohmylimit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
strict = true
