[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "educlaw"
version = "0.1.0"
description = "Core pieces of an AI learning companion: agent routing, slash commands, reminder scheduling, health checks and chat-history helpers"
requires-python = ">=3.10"
keywords = ["education", "tutoring", "agents", "learning", "cron", "slash-commands"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Natural Language :: English",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
    "Typing :: Typed",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
educlaw = "educlaw.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["educlaw"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
