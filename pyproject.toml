[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "airbear"
version = "0.1.0"
description = "Gateway between a Speeduino-style ECU serial link and web, TCP and in-memory display clients"
requires-python = ">=3.10"
keywords = [
    "ecu",
    "speeduino",
    "engine management",
    "serial",
    "dashboard",
    "server-sent events",
    "tunerstudio",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]
dependencies = [
    "pyserial",
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
airbear = "airbear.app:main"

[tool.hatch.build.targets.wheel]
packages = ["airbear"]

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
