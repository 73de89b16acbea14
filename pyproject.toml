[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "duckmesh"
version = "4.3.0"
description = "Packet format, duplicate filtering and LoRa radio control for a mesh of relaying ducks"
requires-python = ">=3.10"
dependencies = []
keywords = ["lora", "mesh", "bloom-filter", "packet", "radio"]
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
    "Topic :: Communications :: Ham Radio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["duckmesh"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
