[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "msproto"
version = "0.1.0"
description = "Encoder and decoder for a compact binary instant-messaging wire protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["im", "chat", "protocol", "binary", "codec", "messaging"]
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
    "Topic :: Communications :: Chat",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["msproto"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
