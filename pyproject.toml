[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "holdem"
version = "0.1.0"
description = "Six-seat Texas hold'em over TCP: a game server, a scripted client and a terminal client"
requires-python = ">=3.10"
dependencies = []
keywords = ["poker", "holdem", "texas-holdem", "card-game", "tcp", "curses"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Console :: Curses",
    "Intended Audience :: Education",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
holdem-server = "holdem.server:main"
holdem-bot = "holdem.automated:main"
holdem-tui = "holdem.tui:main"

[tool.setuptools]
packages = ["holdem"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
