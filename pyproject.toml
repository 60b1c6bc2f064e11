[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pegloom"
version = "0.8.5"
description = "Parsing Expression Grammar (PEG) parsers built from grammar definitions, with packrat caching, left recursion and precedence climbing."
requires-python = ">=3.10"
dependencies = []
keywords = ["peg", "parser", "parsing", "grammar", "packrat", "precedence-climbing"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Text Processing :: General",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pegloom"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
