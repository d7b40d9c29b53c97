[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "dmgcore"
version = "0.1.0"
description = "A small Game Boy (DMG) CPU core: registers, memory map, opcode tables and an instruction stepper"
requires-python = ">=3.10"
dependencies = []
keywords = ["game boy", "dmg", "emulator", "sm83", "lr35902", "cpu", "boot rom"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dmgcore = "dmgcore.emulator:main"

[tool.setuptools.packages.find]
include = ["dmgcore*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
