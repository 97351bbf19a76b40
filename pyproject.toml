[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "audioblocks"
version = "0.1.0"
description = "A small block-based audio processing engine: blocks, flows, buffers and a threaded processing graph"
requires-python = ">=3.10"
dependencies = []
keywords = ["audio", "dsp", "blocks", "flow", "pipeline", "processing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["audioblocks"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
