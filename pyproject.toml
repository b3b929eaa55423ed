[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "retrokit"
version = "0.1.0"
description = "Sprite animation data and a software sound-effect and music mixer for retro 2D game engines"
requires-python = ">=3.10"
dependencies = []
keywords = ["animation", "sprites", "audio", "mixer", "pcm", "wav", "retro", "game-engine"]
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
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["retrokit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
