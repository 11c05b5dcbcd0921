[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cpuchat"
version = "0.1.0"
description = "A small interactive register-machine simulator and a two-party TCP chat relay"
requires-python = ">=3.10"
dependencies = []
keywords = ["cpu", "simulator", "emulator", "registers", "chat", "tcp", "relay"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cpuchat-cpu = "cpuchat.machine:main"
cpuchat-server = "cpuchat.chat_server:main"
cpuchat-client = "cpuchat.chat_client:main"

[tool.hatch.build.targets.wheel]
packages = ["cpuchat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
