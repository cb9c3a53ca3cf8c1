[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evnet"
version = "0.1.0"
description = "Networking building blocks: ring buffers, task queues, reusable listening sockets and a framed JSON message server and client."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "networking",
    "ring-buffer",
    "buffer-pool",
    "socket",
    "so_reuseport",
    "unix-socket",
    "json",
    "rpc",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evnet"]

[tool.hatch.build.targets.sdist]
include = ["evnet", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
