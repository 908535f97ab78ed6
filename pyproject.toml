[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tcpwire"
version = "0.1.0"
description = "IPv4 and TCP wire formats, Internet checksums, sockets, file descriptors and a poll-based event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "ipv4", "checksum", "sockets", "event loop", "tun", "networking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tcpwire"]

[tool.pytest.ini_options]
addopts = "-ra"
