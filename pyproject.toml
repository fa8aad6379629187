[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tcpkit"
version = "0.1.0"
description = "Building blocks for a user-space TCP stack: IPv4 and TCP wire formats, checksums, sockets, TUN devices and an event loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "ipv4", "networking", "tun", "checksum", "event loop", "sockets"]
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
packages = ["tcpkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
