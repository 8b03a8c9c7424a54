[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtnlcodec"
version = "0.1.0"
description = "Encoder and decoder for rtnetlink route, neighbour, rule, nsid and traffic-control message payloads"
requires-python = ">=3.10"
dependencies = []
keywords = ["netlink", "rtnetlink", "routing", "neighbour", "traffic-control", "tc", "codec"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
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
packages = ["rtnlcodec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
