[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "udproxy"
version = "0.1.0"
description = "Relay PDP-11 front panel state from UDP datagrams to WebSocket clients as JSON"
requires-python = ">=3.10"
keywords = ["pdp-11", "front panel", "udp", "websocket", "proxy", "json"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: System :: Emulators",
]
dependencies = [
    "websockets>=12",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "pytest-asyncio>=0.21",
]

[project.scripts]
udproxy = "udproxy.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["udproxy"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
