[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sockecho"
version = "0.1.0"
description = "Line-oriented TCP and UDP echo servers, clients and a shared-counter resource server"
requires-python = ">=3.10"
dependencies = []
keywords = ["socket", "echo", "tcp", "udp", "server", "client", "threading"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
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

[project.scripts]
sockecho-tcp-server = "sockecho.tcp_echo:main"
sockecho-server = "sockecho.concurrent_echo:main"
sockecho-client = "sockecho.echo_client:main"
sockecho-udp-server = "sockecho.udp_echo:server_main"
sockecho-udp-client = "sockecho.udp_echo:client_main"
sockecho-resource-server = "sockecho.resource_server:main"

[tool.hatch.build.targets.wheel]
packages = ["sockecho"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
