[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netprimer"
version = "0.1.0"
description = "Small, readable socket programs: interface listing, time servers, TCP/UDP clients and servers, DNS queries, an HTTP client and a static web server."
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = [
    "sockets",
    "networking",
    "tcp",
    "udp",
    "dns",
    "http",
    "select",
    "ipv6",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Internet :: Name Service (DNS)",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Education",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
netprimer-sock-init = "netprimer.sockets:main"
netprimer-interfaces = "netprimer.interfaces:main"
netprimer-time = "netprimer.clock:main"
netprimer-time-server = "netprimer.time_server:main"
netprimer-lookup = "netprimer.lookup:main"
netprimer-dns = "netprimer.dns:main"
netprimer-tcp-client = "netprimer.client:tcp_main"
netprimer-udp-client = "netprimer.client:udp_main"
netprimer-chat-server = "netprimer.tcp_servers:chat_main"
netprimer-upper-server = "netprimer.tcp_servers:upper_main"
netprimer-upper-fork = "netprimer.tcp_servers:fork_main"
netprimer-web-get = "netprimer.web_get:main"
netprimer-udp-recvfrom = "netprimer.udp:recvfrom_main"
netprimer-udp-sendto = "netprimer.udp:sendto_main"
netprimer-udp-upper = "netprimer.udp:upper_main"
netprimer-web-server = "netprimer.web_server:main"

[tool.hatch.build.targets.wheel]
packages = ["netprimer"]

[tool.hatch.build.targets.sdist]
include = [
    "netprimer",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
