"""Small socket programs: interfaces, time servers, TCP/UDP services, DNS and HTTP."""

__version__ = "0.1.0"