"""User-space TCP/IP building blocks: wire formats, checksums, sockets and an event loop."""

__version__ = "0.1.0"