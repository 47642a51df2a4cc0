"""TCP and UDP echo servers and clients, and a multithreaded shared-counter resource server."""

__version__ = "0.1.0"