"""Six-seat Texas hold'em over TCP: game logic, packet protocol, server, scripted and terminal clients."""

__version__ = "0.1.0"