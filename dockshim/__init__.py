"""dockshim — run Docker-style container commands against a native container CLI."""

__version__ = "0.1.0"
