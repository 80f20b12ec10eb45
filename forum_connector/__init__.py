"""Forum membership connector: keeps forum users and groups in sync with a host application."""

__version__ = "1.0.0"
