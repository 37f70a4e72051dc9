"""DBChat: ask questions about a PostgreSQL database in natural language."""

__version__ = "0.1.0"
