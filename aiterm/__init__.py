"""aiterm: AI command assistant for your terminal."""

__version__ = "1.0.0"
