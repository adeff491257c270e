"""Portfolio site backend: link shortener, contact form and admin analytics."""

__version__ = "1.0.0"
