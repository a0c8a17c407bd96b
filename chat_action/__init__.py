"""Google Hangouts Chat action for a stateless action hub."""

__version__ = "0.1.0"
