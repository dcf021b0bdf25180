"""gencache — tiered cache for AI-generated content."""

__version__ = "0.1.0"
