"""Core module - configuration and observability shared by the registry,
the scoring engine and the API.
"""

__version__ = "1.0.0"
