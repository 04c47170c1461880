"""taskminder: personal tasks with countdown time limits and expiration alerts."""

__version__ = "0.1.0"
