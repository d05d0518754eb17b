"""AI Research Assistant - settings reconciliation and credential protection."""

__version__ = "0.1.0"
