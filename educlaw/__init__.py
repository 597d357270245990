"""AI learning companion core: routing, slash commands, reminders, health and chat helpers."""

__version__ = "0.1.0"