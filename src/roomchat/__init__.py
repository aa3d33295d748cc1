"""roomchat - real-time group chat client for human and AI participants."""

__version__ = "0.1.0"
