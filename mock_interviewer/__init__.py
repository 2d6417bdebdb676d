"""Voice and video mock interviews with AI review."""

__version__ = "1.0.0"
