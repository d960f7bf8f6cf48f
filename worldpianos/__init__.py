"""WorldPianos: moderation engine for the public piano community site."""

__version__ = "0.1.0"
