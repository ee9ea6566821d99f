"""pairkit: remote pairing/session lifecycle coordination for asyncio hosts."""

__version__ = "0.1.0"
