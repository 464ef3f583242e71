"""Outbound activity channels."""
from channels.base import (
    ActivityChannel,
    InMemoryChannel,
    ConsoleChannel,
    InputSanitizer,
)

__all__ = [
    "ActivityChannel", "InMemoryChannel", "ConsoleChannel", "InputSanitizer",
]
