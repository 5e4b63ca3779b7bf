"""
Delivery backends.

This package contains the Publisher interface, the Telegram Bot API
publisher, a console publisher for dry runs and caption formatting.
"""

from .base import Publisher
from .caption import build_caption
from .console import ConsolePublisher
from .telegram import TelegramPublisher

__all__ = [
    "Publisher",
    "build_caption",
    "ConsolePublisher",
    "TelegramPublisher",
]
