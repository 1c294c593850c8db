from typing import Optional
from enum import Enum


class Intent(str, Enum):
    """Closed set of user intents driving retrieval and budget allocation"""
    DEBUG = "debug"
    ANALYTICS = "analytics"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Intent":
        """Map a raw model answer onto an intent, defaulting to GENERAL"""

        if isinstance(value, cls):
            return value
        if not value:
            return cls.GENERAL

        normalized = value.strip().lower().strip(".\"'")
        for intent in cls:
            if intent.value == normalized:
                return intent

        return cls.GENERAL
