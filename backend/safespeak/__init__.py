"""SafeSpeak content analysis service."""
