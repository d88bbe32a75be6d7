"""Configuration module for VoiceStudio."""

from config.settings import Settings, StorageBackend, SynthesisProvider

__all__ = ["Settings", "StorageBackend", "SynthesisProvider"]
