"""Consent kit configuration."""

from .kit_settings import KitSettings, load_kit_settings

__all__ = [
    'KitSettings',
    'load_kit_settings',
]
