"""
Configuration package for the motor pool core.

Exposes the cached settings instance used by logging, the database
layer and the workflow services.
"""

from motorpool.config.settings import LoggingSettings, Settings, get_settings, settings

__all__ = ['settings', 'get_settings', 'Settings', 'LoggingSettings']
