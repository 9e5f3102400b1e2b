"""
Configuration module for the Event Planner CRM backend.

Provides centralized configuration for:
- JWT signing and token lifetimes
- CORS, rate limiting and uploads
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
