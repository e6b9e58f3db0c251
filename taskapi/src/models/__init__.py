"""
Models package initialization.
Centralizes all database models for easy import.
"""

from taskapi.src.models.task import Task
from taskapi.src.models.user import User
from taskapi.src.models.access_token import AccessToken

# Export all models for easy access
__all__ = ['Task', 'User', 'AccessToken']
