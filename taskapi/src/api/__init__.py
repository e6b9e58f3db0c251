"""
API Package Initialization Module

This module creates the main API blueprint that serves as the entry point
for all API routes in the application. All route modules are imported here
and registered to the blueprint.
"""

from flask import Blueprint

# Create the main API blueprint with URL prefix '/api'
# Example: A route '/tasks' becomes '/api/tasks'
api_bp = Blueprint('api', __name__, url_prefix='/api')

# Import route modules to register them with the blueprint
# The imports must come AFTER blueprint creation to avoid circular imports
from taskapi.src.api import auth_routes  # noqa: E402,F401  Registration, login, logout
from taskapi.src.api import task_routes  # noqa: E402,F401  Task management endpoints
from taskapi.src.api import user_routes  # noqa: E402,F401  Profile endpoints

__all__ = ['api_bp']
