"""
Auth API Routes - registration, token login and logout

    POST /api/auth/register  → Create account (rate limited, no auth)
    POST /api/auth/login     → Exchange credentials for a bearer token (rate limited, no auth)
    GET  /api/auth/logout    → Revoke the token used for this request

Error Responses (rendered by the app-level ApiError handler):
    401 - Invalid credentials / missing or revoked token
    409 - Email or name taken by a concurrent registration
    422 - Validation error ({"message": ..., "errors": {field: [...]}})
    429 - Too many attempts (Retry-After header)
"""

from flask import jsonify

from taskapi.src.api import api_bp
from taskapi.src.api.guards import (
    auth_required,
    bearer_token,
    get_credential_store,
    get_payload,
    get_token_service,
    throttle,
)


@api_bp.route('/auth/register', methods=['POST'])
@throttle('auth')
def register():
    """
    Create a new account.

    Request Body (JSON or multipart/form-data):
        {
            "name": "Alice",                 # Required, unique
            "email": "alice@example.com",    # Required, valid email, unique
            "password": "secret1",           # Required, min 6 chars
            "avatar": <file>                 # Optional image (multipart only)
        }

    Success Response (201):
        {
            "message": "User registered successfully",
            "user": {"id": 1, "name": "Alice", "email": "alice@example.com", ...}
        }
    """
    user = get_credential_store().register(get_payload())
    return jsonify({
        'message': 'User registered successfully',
        'user': user.to_dict()
    }), 201


@api_bp.route('/auth/login', methods=['POST'])
@throttle('auth')
def login():
    """
    Exchange email and password for an opaque bearer token.

    Success Response (200):
        {
            "message": "Login successful",
            "access_token": "<token>",   # Shown once, store it client-side
            "token_type": "Bearer"
        }

    The 401 message is the same whether the email is unknown or the
    password is wrong.
    """
    user = get_credential_store().authenticate(get_payload())
    token = get_token_service().issue(user)
    return jsonify({
        'message': 'Login successful',
        'access_token': token,
        'token_type': 'Bearer'
    }), 200


@api_bp.route('/auth/logout', methods=['GET'])
@auth_required
def logout(current_user):
    """Revoke the bearer token that authenticated this request."""
    get_token_service().revoke(bearer_token())
    return jsonify({
        'message': 'Successfully logged out. Token revoked.'
    }), 200
