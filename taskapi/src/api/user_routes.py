"""
User API Routes - the caller's own profile

    GET   /api/user  → Profile of the authenticated user
    PUT   /api/user  → Update name, email and (optionally) avatar
    PATCH /api/user  → Change password
"""

from flask import jsonify

from taskapi.src.api import api_bp
from taskapi.src.api.guards import auth_required, get_credential_store, get_payload


@api_bp.route('/user', methods=['GET'])
@auth_required
def get_profile(current_user):
    """Return the caller's profile (never includes the password hash)."""
    return jsonify({'user': current_user.to_dict()}), 200


@api_bp.route('/user', methods=['PUT'])
@auth_required
def update_profile(current_user):
    """
    Update the caller's profile.

    Request Body (JSON or multipart/form-data):
        {
            "name": "Alice Smith",           # Required, unique among other users
            "email": "alice@example.com",    # Required, unique among other users
            "avatar": <file>                 # Optional; omitted keeps the current avatar
        }
    """
    user = get_credential_store().update_profile(current_user, get_payload())
    return jsonify({
        'message': 'Profile updated',
        'user': user.to_dict()
    }), 200


@api_bp.route('/user', methods=['PATCH'])
@auth_required
def update_password(current_user):
    """Change the caller's password. Body: {"password": "<min 6 chars>"}"""
    get_credential_store().update_password(current_user, get_payload())
    return jsonify({'message': 'Password updated successfully'}), 200
