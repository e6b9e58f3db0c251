"""
Request guards and service wiring for the API routes.

    @throttle('auth')   rate limit anonymous endpoints by client IP
    @auth_required      resolve the bearer token once, rate limit the
                        caller, then pass the user to the view as its
                        first argument

Services are built per request from the app config and db.session and
handed their collaborators explicitly.
"""

import logging
from functools import wraps

from flask import current_app, g, request

from taskapi.src.errors import AuthenticationError, RateLimitError
from taskapi.src.extensions import db
from taskapi.src.services.auth_service import CredentialStore
from taskapi.src.services.task_service import TaskService
from taskapi.src.services.token_service import TokenService
from taskapi.src.utils.rate_limit import get_client_identifier

logger = logging.getLogger(__name__)


# ============================================================================
# SERVICE WIRING
# ============================================================================

def get_token_service() -> TokenService:
    return TokenService(
        db.session,
        ttl_seconds=current_app.config.get('ACCESS_TOKEN_TTL_SECONDS'),
        token_bytes=current_app.config.get('ACCESS_TOKEN_BYTES', 40)
    )


def get_credential_store() -> CredentialStore:
    return CredentialStore(
        db.session,
        upload_folder=current_app.config['UPLOAD_FOLDER'],
        settings=current_app.config
    )


def get_task_service() -> TaskService:
    return TaskService(db.session)


# ============================================================================
# REQUEST HELPERS
# ============================================================================

def bearer_token():
    """Token from 'Authorization: Bearer <token>', or None."""
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer':
        return None
    return token.strip() or None


def get_payload() -> dict:
    """
    Merge a JSON body, form fields and uploaded files into one dict.

    Register and profile update accept multipart/form-data so an avatar
    can be sent alongside the other fields.
    """
    payload = {}
    json_body = request.get_json(silent=True)
    if isinstance(json_body, dict):
        payload.update(json_body)
    payload.update(request.form.to_dict())
    payload.update(request.files.to_dict())
    return payload


def _check_rate_limit(group: str, identity: str) -> None:
    if not current_app.config.get('RATELIMIT_ENABLED', True):
        return
    limiter = current_app.extensions.get('rate_limiter')
    if limiter is None:
        return

    prefix = f'RATELIMIT_{group.upper()}'
    result = limiter.check_and_increment(
        f'{group}:{identity}',
        current_app.config[f'{prefix}_LIMIT'],
        current_app.config[f'{prefix}_WINDOW']
    )
    # Picked up by the after_request hook for the X-RateLimit-* headers
    g.rate_limit = result

    if not result.allowed:
        logger.info('Rate limit hit for %s (%s), retry in %ss', identity, group, result.retry_after)
        raise RateLimitError(result.retry_after)


# ============================================================================
# DECORATORS
# ============================================================================

def throttle(group: str):
    """Rate limit a view by client IP before anything else runs."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            _check_rate_limit(group, f'ip:{get_client_identifier()}')
            return view(*args, **kwargs)
        return wrapper
    return decorator


def auth_required(view):
    """
    Require a valid bearer token.

    Exactly one token lookup per request. The api rate limit is keyed by the
    resolved user id, or by client IP when the token does not resolve, and
    is checked before the 401 so anonymous hammering is throttled too.
    last_used_at is only written once the request is admitted.
    """
    @wraps(view)
    def wrapper(*args, **kwargs):
        tokens = get_token_service()
        record = tokens.lookup(bearer_token())

        identity = f'user:{record.user_id}' if record is not None else f'ip:{get_client_identifier()}'
        _check_rate_limit('api', identity)

        if record is None:
            raise AuthenticationError()
        tokens.touch(record)
        return view(record.user, *args, **kwargs)
    return wrapper
