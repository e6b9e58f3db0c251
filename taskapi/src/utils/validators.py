"""
Input validation utilities for API request data.

Each endpoint declares a rule table mapping a field to an ordered list of
rules. A single generic validate() walks the table, collects every violated
field and raises ValidationError with a field -> [messages] map. Only fields
named in the table are returned, so clients cannot smuggle server-derived
attributes (owner, ids, timestamps) into a model.
"""

import re
from collections import namedtuple
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from werkzeug.datastructures import FileStorage

from taskapi.src.errors import ValidationError
from taskapi.src.models.user import User
from taskapi.src.utils import avatars


# check(value, context) -> bool; a failing rule with bail=True ends the field
Rule = namedtuple('Rule', ['name', 'check', 'message', 'bail'])

# Fields whose value is kept exactly as entered
PRESERVE_WHITESPACE = {'password'}

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


@dataclass
class ValidationContext:
    """Collaborators a rule may need: the db session and app settings."""
    session: Any = None
    ignore_id: Optional[int] = None  # Row excluded from unique checks (self on update)
    config: Mapping[str, Any] = field(default_factory=dict)


def validate_email(email: str) -> bool:
    """
    Validate email format using regex.

    Args:
        email: Email address to validate

    Returns:
        bool: True if valid email format
    """
    return EMAIL_PATTERN.match(email) is not None


# ============================================================================
# RULES
# ============================================================================

REQUIRED = Rule('required', None, 'The {attribute} field is required.', True)
NULLABLE = Rule('nullable', None, None, False)

STRING = Rule(
    'string',
    lambda value, ctx: isinstance(value, str),
    'The {attribute} field must be a string.',
    True
)

EMAIL = Rule(
    'email',
    lambda value, ctx: isinstance(value, str) and validate_email(value),
    'The {attribute} field must be a valid email address.',
    True
)


def min_length(n: int) -> Rule:
    return Rule(
        'min',
        lambda value, ctx: len(value) >= n,
        'The {attribute} field must be at least %d characters.' % n,
        False
    )


def max_length(n: int) -> Rule:
    return Rule(
        'max',
        lambda value, ctx: len(value) <= n,
        'The {attribute} field must not be greater than %d characters.' % n,
        False
    )


def unique(column) -> Rule:
    """Value must not already exist in `column` (ignoring context.ignore_id)."""
    model = column.class_

    def check(value, ctx):
        query = ctx.session.query(model.id).filter(column == value)
        if ctx.ignore_id is not None:
            query = query.filter(model.id != ctx.ignore_id)
        return not ctx.session.query(query.exists()).scalar()

    return Rule('unique', check, 'The {attribute} has already been taken.', False)


def _image_check(value, ctx):
    if not isinstance(value, FileStorage):
        return False
    allowed = ctx.config.get('ALLOWED_IMAGE_FORMATS', avatars.DEFAULT_IMAGE_FORMATS)
    max_pixels = ctx.config.get('MAX_IMAGE_PIXELS', avatars.DEFAULT_MAX_PIXELS)
    return avatars.detect_image_format(value, allowed, max_pixels) is not None


IMAGE = Rule('image', _image_check, 'The {attribute} field must be an image.', True)


def max_file_size(max_bytes: int) -> Rule:
    return Rule(
        'max_file',
        lambda value, ctx: avatars.file_size(value) <= max_bytes,
        'The {attribute} field must not be greater than %d kilobytes.' % (max_bytes // 1024),
        False
    )


# ============================================================================
# RULE TABLES (one per endpoint)
# ============================================================================

AVATAR_MAX_BYTES = 2 * 1024 * 1024

REGISTER_RULES = {
    'name': [REQUIRED, STRING, max_length(255), unique(User.name)],
    'email': [REQUIRED, EMAIL, max_length(255), unique(User.email)],
    'password': [REQUIRED, STRING, min_length(6)],
    'avatar': [NULLABLE, IMAGE, max_file_size(AVATAR_MAX_BYTES)],
}

LOGIN_RULES = {
    'email': [REQUIRED, STRING],
    'password': [REQUIRED, STRING],
}

UPDATE_PROFILE_RULES = {
    'name': [REQUIRED, STRING, max_length(255), unique(User.name)],
    'email': [REQUIRED, EMAIL, max_length(255), unique(User.email)],
    'avatar': [NULLABLE, IMAGE, max_file_size(AVATAR_MAX_BYTES)],
}

UPDATE_PASSWORD_RULES = {
    'password': [REQUIRED, STRING, min_length(6)],
}

CREATE_TASK_RULES = {
    'name': [REQUIRED, STRING, max_length(255)],
}

UPDATE_TASK_RULES = {
    'state': [REQUIRED, STRING, max_length(255)],
}


# ============================================================================
# GENERIC VALIDATOR
# ============================================================================

def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, FileStorage):
        return not value.filename
    return False


def _normalize(field_name: str, value, rules: List[Rule]):
    if not isinstance(value, str):
        return value
    if field_name not in PRESERVE_WHITESPACE:
        value = value.strip()
    if any(rule.name == 'email' for rule in rules):
        value = value.lower()
    return value


def _attribute(field_name: str) -> str:
    return field_name.replace('_', ' ')


def validate(data: Mapping[str, Any], rules: Dict[str, List[Rule]],
             context: Optional[ValidationContext] = None) -> Dict[str, Any]:
    """
    Validate a request payload against a rule table.

    Args:
        data: Incoming payload (JSON body, form fields and files merged)
        rules: Field -> ordered list of Rule
        context: Session / settings needed by unique and image rules

    Returns:
        dict: Normalized values of the declared fields that were supplied

    Raises:
        ValidationError: With every violated field and its messages
    """
    context = context or ValidationContext()
    errors: Dict[str, List[str]] = {}
    validated: Dict[str, Any] = {}

    for field_name, field_rules in rules.items():
        value = data.get(field_name) if data else None
        attribute = _attribute(field_name)

        if _is_blank(value):
            if REQUIRED in field_rules:
                errors[field_name] = [REQUIRED.message.format(attribute=attribute)]
            continue

        value = _normalize(field_name, value, field_rules)
        messages = []
        for rule in field_rules:
            if rule.check is None:
                continue
            if not rule.check(value, context):
                messages.append(rule.message.format(attribute=attribute))
                if rule.bail:
                    break

        if messages:
            errors[field_name] = messages
        else:
            validated[field_name] = value

    if errors:
        raise ValidationError(errors)

    return validated
