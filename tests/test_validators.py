from __future__ import annotations

import io

import pytest
from werkzeug.datastructures import FileStorage

from taskapi.src.errors import ValidationError
from taskapi.src.utils.validators import (
    CREATE_TASK_RULES,
    REGISTER_RULES,
    UPDATE_PROFILE_RULES,
    UPDATE_TASK_RULES,
    ValidationContext,
    validate,
    validate_email,
)

from .helpers import make_user, png_upload


def test_all_violated_fields_are_reported_together(session) -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate({}, REGISTER_RULES, ValidationContext(session=session))

    errors = excinfo.value.errors
    assert set(errors) == {'name', 'email', 'password'}
    assert errors['name'] == ['The name field is required.']
    assert errors['password'] == ['The password field is required.']
    assert excinfo.value.message == 'The name field is required. (and 2 more errors)'


def test_min_length_and_email_messages(session) -> None:
    payload = {'name': 'alice', 'email': 'not-an-email', 'password': '123'}
    with pytest.raises(ValidationError) as excinfo:
        validate(payload, REGISTER_RULES, ValidationContext(session=session))

    errors = excinfo.value.errors
    assert errors == {
        'email': ['The email field must be a valid email address.'],
        'password': ['The password field must be at least 6 characters.'],
    }


def test_type_rule_stops_further_checks_for_that_field() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate({'name': 123}, CREATE_TASK_RULES)

    assert excinfo.value.errors == {'name': ['The name field must be a string.']}


def test_blank_string_counts_as_missing() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate({'state': '   '}, UPDATE_TASK_RULES)

    assert excinfo.value.errors == {'state': ['The state field is required.']}


def test_values_are_normalized_and_password_kept_verbatim(session) -> None:
    payload = {'name': '  alice ', 'email': ' Alice@Example.COM ', 'password': ' secret1 '}

    validated = validate(payload, REGISTER_RULES, ValidationContext(session=session))

    assert validated == {'name': 'alice', 'email': 'alice@example.com', 'password': ' secret1 '}


def test_undeclared_fields_are_dropped() -> None:
    validated = validate({'name': 'Buy milk', 'owner_id': 99, 'state': 'done', 'id': 7}, CREATE_TASK_RULES)

    assert validated == {'name': 'Buy milk'}


def test_unique_rule_checks_store_case_insensitively(session) -> None:
    make_user(session, name='alice', email='alice@example.com')
    payload = {'name': 'alice', 'email': 'ALICE@example.com', 'password': 'secret1'}

    with pytest.raises(ValidationError) as excinfo:
        validate(payload, REGISTER_RULES, ValidationContext(session=session))

    assert excinfo.value.errors == {
        'name': ['The name has already been taken.'],
        'email': ['The email has already been taken.'],
    }


def test_unique_rule_ignores_own_row(session) -> None:
    alice = make_user(session, name='alice', email='alice@example.com')
    make_user(session, name='bob', email='bob@example.com')

    own = validate(
        {'name': 'alice', 'email': 'alice@example.com'},
        UPDATE_PROFILE_RULES,
        ValidationContext(session=session, ignore_id=alice.id),
    )
    assert own['email'] == 'alice@example.com'

    with pytest.raises(ValidationError) as excinfo:
        validate(
            {'name': 'alice', 'email': 'bob@example.com'},
            UPDATE_PROFILE_RULES,
            ValidationContext(session=session, ignore_id=alice.id),
        )
    assert list(excinfo.value.errors) == ['email']


def test_avatar_must_be_a_real_image(session) -> None:
    context = ValidationContext(session=session)
    base = {'name': 'alice', 'email': 'alice@example.com', 'password': 'secret1'}

    validated = validate({**base, 'avatar': png_upload()}, REGISTER_RULES, context)
    assert isinstance(validated['avatar'], FileStorage)

    fake = FileStorage(stream=io.BytesIO(b'definitely not a png'), filename='avatar.png')
    with pytest.raises(ValidationError) as excinfo:
        validate({**base, 'avatar': fake}, REGISTER_RULES, context)
    assert excinfo.value.errors == {'avatar': ['The avatar field must be an image.']}


def test_avatar_given_as_text_is_rejected(session) -> None:
    payload = {'name': 'alice', 'email': 'alice@example.com', 'password': 'secret1', 'avatar': 'me.png'}

    with pytest.raises(ValidationError) as excinfo:
        validate(payload, REGISTER_RULES, ValidationContext(session=session))

    assert 'avatar' in excinfo.value.errors


@pytest.mark.parametrize(
    ('email', 'expected'),
    [
        ('alice@example.com', True),
        ('a.b+tag@sub.example.org', True),
        ('alice@', False),
        ('alice.example.com', False),
        ('alice@example', False),
    ],
)
def test_validate_email(email: str, expected: bool) -> None:
    assert validate_email(email) is expected
