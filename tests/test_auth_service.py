from __future__ import annotations

import os

import pytest

from taskapi.src.errors import AuthenticationError, ConflictError, ValidationError
from taskapi.src.models.access_token import AccessToken
from taskapi.src.models.task import Task
from taskapi.src.models.user import User
from taskapi.src.services import auth_service
from taskapi.src.services.auth_service import CredentialStore
from taskapi.src.services.token_service import TokenService

from .helpers import make_user, png_upload


@pytest.fixture()
def store(app, session):
    return CredentialStore(session, upload_folder=app.config['UPLOAD_FOLDER'], settings=app.config)


ALICE = {'name': 'alice', 'email': 'alice@example.com', 'password': 'secret1'}


def test_register_hashes_the_password(store, session) -> None:
    user = store.register(dict(ALICE))

    assert user.id is not None
    assert user.password_hash != 'secret1'
    assert user.check_password('secret1')
    assert 'password_hash' not in user.to_dict()


def test_second_registration_with_same_email_fails(store, session) -> None:
    store.register(dict(ALICE))

    with pytest.raises(ValidationError) as excinfo:
        store.register({'name': 'alice2', 'email': 'Alice@Example.com', 'password': 'secret1'})

    assert list(excinfo.value.errors) == ['email']
    assert session.query(User).count() == 1


def test_database_constraint_catches_racing_registrations(store, session, monkeypatch) -> None:
    store.register(dict(ALICE))
    # Simulate a request that passed validation before the first one committed
    monkeypatch.setattr(auth_service, 'validate', lambda data, rules, context: dict(data))

    with pytest.raises(ConflictError) as excinfo:
        store.register({'name': 'someone', 'email': 'alice@example.com', 'password': 'secret1'})

    assert excinfo.value.status_code == 409
    assert 'email' in excinfo.value.errors
    assert session.query(User).count() == 1


def test_register_stores_avatar(store, app) -> None:
    user = store.register({**ALICE, 'avatar': png_upload()})

    assert user.avatar_path.startswith('avatars/')
    assert user.avatar_path.endswith('.png')
    assert os.path.exists(os.path.join(app.config['UPLOAD_FOLDER'], user.avatar_path))


def test_authenticate_accepts_correct_credentials(store) -> None:
    store.register(dict(ALICE))

    user = store.authenticate({'email': ' ALICE@example.com', 'password': 'secret1'})

    assert user.email == 'alice@example.com'


def test_wrong_password_and_unknown_email_fail_identically(store) -> None:
    store.register(dict(ALICE))

    with pytest.raises(AuthenticationError) as wrong_password:
        store.authenticate({'email': 'alice@example.com', 'password': 'wrong-password'})
    with pytest.raises(AuthenticationError) as unknown_email:
        store.authenticate({'email': 'nobody@example.com', 'password': 'secret1'})

    assert wrong_password.value.message == unknown_email.value.message == 'Invalid credentials'
    assert wrong_password.value.to_dict() == unknown_email.value.to_dict()


def test_authenticate_requires_both_fields(store) -> None:
    with pytest.raises(ValidationError) as excinfo:
        store.authenticate({})

    assert set(excinfo.value.errors) == {'email', 'password'}


def test_update_profile_may_keep_own_email(store) -> None:
    alice = store.register(dict(ALICE))

    updated = store.update_profile(alice, {'name': 'Alice Smith', 'email': 'alice@example.com'})

    assert updated.name == 'Alice Smith'
    assert updated.email == 'alice@example.com'


def test_update_profile_rejects_other_users_email(store, session) -> None:
    alice = store.register(dict(ALICE))
    store.register({'name': 'bob', 'email': 'bob@example.com', 'password': 'secret1'})

    with pytest.raises(ValidationError) as excinfo:
        store.update_profile(alice, {'name': 'alice', 'email': 'bob@example.com'})

    assert list(excinfo.value.errors) == ['email']
    session.refresh(alice)
    assert alice.email == 'alice@example.com'


def test_update_profile_replaces_avatar_and_removes_old_file(store, app) -> None:
    alice = store.register({**ALICE, 'avatar': png_upload()})
    old_path = os.path.join(app.config['UPLOAD_FOLDER'], alice.avatar_path)

    store.update_profile(alice, {'name': 'alice', 'email': 'alice@example.com', 'avatar': png_upload()})

    assert not os.path.exists(old_path)
    assert os.path.exists(os.path.join(app.config['UPLOAD_FOLDER'], alice.avatar_path))


def test_update_profile_without_avatar_keeps_current(store) -> None:
    alice = store.register({**ALICE, 'avatar': png_upload()})
    avatar_path = alice.avatar_path

    store.update_profile(alice, {'name': 'alice', 'email': 'alice@example.com'})

    assert alice.avatar_path == avatar_path


def test_update_password(store) -> None:
    alice = store.register(dict(ALICE))

    store.update_password(alice, {'password': 'new-secret'})

    assert store.authenticate({'email': 'alice@example.com', 'password': 'new-secret'}).id == alice.id
    with pytest.raises(AuthenticationError):
        store.authenticate(dict(email='alice@example.com', password='secret1'))


def test_update_password_enforces_minimum_length(store) -> None:
    alice = store.register(dict(ALICE))

    with pytest.raises(ValidationError) as excinfo:
        store.update_password(alice, {'password': '12345'})

    assert excinfo.value.errors == {'password': ['The password field must be at least 6 characters.']}


def test_deleting_a_user_cascades_to_tasks_and_tokens(session) -> None:
    alice = make_user(session)
    session.add(Task(name='Buy milk', owner_id=alice.id))
    session.commit()
    TokenService(session).issue(alice)

    session.delete(alice)
    session.commit()

    assert session.query(Task).count() == 0
    assert session.query(AccessToken).count() == 0


def test_conflict_detection_reads_the_constraint_not_the_value() -> None:
    sqlite_error = 'UNIQUE constraint failed: users.email'
    postgres_error = (
        'duplicate key value violates unique constraint "users_email_key"\n'
        'DETAIL:  Key (email)=(username@users.name) already exists.'
    )

    assert auth_service._violates_unique(sqlite_error, 'email')
    assert not auth_service._violates_unique(sqlite_error, 'name')
    assert auth_service._violates_unique(postgres_error, 'email')
    assert not auth_service._violates_unique(postgres_error, 'name')
