from __future__ import annotations

import io

from PIL import Image
from werkzeug.datastructures import FileStorage

from taskapi.src.models.user import User


class FakeClock:
    """Manually advanced clock for time-dependent code."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


def png_bytes(width: int = 8, height: int = 8) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color=(200, 30, 30)).save(buffer, format='PNG')
    return buffer.getvalue()


def png_upload(filename: str = 'avatar.png') -> FileStorage:
    return FileStorage(stream=io.BytesIO(png_bytes()), filename=filename, content_type='image/png')


def make_user(session, name: str = 'alice', email: str = 'alice@example.com',
              password: str = 'secret1') -> User:
    user = User(name=name, email=email)
    user.set_password(password)
    session.add(user)
    session.commit()
    return user


def register(client, name: str = 'alice', email: str = 'alice@example.com', password: str = 'secret1'):
    return client.post('/api/auth/register', json={'name': name, 'email': email, 'password': password})


def login(client, email: str = 'alice@example.com', password: str = 'secret1') -> str:
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['access_token']


def register_and_login(client, name: str = 'alice', email: str = 'alice@example.com',
                       password: str = 'secret1') -> str:
    assert register(client, name, email, password).status_code == 201
    return login(client, email, password)


def auth(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}
