import json

import pytest

from salon_ledger.exceptions import ValidationError
from salon_ledger.repositories import DocumentRepository
from salon_ledger.services import UserService
from tests.conftest import ADMIN_PASSWORD, ADMIN_USER


@pytest.fixture
def users(repo):
    return UserService(repo)


def test_authenticate_seeded_admin(users):
    assert users.authenticate(ADMIN_USER, ADMIN_PASSWORD) == {'username': ADMIN_USER, 'role': 'admin'}


def test_username_is_case_sensitive(users):
    assert users.authenticate(ADMIN_USER.lower(), ADMIN_PASSWORD) is None
    assert users.authenticate(ADMIN_USER, 'otra') is None
    assert users.authenticate('', ADMIN_PASSWORD) is None


def test_legacy_plaintext_password_is_rehashed(tmp_path):
    (tmp_path / 'data.json').write_text(json.dumps({
        'users': [{'username': 'HARMONICSALON', 'password': 'harmonic4', 'role': 'admin'}],
    }), encoding='utf-8')
    repo = DocumentRepository(str(tmp_path))
    service = UserService(repo)

    assert service.authenticate('HARMONICSALON', 'harmonic4') is not None

    stored = json.loads((tmp_path / 'data.json').read_text(encoding='utf-8'))['users'][0]['password']
    assert stored != 'harmonic4'
    assert service.authenticate('HARMONICSALON', 'harmonic4') is not None


def test_add_and_update_user(users):
    users.add_or_update_user('caja', 'secreta', 'operator')
    assert users.authenticate('caja', 'secreta') == {'username': 'caja', 'role': 'operator'}

    users.add_or_update_user('caja', 'nueva')
    assert users.authenticate('caja', 'secreta') is None
    assert users.authenticate('caja', 'nueva')['role'] == 'admin'

    listed = users.list_users()
    assert {'username': 'caja', 'role': 'admin'} in listed
    assert all('password' not in u for u in listed)


@pytest.mark.parametrize('username,password,role', [
    ('', 'x', 'admin'),
    ('caja', '', 'admin'),
    ('caja', 'x', 'dueño'),
])
def test_add_user_validation(users, username, password, role):
    with pytest.raises(ValidationError):
        users.add_or_update_user(username, password, role)
