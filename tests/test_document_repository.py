import json
import os

import pytest
from werkzeug.security import check_password_hash

from salon_ledger.exceptions import PersistenceError
from salon_ledger.models import Section, UserRole
from salon_ledger.repositories import DocumentRepository, IDocumentRepository
from tests.conftest import ADMIN_PASSWORD, ADMIN_USER, add_product


def test_fresh_store_is_seeded(repo):
    document = repo.load()

    assert len(document.users) == 1
    admin = document.users[0]
    assert admin.username == ADMIN_USER
    assert admin.role == UserRole.ADMIN
    assert check_password_hash(admin.password, ADMIN_PASSWORD)
    assert document.staff == []
    assert document.products == []
    assert document.transactions == []
    assert document.salary_history == []
    assert document.expenses == []
    assert os.path.exists(repo.file_path)


def test_repository_satisfies_protocol(repo):
    assert isinstance(repo, IDocumentRepository)


def test_load_is_cached(repo):
    assert repo.load() is repo.load()


def test_save_keeps_backup_of_previous_version(repo):
    add_product(repo, name='Cera')
    repo.save()
    add_product(repo, name='Gel')
    repo.save()

    with open(repo.backup_path, encoding='utf-8') as f:
        previous = json.load(f)
    with open(repo.file_path, encoding='utf-8') as f:
        current = json.load(f)
    assert [p['name'] for p in previous['products']] == ['Cera']
    assert [p['name'] for p in current['products']] == ['Cera', 'Gel']
    assert not os.path.exists(repo.file_path + '.tmp')


def test_corrupt_file_falls_back_to_backup(tmp_path):
    repo = DocumentRepository(str(tmp_path))
    add_product(repo, name='Cera')
    repo.save()
    repo.save()
    with open(repo.file_path, 'w', encoding='utf-8') as f:
        f.write('{ roto')

    document = repo.reload()

    assert [p.name for p in document.products] == ['Cera']


def test_corrupt_file_without_backup_raises(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text('no es json', encoding='utf-8')

    with pytest.raises(PersistenceError):
        DocumentRepository(str(tmp_path)).load()


def test_legacy_desktop_document_is_normalised(tmp_path):
    legacy = {
        'users': [{'username': 'HARMONICSALON', 'password': 'harmonic4', 'role': 'admin'}],
        'staff': [
            {'id': 'S1', 'name': 'Ana', 'section': 'manicure', 'percent': 0, 'daily': 5, 'monthly': 10, 'yearly': 20},
            {'id': 'S2', 'name': 'Luis', 'section': ['BARBER', 'barber'], 'percent': '12'},
        ],
        'products': [{'id': 'P1', 'name': 'Gel', 'price': '8.5', 'stock': '3'}],
        'transactions': [{'id': 'T1', 'productId': '', 'productName': 'Corte (BARBER)', 'qty': 1,
                          'total': 100, 'staffID': 'S2', 'staffEarn': 40, 'salonEarn': 60,
                          'payment': 'Cash', 'date': '2024-01-05T10:00:00.000Z'}],
        'salaryHistory': [{'id': 'H1', 'staffID': 'S1', 'staffName': 'Ana', 'amount': 120,
                           'datetime': '2024-01-31T18:00:00.000Z', 'year': 2024, 'month': 1}],
    }
    (tmp_path / 'data.json').write_text(json.dumps(legacy), encoding='utf-8')

    document = DocumentRepository(str(tmp_path)).load()

    ana, luis = document.staff
    assert ana.sections == [Section.MANICURE]
    assert ana.commission_percent_override is None
    assert luis.sections == [Section.BARBER]
    assert luis.commission_percent_override == 12
    assert document.products[0].price == 8.5
    assert document.products[0].stock == 3
    tx = document.transactions[0]
    assert tx.is_service
    assert tx.staff_id == 'S2'
    assert tx.quantity == 1
    assert tx.moment.year == 2024
    record = document.salary_history[0]
    assert record.amount_paid == 120
    assert record.staff_id == 'S1'
    assert document.expenses == []


def test_reset_returns_seeded_document(repo):
    add_product(repo)
    repo.save()

    document = repo.reset()

    assert document.products == []
    assert len(document.users) == 1
    assert repo.reload().products == []


def test_save_before_load_writes_file(tmp_path):
    repo = DocumentRepository(str(tmp_path), admin_user=ADMIN_USER, admin_password=ADMIN_PASSWORD)
    assert not os.path.exists(repo.backup_path)

    repo.save()

    assert repo.last_saved_at is not None
    assert os.path.exists(repo.backup_path)
