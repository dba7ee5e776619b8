import json
import os
import zipfile
from datetime import datetime, timedelta

import pytest

from salon_ledger.exceptions import NotFoundError, ValidationError
from salon_ledger.services import BackupService
from tests.conftest import add_product, add_staff


class Clock:
    """Reloj manipulable para simular varios días."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock_days():
    return Clock(datetime(2024, 3, 1, 9, 0))


@pytest.fixture
def backups(tmp_path, repo, clock_days):
    return BackupService(str(tmp_path), repo, max_backups=3, clock=clock_days)


def test_daily_backup_contains_data_file(backups, repo):
    add_product(repo, name='Cera')

    result = backups.create_backup()

    assert result['success'] is True
    assert result['backup_path'].endswith('backup_2024-03-01.zip')
    with zipfile.ZipFile(result['backup_path']) as zf:
        data = json.loads(zf.read('data.json'))
    # El documento en memoria se guarda antes de comprimir
    assert [p['name'] for p in data['products']] == ['Cera']


def test_second_backup_same_day_is_skipped(backups):
    backups.create_backup()
    result = backups.create_backup()
    assert result['success'] is True
    assert result['message'] == 'Backup del día ya existe'
    assert result['files_added'] == 0


def test_rotation_keeps_only_latest(backups, clock_days):
    for _ in range(5):
        backups.run_daily_backup()
        clock_days.now += timedelta(days=1)

    status = backups.get_backup_status()

    assert status['total_backups'] == 3
    assert [b['date'] for b in status['backups']] == ['2024-03-05', '2024-03-04', '2024-03-03']


def test_invalid_backup_names_are_ignored(backups):
    open(os.path.join(backups.backup_root, 'backup_ayer.zip'), 'w').close()
    open(os.path.join(backups.backup_root, 'notas.txt'), 'w').close()
    assert backups.get_backup_status()['total_backups'] == 0


def test_restore_replaces_document_and_keeps_users(backups, repo):
    add_staff(repo, name='Vieja')
    repo.save()

    document = backups.restore({
        'staff': [{'id': 'S9', 'name': 'Nueva', 'section': 'BARBER', 'monthly': 15}],
        'products': [],
    })

    assert [s.name for s in document.staff] == ['Nueva']
    assert repo.load() is document
    assert [s.name for s in repo.reload().staff] == ['Nueva']
    # Sin usuarios en el archivo restaurado se conservan los actuales
    assert len(document.users) == 1


def test_restore_rejects_invalid_content(backups, repo):
    add_staff(repo, name='Ana')
    with pytest.raises(ValidationError):
        backups.restore('{ roto')
    with pytest.raises(ValidationError):
        backups.restore([1, 2, 3])
    with pytest.raises(ValidationError):
        backups.restore({'staff': [{'id': 'S1', 'name': 'Sin sección', 'sections': []}]})
    assert [s.name for s in repo.load().staff] == ['Ana']


def test_restore_from_backup_zip(backups, repo, clock_days):
    add_product(repo, name='Cera')
    backups.create_backup()
    clock_days.now += timedelta(days=1)
    add_product(repo, name='Gel')
    repo.save()

    document = backups.restore_from_backup('backup_2024-03-01.zip')

    assert [p.name for p in document.products] == ['Cera']
    with pytest.raises(NotFoundError):
        backups.restore_from_backup('backup_1999-01-01.zip')


def test_reset_wipes_everything_after_backup(backups, repo):
    add_staff(repo)
    add_product(repo)

    document = backups.reset()

    assert document.staff == []
    assert document.products == []
    assert len(document.users) == 1
    assert backups.get_backup_status()['today_exists'] is True


def test_restore_from_backup_with_invalid_encoding(backups, repo):
    add_product(repo, name='Cera')
    path = os.path.join(backups.backup_root, 'backup_2024-02-01.zip')
    os.makedirs(backups.backup_root, exist_ok=True)
    with zipfile.ZipFile(path, 'w') as zf:
        zf.writestr('data.json', b'\xff\xfe{"staff": \x80}')

    with pytest.raises(ValidationError):
        backups.restore_from_backup('backup_2024-02-01.zip')
    assert [p.name for p in repo.load().products] == ['Cera']
