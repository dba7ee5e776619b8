import json
import time

from salon_ledger.exceptions import PersistenceError
from salon_ledger.services import AutosaveService
from tests.conftest import add_product


def _wait_for(condition, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def _products_on_disk(repo):
    with open(repo.file_path, encoding='utf-8') as f:
        return [p['name'] for p in json.load(f)['products']]


def test_interval_save(repo):
    autosave = AutosaveService(repo, interval=0.05, exit_timeout=1)
    add_product(repo, name='Cera')
    autosave.start()
    try:
        assert _wait_for(lambda: autosave.save_count > 0)
        assert _products_on_disk(repo) == ['Cera']
    finally:
        autosave.shutdown()


def test_request_save_without_thread_saves_immediately(repo):
    autosave = AutosaveService(repo, interval=60)
    add_product(repo, name='Gel')

    autosave.request_save('blur')

    assert autosave.save_count == 1
    assert _products_on_disk(repo) == ['Gel']


def test_request_save_is_handled_by_thread(repo):
    autosave = AutosaveService(repo, interval=60, exit_timeout=1)
    autosave.start()
    try:
        add_product(repo, name='Tinte')
        autosave.request_save('blur')
        assert _wait_for(lambda: autosave.save_count == 1)
    finally:
        autosave.shutdown()


def test_shutdown_stops_thread_and_saves(repo):
    autosave = AutosaveService(repo, interval=60, exit_timeout=1)
    autosave.start()
    add_product(repo, name='Laca')

    assert autosave.shutdown() is True

    assert autosave.running is False
    assert _products_on_disk(repo) == ['Laca']


def test_failed_save_is_reported_not_raised(repo, monkeypatch):
    autosave = AutosaveService(repo, interval=60)

    def broken_write(data):
        raise PersistenceError('sin permisos')

    monkeypatch.setattr(repo, '_write_raw', broken_write)

    assert autosave.save_now('prueba') is False
    assert 'sin permisos' in autosave.last_error
    assert autosave.save_count == 0
