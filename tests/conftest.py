from datetime import datetime, timezone

import pytest

from salon_ledger.app_container import AppContainer
from salon_ledger.main import create_app
from salon_ledger.models import Product, Staff
from salon_ledger.repositories import DocumentRepository
from salon_ledger.services import (
    CatalogService,
    CommissionPolicy,
    ExpenseService,
    LedgerService,
    ReportService,
)

ADMIN_USER = 'HARMONICSALON'
ADMIN_PASSWORD = 'harmonic4'

# Momento fijo para que los reportes por período sean deterministas
FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(tmp_path):
    return DocumentRepository(str(tmp_path), admin_user=ADMIN_USER, admin_password=ADMIN_PASSWORD)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def ledger(repo, clock):
    return LedgerService(repo, CommissionPolicy(product_percent=5, service_percent=40), clock=clock)


@pytest.fixture
def catalog(repo):
    return CatalogService(repo)


@pytest.fixture
def expenses(repo, clock):
    return ExpenseService(repo, clock=clock)


@pytest.fixture
def reports(repo, expenses, clock):
    return ReportService(repo, expenses, clock=clock)


def add_staff(repo, name='Ana', sections=('MANICURE',), override=None, daily=0.0, monthly=0.0, yearly=0.0):
    staff = Staff(
        id=f'STF-{name}',
        name=name,
        sections=list(sections),
        commission_percent_override=override,
        daily=daily,
        monthly=monthly,
        yearly=yearly,
    )
    repo.load().staff.append(staff)
    return staff


def add_product(repo, name='Shampoo', price=50.0, stock=10):
    product = Product(id=f'PRD-{name}', name=name, price=price, stock=stock)
    repo.load().products.append(product)
    return product


@pytest.fixture
def app(tmp_path):
    AppContainer.reset_instance()
    application = create_app(str(tmp_path), testing=True)
    yield application
    AppContainer.reset_instance()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def login_admin(client):
    r = client.post('/api/login', json={'username': ADMIN_USER, 'password': ADMIN_PASSWORD})
    assert r.status_code == 200
    body = r.get_json()
    assert body['ok'] is True
    token = body['result']['csrf_token']
    assert token
    return token
