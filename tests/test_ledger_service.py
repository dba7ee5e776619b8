import json

import pytest

from salon_ledger.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    PersistenceError,
    ProductNotFound,
    SectionMismatch,
    StaffNotFound,
    ValidationError,
)
from tests.conftest import FIXED_NOW, add_product, add_staff


def _snapshot(repo):
    return json.dumps(repo.load().to_dict(), sort_keys=True)


# ---------------------------------------------------------------------------
# Productos
# ---------------------------------------------------------------------------

def test_product_sale_with_zero_override(repo, ledger):
    staff = add_staff(repo, override=0)
    product = add_product(repo, price=50.0, stock=10)

    tx = ledger.sell_product(product.id, 2, staff_id=staff.id)

    assert tx.total == 100.0
    assert tx.staff_earn == 0.0
    assert tx.salon_earn == 100.0
    assert product.stock == 8
    assert tx.product_id == product.id
    assert tx.product_name == 'Shampoo'
    assert tx.quantity == 2
    assert tx.timestamp == FIXED_NOW.isoformat()
    assert repo.load().transactions == [tx]


def test_product_sale_default_percent_accrues_all_horizons(repo, ledger):
    staff = add_staff(repo, daily=1, monthly=2, yearly=3)
    product = add_product(repo, price=20.0, stock=5)

    tx = ledger.sell_product(product.id, 3, staff_id=staff.id, payment_method='card')

    assert tx.total == 60.0
    assert tx.staff_earn == 3.0
    assert tx.salon_earn == 57.0
    assert tx.payment_method == 'Card'
    assert (staff.daily, staff.monthly, staff.yearly) == (4.0, 5.0, 6.0)


def test_product_sale_unit_price_override(repo, ledger):
    product = add_product(repo, price=50.0, stock=3)

    tx = ledger.sell_product(product.id, 2, unit_price='12.50')

    assert tx.total == 25.0
    assert tx.staff_id is None
    assert tx.staff_earn == 0.0
    assert tx.salon_earn == 25.0


def test_product_sale_is_persisted(repo, ledger):
    product = add_product(repo, stock=4)
    ledger.sell_product(product.id, 1)

    with open(repo.file_path, encoding='utf-8') as f:
        data = json.load(f)
    assert data['products'][0]['stock'] == 3
    assert data['transactions'][0]['productId'] == product.id
    assert data['transactions'][0]['staffId'] == ''


def test_insufficient_stock_leaves_state_unchanged(repo, ledger):
    staff = add_staff(repo)
    product = add_product(repo, stock=2)
    before = _snapshot(repo)

    with pytest.raises(InsufficientStock):
        ledger.sell_product(product.id, 3, staff_id=staff.id)

    assert _snapshot(repo) == before


@pytest.mark.parametrize('quantity', [0, -1, 1.5, 'x', True])
def test_invalid_quantity(repo, ledger, quantity):
    product = add_product(repo)
    with pytest.raises(InvalidQuantity):
        ledger.sell_product(product.id, quantity)
    assert product.stock == 10


def test_unknown_product_and_staff(repo, ledger):
    product = add_product(repo)
    with pytest.raises(ProductNotFound):
        ledger.sell_product('NOPE', 1)
    with pytest.raises(StaffNotFound):
        ledger.sell_product(product.id, 1, staff_id='NOPE')
    assert product.stock == 10
    assert repo.load().transactions == []


def test_bad_unit_price_and_payment_method(repo, ledger):
    product = add_product(repo)
    with pytest.raises(ValidationError):
        ledger.sell_product(product.id, 1, unit_price=0)
    with pytest.raises(ValidationError):
        ledger.sell_product(product.id, 1, payment_method='bitcoin')
    assert product.stock == 10


# ---------------------------------------------------------------------------
# Servicios
# ---------------------------------------------------------------------------

def test_service_sale_splits_forty_sixty(repo, ledger):
    staff = add_staff(repo, sections=['MANICURE', 'PEDICURE'], override=0)

    tx = ledger.sell_service('Deluxe', 'manicure', 100, staff_id=staff.id)

    assert tx.staff_earn == 40.0
    assert tx.salon_earn == 60.0
    assert tx.product_id is None
    assert tx.is_service
    assert tx.product_name == 'Deluxe (MANICURE)'
    assert tx.quantity == 1
    assert staff.monthly == 40.0


def test_service_section_mismatch_leaves_state_unchanged(repo, ledger):
    staff = add_staff(repo, sections=['BARBER'])
    before = _snapshot(repo)

    with pytest.raises(SectionMismatch):
        ledger.sell_service('Manicure', 'MANICURE', 50, staff_id=staff.id)

    assert _snapshot(repo) == before


@pytest.mark.parametrize('name,section,price', [
    ('', 'MANICURE', 10),
    ('Corte', 'PELUQUERIA', 10),
    ('Corte', 'BARBER', 0),
])
def test_service_validation(repo, ledger, name, section, price):
    with pytest.raises(ValidationError):
        ledger.sell_service(name, section, price)
    assert repo.load().transactions == []


def test_batch_skips_mismatched_entry(repo, ledger):
    barber = add_staff(repo, name='Luis', sections=['BARBER'])
    nails = add_staff(repo, name='Ana', sections=['MANICURE'])

    result = ledger.sell_services(
        [
            'Corte',
            {'name': 'Manicure', 'section': 'MANICURE', 'staffId': barber.id},
            {'name': 'Esmalte', 'section': 'MANICURE', 'staffId': nails.id, 'price': 30},
        ],
        section='BARBER',
        price=50,
        staff_id=barber.id,
    )

    assert result['ok'] is True
    assert result['count'] == 2
    assert len(result['transactions']) == 2
    assert len(result['errors']) == 1
    assert result['errors'][0]['name'] == 'Manicure'
    names = [t.product_name for t in repo.load().transactions]
    assert names == ['Corte (BARBER)', 'Esmalte (MANICURE)']
    assert barber.monthly == 20.0
    assert nails.monthly == 12.0


def test_batch_accepts_delimited_string(repo, ledger):
    staff = add_staff(repo, sections=['BARBER'])
    result = ledger.sell_services('Corte, Barba\n\nAfeitado,', 'BARBER', 10, staff_id=staff.id)
    assert result['count'] == 3
    assert staff.daily == 12.0


def test_batch_with_no_successes_does_not_save(repo, ledger):
    staff = add_staff(repo, sections=['BARBER'])
    mtime = repo.last_saved_at
    result = ledger.sell_services(['A', 'B'], 'MANICURE', 10, staff_id=staff.id)
    assert result['ok'] is False
    assert result['count'] == 0
    assert len(result['errors']) == 2
    assert repo.last_saved_at == mtime


def test_batch_requires_names(ledger):
    with pytest.raises(ValidationError):
        ledger.sell_services(' , \n', 'BARBER', 10)


@pytest.mark.parametrize('names', [5, 2.5, {'name': 'Corte'}])
def test_batch_rejects_names_that_are_not_text_or_list(repo, ledger, names):
    with pytest.raises(ValidationError):
        ledger.sell_services(names, 'BARBER', 10)
    assert repo.load().transactions == []


def test_batch_reports_nested_list_entry(repo, ledger):
    staff = add_staff(repo, sections=['BARBER'])
    result = ledger.sell_services(['Corte', ['Barba']], 'BARBER', 10, staff_id=staff.id)
    assert result['count'] == 1
    assert result['errors'] == [{'name': "['Barba']", 'error': 'Entrada de servicio inválida'}]
    assert [t.product_name for t in repo.load().transactions] == ['Corte (BARBER)']


# ---------------------------------------------------------------------------
# Persistencia
# ---------------------------------------------------------------------------

def test_failed_save_keeps_in_memory_sale(repo, ledger, monkeypatch):
    product = add_product(repo, stock=5)

    def broken_write(data):
        raise PersistenceError('disco lleno')

    monkeypatch.setattr(repo, '_write_raw', broken_write)

    with pytest.raises(PersistenceError) as info:
        ledger.sell_product(product.id, 2)

    assert info.value.result is not None
    assert info.value.result.total == 100.0
    assert product.stock == 3
    assert len(repo.load().transactions) == 1
