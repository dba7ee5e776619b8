import pytest

from salon_ledger.exceptions import InvalidQuantity, ProductNotFound, StaffNotFound, ValidationError
from salon_ledger.models import Section
from tests.conftest import add_product, add_staff


def test_create_several_staff_from_text(catalog, repo):
    created = catalog.create_staff('Ana, Luis\nMarta', ['manicure', 'PEDICURE'], '10', '555-1234')

    assert [s.name for s in created] == ['Ana', 'Luis', 'Marta']
    assert all(s.sections == [Section.MANICURE, Section.PEDICURE] for s in created)
    assert all(s.commission_percent_override == 10 for s in created)
    assert len({s.id for s in created}) == 3
    assert len(repo.reload().staff) == 3


def test_create_staff_without_override(catalog):
    [staff] = catalog.create_staff('Ana', 'BARBER', '')
    assert staff.commission_percent_override is None
    assert staff.sections == [Section.BARBER]


@pytest.mark.parametrize('name,sections,override', [
    ('', ['BARBER'], None),
    ('Ana', [], None),
    ('Ana', ['SPA'], None),
    ('Ana', ['BARBER'], 150),
    ('Ana', ['BARBER'], 'nan'),
    ('Ana', ['BARBER'], float('nan')),
    ('Ana', 5, None),
])
def test_create_staff_validation(catalog, repo, name, sections, override):
    with pytest.raises(ValidationError):
        catalog.create_staff(name, sections, override)
    assert repo.load().staff == []


def test_update_staff_never_touches_accruals(catalog, repo):
    staff = add_staff(repo, override=7, daily=1, monthly=2, yearly=3)

    catalog.update_staff(staff.id, name='Ana María', sections=['PEDICURE'], phone='999')

    assert staff.name == 'Ana María'
    assert staff.sections == [Section.PEDICURE]
    assert staff.commission_percent_override == 7
    assert staff.phone == '999'
    assert (staff.daily, staff.monthly, staff.yearly) == (1, 2, 3)

    catalog.update_staff(staff.id, commission_percent_override=None)
    assert staff.commission_percent_override is None


def test_update_staff_invalid_changes_nothing(catalog, repo):
    staff = add_staff(repo)
    with pytest.raises(ValidationError):
        catalog.update_staff(staff.id, name='Nueva', sections=[])
    assert staff.name == 'Ana'


def test_delete_staff_keeps_history_names(catalog, ledger, repo):
    staff = add_staff(repo)
    ledger.sell_service('Uñas', 'MANICURE', 10, staff_id=staff.id)

    catalog.delete_staff(staff.id)

    assert repo.load().find_staff(staff.id) is None
    assert repo.load().transactions[0].staff_name == 'Ana'
    with pytest.raises(StaffNotFound):
        catalog.delete_staff(staff.id)


def test_create_products_from_lines(catalog):
    products = catalog.create_products('Shampoo | 25 | 10\nCera\n\nGel | 8.5', price=12, stock=3)

    assert [(p.name, p.price, p.stock) for p in products] == [
        ('Shampoo', 25.0, 10),
        ('Cera', 12.0, 3),
        ('Gel', 8.5, 3),
    ]


def test_create_products_is_all_or_nothing(catalog, repo):
    with pytest.raises(ValidationError):
        catalog.create_products('Shampoo | 25 | 10\nRoto | -1 | 2')
    assert repo.load().products == []


def test_update_and_delete_product(catalog, repo):
    product = catalog.create_product('Shampoo', 25, 4)

    catalog.update_product(product.id, price='30', stock=6)
    assert (product.price, product.stock) == (30.0, 6)

    with pytest.raises(ValidationError):
        catalog.update_product(product.id, stock=-1)
    assert product.stock == 6

    catalog.delete_product(product.id)
    with pytest.raises(ProductNotFound):
        catalog.get_product(product.id)


def test_restock(catalog, repo):
    product = add_product(repo, stock=2)
    catalog.restock(product.id, 5)
    assert product.stock == 7

    with pytest.raises(InvalidQuantity):
        catalog.restock(product.id, 0)
    with pytest.raises(InvalidQuantity):
        catalog.restock(product.id, 'mucho')
    assert product.stock == 7


def test_update_staff_rejects_nan_override(catalog, ledger, repo):
    staff = add_staff(repo, sections=['MANICURE'])
    product = add_product(repo, price=50, stock=5)

    with pytest.raises(ValidationError):
        catalog.update_staff(staff.id, commission_percent_override='nan')
    assert staff.commission_percent_override is None

    tx = ledger.sell_product(product.id, 2, staff_id=staff.id)
    assert tx.staff_earn + tx.salon_earn == pytest.approx(100.0)
    assert staff.monthly == 5.0
