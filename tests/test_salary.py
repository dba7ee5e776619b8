import pytest

from salon_ledger.exceptions import NothingToPay, StaffNotFound
from tests.conftest import FIXED_NOW, add_staff


def test_payout_rolls_daily_and_monthly_into_yearly(repo, ledger):
    staff = add_staff(repo, daily=30, monthly=120, yearly=500)

    record = ledger.pay_salary(staff.id)

    assert record.amount_paid == 120
    assert record.moved_daily == 30
    assert record.moved_monthly == 120
    assert record.moved_total == 150
    assert record.staff_name == 'Ana'
    assert (record.year, record.month) == (FIXED_NOW.year, FIXED_NOW.month)
    assert staff.yearly == 650
    assert staff.daily == 0
    assert staff.monthly == 0
    assert repo.load().salary_history == [record]


def test_payout_with_nothing_to_pay_changes_nothing(repo, ledger):
    staff = add_staff(repo, daily=15, monthly=0, yearly=40)

    with pytest.raises(NothingToPay):
        ledger.pay_salary(staff.id)

    assert (staff.daily, staff.monthly, staff.yearly) == (15, 0, 40)
    assert repo.load().salary_history == []


def test_payout_unknown_staff(ledger):
    with pytest.raises(StaffNotFound):
        ledger.pay_salary('NOPE')
    with pytest.raises(StaffNotFound):
        ledger.pay_salary(None)


def test_sale_then_payout(repo, ledger):
    staff = add_staff(repo, sections=['BARBER'])
    ledger.sell_service('Corte', 'BARBER', 100, staff_id=staff.id)
    assert (staff.daily, staff.monthly, staff.yearly) == (40, 40, 40)

    record = ledger.pay_salary(staff.id)

    assert record.amount_paid == 40
    assert record.moved_total == 80
    assert staff.yearly == 120
    assert staff.daily == staff.monthly == 0

    with pytest.raises(NothingToPay):
        ledger.pay_salary(staff.id)
