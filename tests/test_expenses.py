import pytest

from salon_ledger.exceptions import ExpenseNotFound, ValidationError


def test_create_expense_defaults_to_today(expenses):
    expense = expenses.create_expense('Alquiler', '800')
    assert expense.date == '2024-03-15'
    assert expense.amount == 800.0
    assert expense.payment_method == 'Cash'


@pytest.mark.parametrize('title,amount,date', [
    ('', 10, None),
    ('Luz', 0, None),
    ('Luz', 10, '15/03/2024'),
])
def test_create_expense_validation(expenses, repo, title, amount, date):
    with pytest.raises(ValidationError):
        expenses.create_expense(title, amount, date)
    assert repo.load().expenses == []


def test_update_and_delete_expense(expenses, repo):
    expense = expenses.create_expense('Luz', 50, '2024-03-01', 'transfer')
    assert expense.payment_method == 'Transfer'

    expenses.update_expense(expense.id, amount=55.5, date='2024-03-02')
    assert (expense.amount, expense.date) == (55.5, '2024-03-02')

    expenses.delete_expense(expense.id)
    assert repo.reload().expenses == []
    with pytest.raises(ExpenseNotFound):
        expenses.delete_expense(expense.id)


def test_list_and_total_between(expenses):
    expenses.create_expense('Luz', 50, '2024-02-28')
    expenses.create_expense('Agua', 20, '2024-03-01')
    expenses.create_expense('Gel', 10.25, '2024-03-31')

    march = expenses.list_expenses('2024-03-01', '2024-03-31')
    assert [e.title for e in march] == ['Gel', 'Agua']
    assert expenses.total_between('2024-03-01', '2024-03-31') == 30.25
    assert len(expenses.list_expenses()) == 3
