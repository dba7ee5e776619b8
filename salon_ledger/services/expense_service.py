# ==============================================================================
# SERVICIO DE GASTOS
# ==============================================================================
# Diario de gastos del salón (alquiler, insumos, servicios...).
# A diferencia de ventas y sueldos, un gasto SÍ se puede editar o eliminar:
# solo influye en los reportes de ganancia neta.
# ==============================================================================

from datetime import date as date_cls, datetime
from typing import Any, Callable, List, Optional

from salon_ledger.exceptions import ExpenseNotFound, PersistenceError, ValidationError
from salon_ledger.models import Expense, PaymentMethod, new_id, utc_now
from salon_ledger.repositories import IDocumentRepository
from salon_ledger.services.commission import add_money, positive_money

DATE_FORMAT = '%Y-%m-%d'


def parse_day(value: Any, label: str = 'Fecha') -> date_cls:
    """Convierte 'YYYY-MM-DD' (o un date/datetime) en date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_cls):
        return value
    try:
        return datetime.strptime(str(value or '').strip()[:10], DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"{label} inválida: {value!r} (formato YYYY-MM-DD)")


class ExpenseService:
    """Registro, edición y consulta de gastos."""

    def __init__(self, document_repo: IDocumentRepository, clock: Callable = None):
        self.document_repo = document_repo
        self._clock = clock or utc_now

    def _persist(self, result: Any) -> Any:
        try:
            self.document_repo.save()
        except PersistenceError as e:
            print(f"[GASTOS ERROR] Cambio aplicado en memoria pero no guardado: {e}")
            raise PersistenceError(str(e), result=result) from e
        return result

    def get_expense(self, expense_id: str) -> Expense:
        expense = self.document_repo.load().find_expense(expense_id)
        if expense is None:
            raise ExpenseNotFound(f"Gasto {expense_id} no encontrado")
        return expense

    def create_expense(
        self,
        title: Any,
        amount: Any,
        date: Any = None,
        payment_method: Any = PaymentMethod.CASH
    ) -> Expense:
        """
        Registra un gasto.

        Args:
            title: Descripción (requerida)
            amount: Monto (> 0)
            date: Fecha YYYY-MM-DD (por defecto, hoy)
            payment_method: Método de pago

        Raises:
            ValidationError: título vacío, monto <= 0, fecha o método inválidos
        """
        clean_title = str(title or '').strip()
        if not clean_title:
            raise ValidationError("Descripción del gasto requerida")
        day = parse_day(date) if date else self._clock().date()
        expense = Expense(
            id=new_id('EXP'),
            title=clean_title,
            amount=positive_money(amount, 'Monto del gasto'),
            date=day.strftime(DATE_FORMAT),
            payment_method=PaymentMethod.parse(payment_method).value,
        )

        with self.document_repo.lock:
            self.document_repo.load().expenses.append(expense)
            print(f"[GASTOS] {expense.title}: {expense.amount:.2f} ({expense.date})")
            return self._persist(expense)

    def update_expense(
        self,
        expense_id: str,
        title: Any = None,
        amount: Any = None,
        date: Any = None,
        payment_method: Any = None
    ) -> Expense:
        """Edita un gasto. Valida todo antes de modificar."""
        with self.document_repo.lock:
            expense = self.get_expense(expense_id)

            if title is not None:
                new_title = str(title).strip()
                if not new_title:
                    raise ValidationError("Descripción del gasto requerida")
            else:
                new_title = expense.title
            new_amount = positive_money(amount, 'Monto del gasto') if amount is not None else expense.amount
            new_date = parse_day(date).strftime(DATE_FORMAT) if date is not None else expense.date
            if payment_method is not None:
                new_method = PaymentMethod.parse(payment_method).value
            else:
                new_method = expense.payment_method

            expense.title = new_title
            expense.amount = new_amount
            expense.date = new_date
            expense.payment_method = new_method
            return self._persist(expense)

    def delete_expense(self, expense_id: str) -> Expense:
        with self.document_repo.lock:
            expense = self.get_expense(expense_id)
            self.document_repo.load().expenses.remove(expense)
            print(f"[GASTOS] Gasto eliminado: {expense.title}")
            return self._persist(expense)

    def list_expenses(self, start: Any = None, end: Any = None) -> List[Expense]:
        """
        Lista gastos, opcionalmente filtrados por rango de fechas (inclusive).
        Ordenados del más reciente al más antiguo.
        """
        start_day: Optional[date_cls] = parse_day(start, 'Fecha inicial') if start else None
        end_day: Optional[date_cls] = parse_day(end, 'Fecha final') if end else None

        result = []
        for expense in self.document_repo.load().expenses:
            try:
                day = parse_day(expense.date)
            except ValidationError:
                # Gasto legacy sin fecha válida: solo aparece sin filtro
                if start_day or end_day:
                    continue
                result.append(expense)
                continue
            if start_day and day < start_day:
                continue
            if end_day and day > end_day:
                continue
            result.append(expense)

        result.sort(key=lambda e: e.date, reverse=True)
        return result

    def total_between(self, start: Any, end: Any) -> float:
        """Suma de gastos entre dos fechas (inclusive)."""
        return add_money(*(e.amount for e in self.list_expenses(start, end)))
