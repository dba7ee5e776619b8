# ==============================================================================
# SERVICIO DE REPORTES
# ==============================================================================
# Agregaciones de SOLO LECTURA sobre los diarios del documento.
#
# Ventanas de tiempo (todas en UTC, fin exclusivo):
#   - today  → desde las 00:00 de hoy hasta las 00:00 de mañana
#   - month  → desde el día 1 del mes hasta el día 1 del mes siguiente
#   - year   → desde el 1 de enero hasta el 1 de enero siguiente
#   - custom → start..end (YYYY-MM-DD, ambos inclusive)
#
# IMPORTANTE: la comisión mensual por empleado NO se recalcula desde las
# transacciones. Es el acumulado `monthly` que mantiene el ledger.
# ==============================================================================

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from salon_ledger.exceptions import StaffNotFound, ValidationError
from salon_ledger.models import SalaryRecord, Transaction, utc_now
from salon_ledger.repositories import IDocumentRepository
from salon_ledger.services.commission import add_money
from salon_ledger.services.expense_service import DATE_FORMAT, ExpenseService, parse_day

VALID_PERIODS = ('today', 'month', 'year', 'custom')


class ReportService:
    """
    Servicio de reportes financieros.

    Responsabilidades:
    - Resumen de ingresos, comisiones, gastos y ganancia neta por período
    - Comisiones acumuladas del personal
    - Últimas transacciones, historial de sueldos, boleta de sueldo
    - Desglose diario
    """

    def __init__(
        self,
        document_repo: IDocumentRepository,
        expense_service: ExpenseService = None,
        clock: Callable = None
    ):
        self.document_repo = document_repo
        self.expense_service = expense_service or ExpenseService(document_repo)
        self._clock = clock or utc_now

    # =========================================================================
    # VENTANAS DE TIEMPO
    # =========================================================================

    def _now(self, now: Optional[datetime]) -> datetime:
        current = now or self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def _get_date_range(
        self,
        period: str,
        now: datetime = None,
        start: Any = None,
        end: Any = None
    ) -> Tuple[datetime, datetime]:
        """
        Calcula la ventana [inicio, fin) del período.

        Raises:
            ValidationError: período desconocido o fechas custom inválidas
        """
        current = self._now(now)
        today_start = current.replace(hour=0, minute=0, second=0, microsecond=0)

        if period == 'today':
            return today_start, today_start + timedelta(days=1)

        if period == 'month':
            month_start = today_start.replace(day=1)
            if month_start.month == 12:
                next_month = month_start.replace(year=month_start.year + 1, month=1)
            else:
                next_month = month_start.replace(month=month_start.month + 1)
            return month_start, next_month

        if period == 'year':
            year_start = today_start.replace(month=1, day=1)
            return year_start, year_start.replace(year=year_start.year + 1)

        if period == 'custom':
            if not start or not end:
                raise ValidationError("El período custom requiere fecha inicial y final")
            start_day = parse_day(start, 'Fecha inicial')
            end_day = parse_day(end, 'Fecha final')
            if end_day < start_day:
                raise ValidationError("La fecha final es anterior a la inicial")
            range_start = datetime(start_day.year, start_day.month, start_day.day, tzinfo=timezone.utc)
            range_end = datetime(end_day.year, end_day.month, end_day.day, tzinfo=timezone.utc)
            return range_start, range_end + timedelta(days=1)

        raise ValidationError(f"Período inválido: {period!r} (válidos: {', '.join(VALID_PERIODS)})")

    @staticmethod
    def _in_window(transaction: Transaction, start: datetime, end: datetime) -> bool:
        moment = transaction.moment
        return moment is not None and start <= moment < end

    def _transactions_between(self, start: datetime, end: datetime) -> List[Transaction]:
        return [
            t for t in self.document_repo.load().transactions
            if self._in_window(t, start, end)
        ]

    # =========================================================================
    # RESUMEN
    # =========================================================================

    def summary(
        self,
        period: str = 'today',
        now: datetime = None,
        start: Any = None,
        end: Any = None
    ) -> Dict[str, Any]:
        """
        Resumen financiero del período.

        Returns:
            {
                'period': str,
                'date_range': {'start': 'YYYY-MM-DD', 'end': 'YYYY-MM-DD'},
                'transaction_count': int,
                'revenue': float,          # suma de totales
                'staff_earnings': float,   # suma de comisiones del personal
                'salon_earnings': float,   # suma de la parte del salón
                'expenses': float,         # gastos con fecha dentro del período
                'net_profit': float,       # salon_earnings - expenses
                'product_revenue': float,
                'service_revenue': float,
            }
        """
        range_start, range_end = self._get_date_range(period, now, start, end)
        transactions = self._transactions_between(range_start, range_end)
        last_day = (range_end - timedelta(days=1)).date()

        salon_earnings = add_money(*(t.salon_earn for t in transactions))
        expenses = self.expense_service.total_between(range_start.date(), last_day)

        return {
            'period': period,
            'date_range': {
                'start': range_start.strftime(DATE_FORMAT),
                'end': last_day.strftime(DATE_FORMAT),
            },
            'transaction_count': len(transactions),
            'revenue': add_money(*(t.total for t in transactions)),
            'staff_earnings': add_money(*(t.staff_earn for t in transactions)),
            'salon_earnings': salon_earnings,
            'expenses': expenses,
            'net_profit': add_money(salon_earnings, -expenses),
            'product_revenue': add_money(*(t.total for t in transactions if not t.is_service)),
            'service_revenue': add_money(*(t.total for t in transactions if t.is_service)),
        }

    def monthly_salon_profit(self, now: datetime = None) -> Dict[str, Any]:
        """
        Reporte detallado del mes: resumen + transacciones del mes
        (la más reciente primero) + ganancia por empleado.
        """
        report = self.summary('month', now=now)
        range_start, range_end = self._get_date_range('month', now)
        transactions = self._transactions_between(range_start, range_end)

        by_staff: Dict[str, Dict[str, Any]] = {}
        for t in transactions:
            if not t.staff_id:
                continue
            row = by_staff.setdefault(t.staff_id, {
                'staff_id': t.staff_id,
                'name': t.staff_name,
                'count': 0,
                'staff_earnings': 0.0,
            })
            row['count'] += 1
            row['staff_earnings'] = add_money(row['staff_earnings'], t.staff_earn)

        report['transactions'] = list(reversed(transactions))
        report['by_staff'] = sorted(by_staff.values(), key=lambda r: r['staff_earnings'], reverse=True)
        return report

    def daily_breakdown(
        self,
        period: str = 'month',
        now: datetime = None,
        start: Any = None,
        end: Any = None
    ) -> List[Dict[str, Any]]:
        """
        Desglose por día (UTC) del período, ordenado por fecha.

        Returns:
            [{'date', 'count', 'revenue', 'staff_earnings', 'salon_earnings'}]
        """
        range_start, range_end = self._get_date_range(period, now, start, end)
        daily = defaultdict(lambda: {'count': 0, 'revenue': 0.0, 'staff_earnings': 0.0, 'salon_earnings': 0.0})

        for t in self._transactions_between(range_start, range_end):
            row = daily[t.moment.strftime(DATE_FORMAT)]
            row['count'] += 1
            row['revenue'] = add_money(row['revenue'], t.total)
            row['staff_earnings'] = add_money(row['staff_earnings'], t.staff_earn)
            row['salon_earnings'] = add_money(row['salon_earnings'], t.salon_earn)

        return [{'date': day, **values} for day, values in sorted(daily.items())]

    # =========================================================================
    # PERSONAL
    # =========================================================================

    def staff_commissions(self) -> List[Dict[str, Any]]:
        """Comisiones acumuladas de cada empleado (campos cacheados, sin recalcular)."""
        return [
            {
                'id': s.id,
                'name': s.name,
                'sections': [sec.value for sec in s.sections],
                'daily': s.daily,
                'monthly': s.monthly,
                'yearly': s.yearly,
            }
            for s in self.document_repo.load().staff
        ]

    def staff_salary_slip(self, staff_id: str, now: datetime = None) -> Dict[str, Any]:
        """
        Datos de la boleta de sueldo del mes en curso (el formato lo decide la UI).

        Raises:
            StaffNotFound: empleado inexistente
        """
        staff = self.document_repo.load().find_staff(staff_id)
        if staff is None:
            raise StaffNotFound(f"Empleado {staff_id} no encontrado")
        current = self._now(now)
        return {
            'staff_id': staff.id,
            'name': staff.name,
            'sections': [sec.value for sec in staff.sections],
            'year': current.year,
            'month': current.month,
            'amount': staff.monthly,
        }

    def salary_history(
        self,
        staff_id: str = None,
        year: int = None,
        month: int = None
    ) -> List[SalaryRecord]:
        """Pagos de sueldo filtrados (el más reciente primero)."""
        records = []
        for record in self.document_repo.load().salary_history:
            if staff_id and record.staff_id != staff_id:
                continue
            if year and record.year != int(year):
                continue
            if month and record.month != int(month):
                continue
            records.append(record)
        return list(reversed(records))

    # =========================================================================
    # TRANSACCIONES
    # =========================================================================

    def recent_transactions(self, limit: int = 8, kind: str = None) -> List[Transaction]:
        """
        Últimas transacciones (la más reciente primero).

        Args:
            limit: Máximo a retornar
            kind: None (todas), 'product' o 'service'
        """
        if kind not in (None, '', 'product', 'service'):
            raise ValidationError(f"Tipo inválido: {kind!r} (válidos: product, service)")
        limit = int(limit)
        result = []
        for t in reversed(self.document_repo.load().transactions):
            if len(result) >= limit:
                break
            if kind == 'product' and t.is_service:
                continue
            if kind == 'service' and not t.is_service:
                continue
            result.append(t)
        return result
