import pytest

from salon_ledger import performance_logger
from tests.conftest import add_staff

pytestmark = pytest.mark.skipif(
    not performance_logger.ENABLE_PROFILING, reason='profiling desactivado por entorno'
)


def test_ledger_operations_are_profiled(repo, ledger):
    performance_logger.reset_stats()
    staff = add_staff(repo, sections=['BARBER'], monthly=10)

    ledger.sell_service('Corte', 'BARBER', 10, staff_id=staff.id)
    ledger.pay_salary(staff.id)

    stats = performance_logger.get_function_stats()
    assert stats['Vender servicio']['calls'] == 1
    assert stats['Pagar sueldo']['calls'] == 1


def test_stats_report_goes_to_logs_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(performance_logger, 'LOGS_DIR', str(tmp_path / 'logs'))
    performance_logger.reset_stats()

    @performance_logger.profile_function(name='Operación de prueba')
    def operation():
        return 42

    assert operation() == 42
    performance_logger.write_function_stats_report()

    report = (tmp_path / 'logs' / performance_logger.SLOW_FUNCTIONS_LOG_NAME).read_text(encoding='utf-8')
    assert 'Operación de prueba' in report
