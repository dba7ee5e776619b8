# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Los servicios reciben el repositorio por constructor y NUNCA acceden a
# archivos directamente.
#
# ESTRUCTURA:
# ├── commission.py        → Dinero (Decimal) y política de comisiones
# ├── ledger_service.py    → Ventas de productos/servicios y pago de sueldos
# ├── catalog_service.py   → CRUD de personal y productos
# ├── expense_service.py   → Diario de gastos
# ├── report_service.py    → Reportes de solo lectura
# ├── autosave_service.py  → Guardado periódico y al salir
# ├── backup_service.py    → Backups ZIP, restaurar, reiniciar
# └── user_service.py      → Autenticación
# ==============================================================================

from .commission import CommissionPolicy
from .ledger_service import LedgerService
from .catalog_service import CatalogService
from .expense_service import ExpenseService
from .report_service import ReportService
from .autosave_service import AutosaveService
from .backup_service import BackupService, run_startup_backup
from .user_service import UserService

__all__ = [
    'CommissionPolicy',
    'LedgerService',
    'CatalogService',
    'ExpenseService',
    'ReportService',
    'AutosaveService',
    'BackupService',
    'run_startup_backup',
    'UserService',
]
