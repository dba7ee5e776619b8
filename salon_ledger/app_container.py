# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener el repositorio y los servicios ya conectados.
# Facilita:
#   - Inyección de dependencias (los servicios reciben el repositorio)
#   - Testing (un contenedor por carpeta temporal)
#   - Cambiar el almacenamiento sin tocar servicios ni rutas
#
# Para usar otro almacenamiento (SQLite, MySQL...) basta con una clase que
# cumpla IDocumentRepository y cambiarla en document_repo.
# ==============================================================================

import os
from typing import Optional

from salon_ledger import config
from salon_ledger.repositories import DocumentRepository
from salon_ledger.services import (
    AutosaveService,
    BackupService,
    CatalogService,
    CommissionPolicy,
    ExpenseService,
    LedgerService,
    ReportService,
    UserService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Una única instancia por proceso (singleton). Cada repositorio y servicio
    se crea la primera vez que se pide.

    Uso:
        container = get_container('/ruta/datos')
        container.ledger_service.sell_service('Corte', 'BARBER', 100, staff_id)
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None):
        """
        Args:
            base_path: Carpeta de datos (por defecto config.BASE)
        """
        if self._initialized:
            return

        self.base_path = os.path.abspath(base_path or config.BASE)

        self._document_repo: Optional[DocumentRepository] = None
        self._policy: Optional[CommissionPolicy] = None

        self._ledger_service: Optional[LedgerService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._expense_service: Optional[ExpenseService] = None
        self._report_service: Optional[ReportService] = None
        self._user_service: Optional[UserService] = None
        self._backup_service: Optional[BackupService] = None
        self._autosave_service: Optional[AutosaveService] = None

        self._initialized = True

    # =========================================================================
    # REPOSITORIO Y POLÍTICA
    # =========================================================================

    @property
    def document_repo(self) -> DocumentRepository:
        """Repositorio de data.json (singleton)."""
        if self._document_repo is None:
            self._document_repo = DocumentRepository(self.base_path)
        return self._document_repo

    @property
    def policy(self) -> CommissionPolicy:
        """Porcentajes de comisión tomados de config."""
        if self._policy is None:
            self._policy = CommissionPolicy(
                product_percent=config.PRODUCT_COMMISSION_PERCENT,
                service_percent=config.SERVICE_COMMISSION_PERCENT,
            )
        return self._policy

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            self._ledger_service = LedgerService(self.document_repo, self.policy)
        return self._ledger_service

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            self._catalog_service = CatalogService(self.document_repo)
        return self._catalog_service

    @property
    def expense_service(self) -> ExpenseService:
        if self._expense_service is None:
            self._expense_service = ExpenseService(self.document_repo)
        return self._expense_service

    @property
    def report_service(self) -> ReportService:
        if self._report_service is None:
            self._report_service = ReportService(self.document_repo, self.expense_service)
        return self._report_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(self.document_repo)
        return self._user_service

    @property
    def backup_service(self) -> BackupService:
        if self._backup_service is None:
            self._backup_service = BackupService(self.base_path, self.document_repo)
        return self._backup_service

    @property
    def autosave_service(self) -> AutosaveService:
        if self._autosave_service is None:
            self._autosave_service = AutosaveService(self.document_repo)
        return self._autosave_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Descarta todas las instancias (deteniendo antes el autoguardado).
        Útil para testing o para recargar datos.
        """
        if self._autosave_service is not None and self._autosave_service.running:
            self._autosave_service.shutdown()

        self._document_repo = None
        self._policy = None

        self._ledger_service = None
        self._catalog_service = None
        self._expense_service = None
        self._report_service = None
        self._user_service = None
        self._backup_service = None
        self._autosave_service = None

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton. Si se pide otra carpeta de datos,
        se descarta la anterior.
        """
        if cls._instance is not None and base_path is not None:
            if cls._instance.base_path != os.path.abspath(base_path):
                cls.reset_instance()
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """Obtiene el contenedor de dependencias global."""
    return AppContainer.get_instance(base_path)
