# ==============================================================================
# REPOSITORIO DEL DOCUMENTO
# ==============================================================================
# Encapsula todo el acceso a data.json.
# El sistema completo vive en un solo objeto JSON:
#   {users, staff, products, transactions, salaryHistory, expenses}
# ==============================================================================

import os
from datetime import datetime
from typing import Any, Dict, Optional

from werkzeug.security import generate_password_hash

from salon_ledger.config import DATA_FILE_NAME, DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USER
from salon_ledger.exceptions import PersistenceError, ValidationError
from salon_ledger.models import Document
from salon_ledger.repositories.base import BaseRepository


class DocumentRepository(BaseRepository):
    """
    Repositorio del snapshot completo del salón.

    Formato de datos en data.json:
    {
        "users": [{"username": "...", "password": "<hash>", "role": "admin"}],
        "staff": [...],
        "products": [...],
        "transactions": [...],
        "salaryHistory": [...],
        "expenses": [...]
    }

    El documento se carga UNA vez y queda en caché: es la copia de trabajo
    que mutan los servicios. save() la escribe entera.
    """

    def __init__(
        self,
        base_path: str,
        file_name: str = DATA_FILE_NAME,
        admin_user: str = DEFAULT_ADMIN_USER,
        admin_password: str = DEFAULT_ADMIN_PASSWORD
    ):
        """
        Inicializa el repositorio.

        Args:
            base_path: Carpeta donde vive data.json
            file_name: Nombre del archivo de datos
            admin_user: Usuario administrador para un documento nuevo
            admin_password: Contraseña (se guarda hasheada)
        """
        self._admin_user = admin_user
        self._admin_password = admin_password
        # Cache en memoria: la copia de trabajo
        self._cache: Optional[Document] = None
        self.last_saved_at: Optional[datetime] = None
        super().__init__(os.path.join(base_path, file_name))

    def _seed_document(self) -> Document:
        return Document.seeded(self._admin_user, generate_password_hash(self._admin_password))

    def _empty_data(self) -> Dict[str, Any]:
        print(f"[LEDGER] Creando {os.path.basename(self.file_path)} con usuario '{self._admin_user}'")
        return self._seed_document().to_dict()

    def load(self) -> Document:
        """
        Carga el documento completo.
        Usa caché para que todos los servicios compartan la misma instancia.

        Raises:
            PersistenceError: Si el archivo (y su backup) no se pueden leer
                              o contienen registros inválidos
        """
        with self.lock:
            if self._cache is None:
                raw = self._read_raw()
                try:
                    self._cache = Document.from_dict(raw)
                except (ValidationError, ValueError, TypeError) as e:
                    raise PersistenceError(f"Documento inválido en {self.file_path}: {e}") from e
            return self._cache

    def save(self, document: Document = None) -> None:
        """
        Guarda el documento completo (con copia .backup de la versión previa).

        Args:
            document: Documento a guardar (por defecto, la copia de trabajo)

        Raises:
            PersistenceError: Si falla la escritura. La copia en memoria NO se revierte.
        """
        with self.lock:
            if document is not None:
                self._cache = document
            # Sin copia de trabajo: se guarda lo que hay en disco
            self._write_raw(self.load().to_dict())
            self.last_saved_at = datetime.now()

    def replace(self, document: Document) -> None:
        """Sustituye la copia de trabajo (restauración/reinicio) y la persiste."""
        self.save(document)

    def reset(self) -> Document:
        """Vuelve al documento inicial (borra TODO) y lo persiste."""
        document = self._seed_document()
        self.replace(document)
        return document

    def reload(self) -> Document:
        """
        Fuerza recarga desde archivo ignorando caché.

        Returns:
            Documento actualizado
        """
        with self.lock:
            self._cache = None
            return self.load()
