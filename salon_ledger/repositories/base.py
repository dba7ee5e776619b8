# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso a archivos JSON
# ==============================================================================

import json
import os
import shutil
import threading
from abc import ABC, abstractmethod
from typing import Any

from salon_ledger.config import BACKUP_SUFFIX
from salon_ledger.exceptions import PersistenceError


class BaseRepository(ABC):
    """
    Clase base abstracta para repositorios respaldados por un archivo JSON.

    Proporciona:
    - Lectura con recuperación desde la copia .backup si el archivo está corrupto
    - Escritura atómica (archivo temporal + os.replace)
    - Copia .backup de la versión anterior antes de cada escritura
    - Un lock reentrante compartido por todas las operaciones del archivo
    """

    def __init__(self, file_path: str):
        """
        Inicializa el repositorio con la ruta al archivo JSON.

        Args:
            file_path: Ruta absoluta al archivo JSON de datos
        """
        self.file_path = file_path
        self.backup_path = file_path + BACKUP_SUFFIX
        self._file_lock = threading.RLock()
        self._ensure_file_exists()

    @property
    def lock(self) -> threading.RLock:
        """Lock de escritor único sobre el archivo (y el documento en memoria)."""
        return self._file_lock

    def _ensure_file_exists(self) -> None:
        """Crea el archivo con datos iniciales si no existe."""
        if not os.path.exists(self.file_path):
            folder = os.path.dirname(self.file_path)
            if folder:
                os.makedirs(folder, exist_ok=True)
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """
        Retorna la estructura inicial (serializable) para este repositorio.
        Debe ser implementado por cada repositorio concreto.
        """
        pass

    def _read_raw(self) -> Any:
        """
        Lee los datos crudos del archivo JSON.

        Si el archivo principal está corrupto intenta con la copia .backup.
        NUNCA devuelve datos vacíos en silencio: eso borraría el historial
        en el siguiente guardado.

        Raises:
            PersistenceError: Si ni el archivo ni su backup se pueden leer
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                print(f"[ADVERTENCIA] {os.path.basename(self.file_path)} ilegible ({e}), probando backup")
                try:
                    with open(self.backup_path, 'r', encoding='utf-8') as f:
                        return json.load(f)
                except (json.JSONDecodeError, OSError) as backup_error:
                    raise PersistenceError(
                        f"No se pudo leer {self.file_path} ni su backup: {backup_error}"
                    ) from e

    def _write_raw(self, data: Any) -> None:
        """
        Escribe datos al archivo JSON.

        1. Copia la versión actual a <archivo>.backup
        2. Escribe a <archivo>.tmp
        3. Reemplaza el original (operación atómica en la mayoría de sistemas)

        Raises:
            PersistenceError: Si falla la serialización o la escritura
        """
        with self._file_lock:
            temp_path = self.file_path + '.tmp'
            try:
                if os.path.exists(self.file_path):
                    shutil.copy2(self.file_path, self.backup_path)
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except (OSError, TypeError, ValueError) as e:
                # Limpiar archivo temporal si algo falla
                if os.path.exists(temp_path):
                    try:
                        os.remove(temp_path)
                    except OSError:
                        pass
                raise PersistenceError(f"Error guardando {self.file_path}: {e}") from e

    def reload(self) -> Any:
        """
        Recarga los datos desde el archivo.
        Las subclases con caché sobrescriben para invalidarla.
        """
        return self._read_raw()
