# ==============================================================================
# SERVICIO DE BACKUPS
# ==============================================================================
# Crea backups diarios de data.json en formato ZIP y mantiene solo los
# últimos N (rotación automática). También restaura el documento desde un
# JSON exportado o desde un ZIP de backup, y reinicia el sistema.
#
# FORMATO: backups/backup_YYYY-MM-DD.zip  (contiene data.json)
#
# Antes de restaurar o reiniciar se fuerza un backup del estado actual:
# ninguna de las dos operaciones se puede deshacer de otra forma.
# ==============================================================================

import json
import os
import zipfile
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from salon_ledger import config
from salon_ledger.exceptions import NotFoundError, PersistenceError, ValidationError
from salon_ledger.models import Document
from salon_ledger.repositories import DocumentRepository

BACKUP_PREFIX = 'backup_'
BACKUP_EXT = '.zip'


class BackupService:
    """
    Servicio para gestión de backups.

    Responsabilidades:
    - Crear backups diarios en formato ZIP
    - Rotar backups antiguos (mantener solo los últimos N)
    - Restaurar el documento (JSON o ZIP) y reiniciar a valores iniciales
    """

    def __init__(
        self,
        base_path: str,
        document_repo: DocumentRepository,
        max_backups: int = None,
        clock: Callable = None
    ):
        """
        Args:
            base_path: Carpeta de datos (donde está data.json)
            document_repo: Repositorio del documento
            max_backups: Cantidad de ZIPs a conservar
            clock: Función que retorna el datetime actual (fecha del backup)
        """
        self.base_path = base_path
        self.document_repo = document_repo
        self.max_backups = config.MAX_BACKUPS if max_backups is None else int(max_backups)
        self.backup_root = os.path.join(base_path, config.BACKUP_DIR_NAME)
        self._clock = clock or datetime.now

        os.makedirs(self.backup_root, exist_ok=True)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _get_today_zip_path(self) -> str:
        today = self._clock().strftime('%Y-%m-%d')
        return os.path.join(self.backup_root, f'{BACKUP_PREFIX}{today}{BACKUP_EXT}')

    def _backup_exists_today(self) -> bool:
        zip_path = self._get_today_zip_path()
        return os.path.exists(zip_path) and os.path.getsize(zip_path) > 0

    def _get_existing_backups(self) -> List[str]:
        """Nombres backup_YYYY-MM-DD.zip ordenados del más reciente al más antiguo."""
        if not os.path.exists(self.backup_root):
            return []

        backups = []
        for item in os.listdir(self.backup_root):
            if not (item.startswith(BACKUP_PREFIX) and item.endswith(BACKUP_EXT)):
                continue
            if not os.path.isfile(os.path.join(self.backup_root, item)):
                continue
            try:
                datetime.strptime(item[len(BACKUP_PREFIX):-len(BACKUP_EXT)], '%Y-%m-%d')
            except ValueError:
                continue
            backups.append(item)

        backups.sort(reverse=True)
        return backups

    def _zip_data_file(self, zip_path: str) -> Tuple[int, List[str]]:
        """
        Escribe data.json dentro del ZIP.

        Returns:
            Tupla (archivos_agregados, lista_de_errores)
        """
        src = self.document_repo.file_path
        name = os.path.basename(src)
        if not os.path.exists(src):
            return 0, []
        try:
            with self.document_repo.lock:
                with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zf:
                    zf.write(src, name)
            return 1, []
        except (OSError, zipfile.BadZipFile) as e:
            # No dejar un ZIP a medias
            if os.path.exists(zip_path):
                try:
                    os.remove(zip_path)
                except OSError:
                    pass
            return 0, [f"{name}: {e}"]

    def _delete_old_backups(self) -> int:
        deleted = 0
        for backup_name in self._get_existing_backups()[self.max_backups:]:
            try:
                os.remove(os.path.join(self.backup_root, backup_name))
                deleted += 1
                print(f"[BACKUP] Eliminado backup antiguo: {backup_name}")
            except OSError as e:
                print(f"[BACKUP ERROR] No se pudo eliminar {backup_name}: {e}")
        return deleted

    # =========================================================================
    # BACKUPS
    # =========================================================================

    def create_backup(self, force: bool = False) -> Dict[str, Any]:
        """
        Crea el backup ZIP del día (guardando antes el documento en memoria).

        Args:
            force: Si True, lo crea aunque ya exista el de hoy

        Returns:
            Dict con resultado: {success, message, files_added, errors, backup_path}
        """
        zip_path = self._get_today_zip_path()
        result = {
            'success': False,
            'message': '',
            'files_added': 0,
            'errors': [],
            'backup_path': zip_path,
        }

        if not force and self._backup_exists_today():
            result['success'] = True
            result['message'] = 'Backup del día ya existe'
            print(f"[BACKUP] Backup ya existe hoy: {os.path.basename(zip_path)}")
            return result

        try:
            self.document_repo.save()
        except PersistenceError as e:
            # Se respalda lo último que quedó en disco
            result['errors'].append(str(e))

        added, errors = self._zip_data_file(zip_path)
        result['files_added'] = added
        result['errors'].extend(errors)
        result['success'] = added > 0

        if added > 0:
            size_kb = round(os.path.getsize(zip_path) / 1024, 2)
            result['message'] = f'Backup creado ({size_kb} KB)'
            print(f"[BACKUP] Backup creado: {os.path.basename(zip_path)} ({size_kb} KB)")
        else:
            result['message'] = 'No se pudo crear el backup'
        return result

    def rotate_backups(self) -> Dict[str, int]:
        deleted = self._delete_old_backups()
        return {
            'deleted_count': deleted,
            'remaining_count': len(self._get_existing_backups()),
        }

    def run_daily_backup(self) -> Dict[str, Any]:
        """Backup del día (si falta) + rotación."""
        return {
            'backup': self.create_backup(),
            'rotation': self.rotate_backups(),
        }

    def get_backup_status(self) -> Dict[str, Any]:
        backup_info = []
        for backup_name in self._get_existing_backups():
            size_bytes = os.path.getsize(os.path.join(self.backup_root, backup_name))
            backup_info.append({
                'filename': backup_name,
                'date': backup_name[len(BACKUP_PREFIX):-len(BACKUP_EXT)],
                'size_bytes': size_bytes,
                'size_kb': round(size_bytes / 1024, 2),
            })

        return {
            'total_backups': len(backup_info),
            'max_backups': self.max_backups,
            'backups': backup_info,
            'today_exists': self._backup_exists_today(),
        }

    # =========================================================================
    # RESTAURAR / REINICIAR
    # =========================================================================

    def restore(self, data: Any) -> Document:
        """
        Reemplaza el documento completo por uno exportado.

        Args:
            data: dict (o string JSON) con la forma de data.json; acepta el
                  formato legacy de la aplicación de escritorio

        Returns:
            Documento restaurado

        Raises:
            ValidationError: si el contenido no es un documento válido
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as e:
                raise ValidationError(f"JSON inválido: {e}") from e
        try:
            document = Document.from_dict(data)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Documento inválido: {e}") from e

        with self.document_repo.lock:
            if not document.users:
                # Sin usuarios nadie podría volver a entrar
                document.users = list(self.document_repo.load().users)
            self.create_backup(force=True)
            self.document_repo.replace(document)

        print(
            f"[BACKUP] Datos restaurados: {len(document.staff)} empleados, "
            f"{len(document.products)} productos, {len(document.transactions)} transacciones"
        )
        return document

    def restore_from_backup(self, filename: str) -> Document:
        """
        Restaura desde uno de los ZIP de la carpeta de backups.

        Raises:
            NotFoundError: si el backup no existe
            ValidationError: si el ZIP no contiene un documento válido
        """
        name = os.path.basename(filename or '')
        if name not in self._get_existing_backups():
            raise NotFoundError(f"Backup {filename} no encontrado")
        data_name = os.path.basename(self.document_repo.file_path)
        try:
            with zipfile.ZipFile(os.path.join(self.backup_root, name), 'r') as zf:
                text = zf.read(data_name).decode('utf-8')
        except (KeyError, OSError, zipfile.BadZipFile, UnicodeDecodeError) as e:
            raise ValidationError(f"Backup {name} ilegible: {e}") from e
        return self.restore(text)

    def reset(self) -> Document:
        """Borra TODO y deja el documento inicial (con backup previo)."""
        with self.document_repo.lock:
            self.create_backup(force=True)
            document = self.document_repo.reset()
        print("[BACKUP] Sistema reiniciado a valores iniciales")
        return document


def run_startup_backup(service: Optional[BackupService]) -> None:
    """
    Backup al iniciar la aplicación.
    Los errores se registran y no se propagan.
    """
    if service is None:
        return
    try:
        result = service.run_daily_backup()
        if not result['backup']['success'] and result['backup']['errors']:
            print(f"[BACKUP] Errores: {result['backup']['errors']}")
    except (OSError, PersistenceError) as e:
        print(f"[BACKUP ERROR] No se pudo ejecutar backup: {e}")
