# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Los servicios dependen de este protocolo, NO de la implementación JSON.
# Esto permite:
#
# 1. INDEPENDENCIA DE ALMACENAMIENTO
#    - Cambiar data.json por SQLite/MySQL solo requiere otra implementación
#
# 2. TESTING
#    - Fácil crear un repositorio en memoria que cumpla el contrato
#
# ==============================================================================

import threading
from typing import Protocol, runtime_checkable

from salon_ledger.models import Document


@runtime_checkable
class IDocumentRepository(Protocol):
    """
    Contrato de persistencia del snapshot completo.

    - load(): retorna el documento de trabajo (lo crea con datos iniciales si
      no existe). Llamadas sucesivas retornan la MISMA instancia.
    - save(document): persiste el documento entero conservando una copia de
      la versión anterior. Lanza PersistenceError si falla.
    - reload(): descarta la copia en memoria y relee el almacenamiento.
    - replace(document): sustituye el documento de trabajo y lo persiste.
    - lock: lock de escritor único para operaciones leer-luego-escribir.
    """

    @property
    def lock(self) -> threading.RLock:
        ...

    def load(self) -> Document:
        ...

    def save(self, document: Document = None) -> None:
        ...

    def reload(self) -> Document:
        ...

    def replace(self, document: Document) -> None:
        ...
