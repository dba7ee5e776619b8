# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (actualmente JSON).
# Las interfaces (métodos públicos) permanecen iguales si cambia el motor.
#
# ESTRUCTURA:
# ├── interfaces.py           → Protocolo IDocumentRepository
# ├── base.py                 → Lectura/escritura JSON atómica con .backup
# └── document_repository.py  → Acceso a data.json (documento completo)
# ==============================================================================

from .interfaces import IDocumentRepository
from .base import BaseRepository
from .document_repository import DocumentRepository

__all__ = [
    'IDocumentRepository',
    'BaseRepository',
    'DocumentRepository',
]
