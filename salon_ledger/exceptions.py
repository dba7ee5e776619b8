# ==============================================================================
# EXCEPCIONES DEL DOMINIO
# ==============================================================================
# Todas las operaciones del ledger validan COMPLETAMENTE antes de mutar.
# Si se lanza una de estas excepciones (salvo PersistenceError) el documento
# en memoria queda exactamente como estaba.
# ==============================================================================


class LedgerError(Exception):
    """Excepción base de todas las operaciones del sistema."""
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDACIÓN - datos de entrada inválidos o faltantes
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationError(LedgerError):
    """Entrada inválida: nombre vacío, precio o cantidad no positivos, etc."""
    pass


class InvalidQuantity(ValidationError):
    """Cantidad de venta menor o igual a cero."""
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# NO ENCONTRADO - referencia a un ID desconocido
# ═══════════════════════════════════════════════════════════════════════════════

class NotFoundError(LedgerError):
    """Se referenció un ID que no existe."""
    pass


class ProductNotFound(NotFoundError):
    pass


class StaffNotFound(NotFoundError):
    pass


class ExpenseNotFound(NotFoundError):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# CONFLICTO - la operación choca con el estado actual
# ═══════════════════════════════════════════════════════════════════════════════

class ConflictError(LedgerError):
    """La operación no es posible con el estado actual del documento."""
    pass


class InsufficientStock(ConflictError):
    pass


class SectionMismatch(ConflictError):
    """El empleado no trabaja en la sección del servicio."""
    pass


class NothingToPay(ConflictError):
    """El empleado no tiene comisión mensual pendiente."""
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# PERSISTENCIA
# ═══════════════════════════════════════════════════════════════════════════════

class PersistenceError(LedgerError):
    """
    Fallo al escribir el documento en disco.

    NO revierte la mutación en memoria: el documento en memoria sigue siendo
    la fuente de verdad hasta el próximo guardado exitoso. Si la operación
    llegó a producir un resultado (transacción, registro de sueldo...), viaja
    en `result` para que el llamador pueda usarlo igual.
    """

    def __init__(self, message, result=None):
        super().__init__(message)
        self.result = result
