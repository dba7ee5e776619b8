# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Este módulo define todas las entidades del dominio usando dataclasses.
# Independientes del mecanismo de persistencia (JSON en disco por ahora).
# ==============================================================================

from .entities import (
    # Enumeraciones
    Section,
    PaymentMethod,
    UserRole,

    # Usuarios
    User,

    # Catálogo
    Staff,
    Product,

    # Diarios
    Transaction,
    SalaryRecord,
    Expense,

    # Agregado
    Document,

    # Helpers
    new_id,
    parse_timestamp,
    utc_now,
)

__all__ = [
    'Section',
    'PaymentMethod',
    'UserRole',
    'User',
    'Staff',
    'Product',
    'Transaction',
    'SalaryRecord',
    'Expense',
    'Document',
    'new_id',
    'parse_timestamp',
    'utc_now',
]
