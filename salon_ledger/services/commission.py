# ==============================================================================
# POLÍTICA DE COMISIONES Y UTILIDADES DE DINERO
# ==============================================================================
# Reglas de reparto de una venta entre el empleado y el salón.
#
# PRODUCTOS: porcentaje propio del empleado si lo tiene configurado,
#            si no, PRODUCT_COMMISSION_PERCENT (config).
# SERVICIOS: SIEMPRE SERVICE_COMMISSION_PERCENT, sin importar el empleado.
#
# Todos los cálculos se hacen con Decimal y se redondean a 2 decimales
# (ROUND_HALF_UP) para que los totales guardados no acumulen error flotante.
# ==============================================================================

import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Tuple

from salon_ledger import config
from salon_ledger.exceptions import ValidationError
from salon_ledger.models import Staff

CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value: Any) -> Decimal:
    """Convierte a Decimal pasando por str (evita arrastrar el error del float)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def round2(value: Any) -> float:
    """Redondea a 2 decimales (medio hacia arriba) y retorna float."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def add_money(*amounts: Any) -> float:
    """Suma montos sin error flotante."""
    return round2(sum((to_decimal(a) for a in amounts), Decimal('0')))


def percent_of(amount: Any, percent: Any) -> float:
    """
    Calcula el porcentaje de un monto.

    percent=40 → 40% ; percent=0.5 → 0.5%
    """
    return round2(to_decimal(amount) * to_decimal(percent) / HUNDRED)


def split_amount(total: Any, percent: Any) -> Tuple[float, float]:
    """
    Reparte un total entre empleado y salón.

    Returns:
        Tupla (staff_earn, salon_earn) con staff_earn + salon_earn == total
    """
    total_dec = to_decimal(total).quantize(CENT, rounding=ROUND_HALF_UP)
    staff_dec = to_decimal(percent_of(total_dec, percent))
    return float(staff_dec), float(total_dec - staff_dec)


def positive_money(value: Any, label: str = 'Monto') -> float:
    """
    Valida un monto estrictamente positivo y lo redondea a 2 decimales.

    Raises:
        ValidationError: Si no es numérico o es <= 0
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} inválido: {value!r}")
    try:
        amount = to_decimal(value)
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"{label} inválido: {value!r}")
    if not amount.is_finite() or round2(amount) <= 0:
        raise ValidationError(f"{label} debe ser mayor a 0")
    return round2(amount)


def validate_percent(value: Any, label: str = 'Porcentaje') -> float:
    """
    Valida un porcentaje de comisión (0 a 100).

    Raises:
        ValidationError: Si no es numérico o está fuera de rango
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} inválido: {value!r}")
    try:
        percent = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} inválido: {value!r}")
    # NaN no cumple ninguna comparación: se rechaza aparte
    if not math.isfinite(percent) or percent < 0 or percent > 100:
        raise ValidationError(f"{label} debe estar entre 0 y 100")
    return percent


@dataclass(frozen=True)
class CommissionPolicy:
    """
    Porcentajes de comisión vigentes.

    Attributes:
        product_percent: Porcentaje general por venta de productos
        service_percent: Porcentaje fijo por servicios
    """
    product_percent: float = config.PRODUCT_COMMISSION_PERCENT
    service_percent: float = config.SERVICE_COMMISSION_PERCENT

    def __post_init__(self):
        validate_percent(self.product_percent, 'Porcentaje de productos')
        validate_percent(self.service_percent, 'Porcentaje de servicios')

    def product_percent_for(self, staff: Optional[Staff]) -> float:
        """
        Porcentaje que gana un empleado por vender productos.

        Un porcentaje propio configurado (incluido 0) tiene prioridad;
        None significa "usar el porcentaje general".
        """
        if staff is None:
            return 0.0
        if staff.commission_percent_override is not None:
            return float(staff.commission_percent_override)
        return float(self.product_percent)

    def service_percent_for(self, staff: Optional[Staff]) -> float:
        """Porcentaje por servicios: fijo, ignora el porcentaje propio del empleado."""
        if staff is None:
            return 0.0
        return float(self.service_percent)

    def split_product_sale(self, total: Any, staff: Optional[Staff]) -> Tuple[float, float]:
        """Retorna (staff_earn, salon_earn) para una venta de productos."""
        return split_amount(total, self.product_percent_for(staff))

    def split_service_sale(self, total: Any, staff: Optional[Staff]) -> Tuple[float, float]:
        """Retorna (staff_earn, salon_earn) para una venta de servicio."""
        return split_amount(total, self.service_percent_for(staff))
