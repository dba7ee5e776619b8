# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio del salón.
# Diseñadas para ser independientes del mecanismo de persistencia.
#
# FORMATO EN DISCO: claves camelCase (compatibles con el data.json de la
# versión de escritorio). from_dict() acepta también las formas
# legacy (section como string, staffID, qty, payment, date...) y las normaliza
# UNA sola vez al cargar.
# ==============================================================================

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from salon_ledger.exceptions import ValidationError


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class Section(str, Enum):
    """Secciones del salón. Un empleado solo atiende servicios de sus secciones."""
    MANICURE = "MANICURE"
    PEDICURE = "PEDICURE"
    BARBER = "BARBER"

    @classmethod
    def parse(cls, value: Any) -> 'Section':
        """Convierte un string (cualquier mayúscula/minúscula) en Section."""
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().upper()
        try:
            return cls(key)
        except ValueError:
            valid = ', '.join(s.value for s in cls)
            raise ValidationError(f"Sección inválida: {value!r} (válidas: {valid})")


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados."""
    CASH = "Cash"
    CARD = "Card"
    TRANSFER = "Transfer"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> 'PaymentMethod':
        if isinstance(value, cls):
            return value
        key = str(value or '').strip().lower()
        if not key:
            return cls.CASH
        for method in cls:
            if method.value.lower() == key:
                return method
        valid = ', '.join(m.value for m in cls)
        raise ValidationError(f"Método de pago inválido: {value!r} (válidos: {valid})")


class UserRole(str, Enum):
    """Roles de usuario disponibles en el sistema."""
    ADMIN = "admin"
    OPERATOR = "operator"


# ==============================================================================
# HELPERS
# ==============================================================================

def new_id(prefix: str) -> str:
    """Genera un ID legible con prefijo: STF1A2B3C4D, TX9F8E7D6C..."""
    return f"{prefix}{uuid.uuid4().hex[:8].upper()}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parsea un timestamp ISO. Retorna None si no se puede.
    Las fechas sin zona horaria se asumen UTC.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except (ValueError, TypeError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _money(value: Any) -> float:
    try:
        return round(float(value or 0), 2)
    except (TypeError, ValueError):
        return 0.0


def _optional_id(value: Any) -> Optional[str]:
    value = str(value).strip() if value is not None else ''
    return value or None


# ==============================================================================
# USUARIOS
# ==============================================================================

@dataclass
class User:
    """
    Usuario del sistema.

    Attributes:
        username: Identificador único (sensible a mayúsculas)
        password: Hash werkzeug (o texto plano en documentos legacy)
        role: Rol del usuario
    """
    username: str
    password: str
    role: UserRole = UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {
            'username': self.username,
            'password': self.password,
            'role': self.role.value if isinstance(self.role, Enum) else self.role,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        try:
            role = UserRole(data.get('role', 'admin'))
        except ValueError:
            role = UserRole.OPERATOR
        return cls(
            username=data.get('username', ''),
            password=data.get('password', ''),
            role=role,
        )


# ==============================================================================
# CATÁLOGO: PERSONAL Y PRODUCTOS
# ==============================================================================

@dataclass
class Staff:
    """
    Empleado del salón con sus acumulados de comisión.

    Attributes:
        id: Identificador único (STF...)
        name: Nombre visible
        sections: Secciones donde trabaja (nunca vacío)
        commission_percent_override: Porcentaje propio para productos (None = usar el general)
        phone: Teléfono de contacto
        daily: Acumulado "del día" (solo se limpia al pagar sueldo)
        monthly: Comisión pendiente de pago
        yearly: Total acumulado del año
    """
    id: str
    name: str
    sections: List[Section]
    commission_percent_override: Optional[float] = None
    phone: str = ''
    daily: float = 0.0
    monthly: float = 0.0
    yearly: float = 0.0

    def __post_init__(self):
        # Normalizar a lista ordenada sin duplicados
        unique: List[Section] = []
        for s in self.sections or []:
            section = Section.parse(s)
            if section not in unique:
                unique.append(section)
        if not unique:
            raise ValidationError(f"El empleado '{self.name}' debe tener al menos una sección")
        self.sections = unique

    def works_in(self, section: Section) -> bool:
        """Verifica si el empleado puede atender servicios de la sección."""
        return Section.parse(section) in self.sections

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'sections': [s.value for s in self.sections],
            'commissionPercentOverride': self.commission_percent_override,
            'phone': self.phone,
            'daily': self.daily,
            'monthly': self.monthly,
            'yearly': self.yearly,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Staff':
        """Crea instancia desde diccionario (acepta formato legacy)."""
        raw_sections = data.get('sections')
        if raw_sections is None:
            raw_sections = data.get('section')
        if isinstance(raw_sections, str):
            raw_sections = [raw_sections]

        if 'commissionPercentOverride' in data:
            override = data.get('commissionPercentOverride')
            override = float(override) if override is not None else None
            if override is not None and not math.isfinite(override):
                raise ValidationError(f"Porcentaje propio inválido: {override!r}")
        else:
            # Legacy: "percent" vacío o 0 significaba "usar el porcentaje general"
            try:
                legacy = float(data.get('percent') or 0)
            except (TypeError, ValueError):
                legacy = 0.0
            override = legacy if legacy > 0 else None

        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            sections=list(raw_sections or []),
            commission_percent_override=override,
            phone=data.get('phone', '') or '',
            daily=max(0.0, _money(data.get('daily'))),
            monthly=max(0.0, _money(data.get('monthly'))),
            yearly=max(0.0, _money(data.get('yearly'))),
        )


@dataclass
class Product:
    """
    Producto a la venta.

    Attributes:
        id: Identificador único (PRD...)
        name: Nombre del producto
        price: Precio unitario (> 0)
        stock: Unidades disponibles (>= 0)
    """
    id: str
    name: str
    price: float
    stock: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'price': self.price,
            'stock': self.stock,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        try:
            stock = int(data.get('stock') or 0)
        except (TypeError, ValueError):
            stock = 0
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            price=_money(data.get('price')),
            stock=max(0, stock),
        )


# ==============================================================================
# DIARIOS (append-only): TRANSACCIONES Y SUELDOS
# ==============================================================================

@dataclass(frozen=True)
class Transaction:
    """
    Venta registrada (producto o servicio). Inmutable una vez creada.

    Invariante: staff_earn + salon_earn == total

    Los nombres de producto y empleado se guardan desnormalizados para que el
    historial sobreviva al borrado del catálogo.
    """
    id: str
    product_id: Optional[str]
    product_name: str
    quantity: int
    total: float
    staff_id: Optional[str]
    staff_name: str
    staff_earn: float
    salon_earn: float
    payment_method: str
    timestamp: str

    @property
    def is_service(self) -> bool:
        """Los servicios no tienen producto asociado."""
        return not self.product_id

    @property
    def moment(self) -> Optional[datetime]:
        return parse_timestamp(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'productId': self.product_id or '',
            'productName': self.product_name,
            'quantity': self.quantity,
            'total': self.total,
            'staffId': self.staff_id or '',
            'staffName': self.staff_name,
            'staffEarn': self.staff_earn,
            'salonEarn': self.salon_earn,
            'paymentMethod': self.payment_method,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Crea instancia desde diccionario (acepta staffID/qty/payment/date legacy)."""
        quantity = data.get('quantity', data.get('qty', 1))
        try:
            quantity = int(quantity or 1)
        except (TypeError, ValueError):
            quantity = 1
        return cls(
            id=str(data.get('id', '')),
            product_id=_optional_id(data.get('productId')),
            product_name=data.get('productName', ''),
            quantity=quantity,
            total=_money(data.get('total')),
            staff_id=_optional_id(data.get('staffId', data.get('staffID'))),
            staff_name=data.get('staffName', '') or '',
            staff_earn=_money(data.get('staffEarn')),
            salon_earn=_money(data.get('salonEarn')),
            payment_method=data.get('paymentMethod', data.get('payment', 'Cash')) or 'Cash',
            timestamp=data.get('timestamp', data.get('date', '')) or '',
        )


@dataclass(frozen=True)
class SalaryRecord:
    """
    Pago de sueldo a un empleado. Inmutable.

    Invariante: moved_total == moved_daily + moved_monthly

    amount_paid es el valor de `monthly` ANTES del pago; moved_* registra lo
    que se consolidó en `yearly`.
    """
    id: str
    staff_id: str
    staff_name: str
    amount_paid: float
    moved_daily: float
    moved_monthly: float
    moved_total: float
    timestamp: str
    year: int
    month: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'staffId': self.staff_id,
            'staffName': self.staff_name,
            'amountPaid': self.amount_paid,
            'movedDaily': self.moved_daily,
            'movedMonthly': self.moved_monthly,
            'movedTotal': self.moved_total,
            'timestamp': self.timestamp,
            'year': self.year,
            'month': self.month,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SalaryRecord':
        """Crea instancia desde diccionario (acepta amount/datetime/staffID legacy)."""
        amount = _money(data.get('amountPaid', data.get('amount')))
        moved_monthly = _money(data.get('movedMonthly', amount))
        moved_daily = _money(data.get('movedDaily', 0))
        timestamp = data.get('timestamp', data.get('datetime', '')) or ''
        moment = parse_timestamp(timestamp)
        return cls(
            id=str(data.get('id', '')),
            staff_id=str(data.get('staffId', data.get('staffID', '')) or ''),
            staff_name=data.get('staffName', '') or '',
            amount_paid=amount,
            moved_daily=moved_daily,
            moved_monthly=moved_monthly,
            moved_total=round(moved_daily + moved_monthly, 2),
            timestamp=timestamp,
            year=int(data.get('year') or (moment.year if moment else 0)),
            month=int(data.get('month') or (moment.month if moment else 0)),
        )


# ==============================================================================
# GASTOS
# ==============================================================================

@dataclass
class Expense:
    """
    Gasto del salón. Editable y eliminable; solo afecta reportes de ganancia.

    Attributes:
        id: Identificador único (EXP...)
        title: Descripción
        amount: Monto (> 0)
        date: Fecha YYYY-MM-DD
        payment_method: Método de pago
    """
    id: str
    title: str
    amount: float
    date: str
    payment_method: str = PaymentMethod.CASH.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'amount': self.amount,
            'date': self.date,
            'paymentMethod': self.payment_method,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        return cls(
            id=str(data.get('id', '')),
            title=data.get('title', ''),
            amount=_money(data.get('amount')),
            date=str(data.get('date', '') or ''),
            payment_method=data.get('paymentMethod', data.get('payment', 'Cash')) or 'Cash',
        )


# ==============================================================================
# DOCUMENTO - raíz del agregado
# ==============================================================================

@dataclass
class Document:
    """
    Snapshot completo del sistema. Es la única copia de trabajo en memoria;
    se persiste entera en cada operación que la modifica.
    """
    users: List[User] = field(default_factory=list)
    staff: List[Staff] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    salary_history: List[SalaryRecord] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)

    @classmethod
    def seeded(cls, username: str, password_hash: str) -> 'Document':
        """Documento inicial: un administrador y colecciones vacías."""
        return cls(users=[User(username=username, password=password_hash, role=UserRole.ADMIN)])

    def find_staff(self, staff_id: Any) -> Optional[Staff]:
        for s in self.staff:
            if s.id == staff_id:
                return s
        return None

    def find_product(self, product_id: Any) -> Optional[Product]:
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def find_expense(self, expense_id: Any) -> Optional[Expense]:
        for e in self.expenses:
            if e.id == expense_id:
                return e
        return None

    def find_user(self, username: str) -> Optional[User]:
        for u in self.users:
            if u.username == username:
                return u
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'users': [u.to_dict() for u in self.users],
            'staff': [s.to_dict() for s in self.staff],
            'products': [p.to_dict() for p in self.products],
            'transactions': [t.to_dict() for t in self.transactions],
            'salaryHistory': [r.to_dict() for r in self.salary_history],
            'expenses': [e.to_dict() for e in self.expenses],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Document':
        """
        Crea el documento desde JSON. Colecciones faltantes quedan vacías.

        Raises:
            ValidationError: Si la raíz no es un objeto o algún registro es inválido
        """
        if not isinstance(data, dict):
            raise ValidationError("El documento debe ser un objeto JSON")
        return cls(
            users=[User.from_dict(u) for u in data.get('users') or []],
            staff=[Staff.from_dict(s) for s in data.get('staff') or []],
            products=[Product.from_dict(p) for p in data.get('products') or []],
            transactions=[Transaction.from_dict(t) for t in data.get('transactions') or []],
            salary_history=[SalaryRecord.from_dict(r) for r in data.get('salaryHistory') or []],
            expenses=[Expense.from_dict(e) for e in data.get('expenses') or []],
        )
