# ==============================================================================
# SERVICIO DE LEDGER - Ventas, comisiones y sueldos
# ==============================================================================
# Centraliza TODA la lógica que mueve dinero:
#   - Venta de productos (descuenta stock, reparte comisión)
#   - Venta de servicios (comisión fija, valida sección del empleado)
#   - Pago de sueldos (consolida daily + monthly en yearly)
#
# REGLA DE ORO: validar TODO antes de tocar un solo campo. Si una operación
# falla, el documento queda exactamente como estaba.
#
# Cada operación corre dentro del lock del repositorio (escritor único) y
# termina con un guardado síncrono. Si el guardado falla se lanza
# PersistenceError con el resultado adjunto; la mutación en memoria se mantiene.
# ==============================================================================

import re
from typing import Any, Callable, Dict, List, Optional, Union

from salon_ledger.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    LedgerError,
    NothingToPay,
    PersistenceError,
    ProductNotFound,
    SectionMismatch,
    StaffNotFound,
    ValidationError,
)
from salon_ledger.models import (
    Document,
    PaymentMethod,
    SalaryRecord,
    Section,
    Staff,
    Transaction,
    new_id,
    utc_now,
)
from salon_ledger.performance_logger import profile_function
from salon_ledger.repositories import IDocumentRepository
from salon_ledger.services.commission import (
    CommissionPolicy,
    add_money,
    positive_money,
    round2,
    to_decimal,
)

# Separadores para listas escritas a mano: "Corte, Barba\nAfeitado"
NAME_SEPARATORS = re.compile(r'[\r\n,]+')


def split_names(raw: Union[str, List[Any], None]) -> List[Any]:
    """
    Divide una lista de nombres delimitada por comas/saltos de línea.
    Las listas se devuelven tal cual (sin vacíos).

    Raises:
        ValidationError: si no es texto ni lista
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        return [part.strip() for part in NAME_SEPARATORS.split(raw) if part.strip()]
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(f"Lista de nombres inválida: {raw!r}")
    return [item for item in raw if item not in (None, '')]


class LedgerService:
    """
    Motor del ledger de comisiones.

    Responsabilidades:
    - Calcular el reparto empleado/salón de cada venta (vía CommissionPolicy)
    - Acumular comisiones en daily/monthly/yearly del empleado
    - Registrar transacciones y pagos de sueldo (diarios append-only)
    - Persistir el documento tras cada operación
    """

    def __init__(
        self,
        document_repo: IDocumentRepository,
        policy: CommissionPolicy = None,
        clock: Callable = None
    ):
        """
        Inicializa el servicio.

        Args:
            document_repo: Repositorio del documento
            policy: Porcentajes de comisión (por defecto los de config)
            clock: Función que retorna el datetime actual (inyectable en tests)
        """
        self.document_repo = document_repo
        self.policy = policy or CommissionPolicy()
        self._clock = clock or utc_now

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _resolve_staff(self, document: Document, staff_id: Any) -> Optional[Staff]:
        """Retorna el empleado o None si no se indicó. ID desconocido → error."""
        if staff_id in (None, ''):
            return None
        staff = document.find_staff(staff_id)
        if staff is None:
            raise StaffNotFound(f"Empleado {staff_id} no encontrado")
        return staff

    @staticmethod
    def _validate_quantity(quantity: Any) -> int:
        if isinstance(quantity, bool):
            raise InvalidQuantity(f"Cantidad inválida: {quantity!r}")
        try:
            value = to_decimal(quantity)
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidQuantity(f"Cantidad inválida: {quantity!r}")
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidQuantity(f"Cantidad inválida: {quantity!r}")
        if value <= 0:
            raise InvalidQuantity("La cantidad debe ser mayor a 0")
        return int(value)

    @staticmethod
    def _accrue(staff: Staff, amount: float) -> None:
        """Suma la comisión a los tres horizontes del empleado."""
        if amount <= 0:
            return
        staff.daily = add_money(staff.daily, amount)
        staff.monthly = add_money(staff.monthly, amount)
        staff.yearly = add_money(staff.yearly, amount)

    def _persist(self, result: Any) -> Any:
        """
        Guarda el documento y retorna el resultado de la operación.

        Raises:
            PersistenceError: Con `result` adjunto (la mutación NO se revierte)
        """
        try:
            self.document_repo.save()
        except PersistenceError as e:
            print(f"[LEDGER ERROR] Operación aplicada en memoria pero no guardada: {e}")
            raise PersistenceError(str(e), result=result) from e
        return result

    # =========================================================================
    # VENTA DE PRODUCTOS
    # =========================================================================

    @profile_function(name="Vender producto")
    def sell_product(
        self,
        product_id: str,
        quantity: Any = 1,
        staff_id: str = None,
        payment_method: Any = PaymentMethod.CASH,
        unit_price: Any = None
    ) -> Transaction:
        """
        Vende un producto del catálogo.

        Args:
            product_id: ID del producto
            quantity: Unidades (entero > 0)
            staff_id: Empleado que vendió (opcional, recibe comisión)
            payment_method: Método de pago
            unit_price: Precio unitario manual; si viene, tiene prioridad sobre el del catálogo

        Returns:
            Transacción registrada

        Raises:
            InvalidQuantity: cantidad <= 0 o no entera
            ProductNotFound: producto inexistente
            StaffNotFound: empleado indicado inexistente
            InsufficientStock: stock < cantidad
            ValidationError: precio manual no positivo o método de pago inválido
        """
        with self.document_repo.lock:
            document = self.document_repo.load()

            qty = self._validate_quantity(quantity)
            product = document.find_product(product_id)
            if product is None:
                raise ProductNotFound(f"Producto {product_id} no encontrado")
            method = PaymentMethod.parse(payment_method)
            staff = self._resolve_staff(document, staff_id)

            if unit_price is None or unit_price == '':
                price = product.price
            else:
                price = positive_money(unit_price, 'Precio unitario')

            if product.stock < qty:
                raise InsufficientStock(
                    f"Stock insuficiente para {product.name}. "
                    f"Solicitado: {qty}, Disponible: {product.stock}"
                )

            total = round2(to_decimal(price) * qty)
            staff_earn, salon_earn = self.policy.split_product_sale(total, staff)

            # A partir de aquí solo mutaciones
            product.stock -= qty
            if staff is not None:
                self._accrue(staff, staff_earn)

            transaction = Transaction(
                id=new_id('TX'),
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                total=total,
                staff_id=staff.id if staff else None,
                staff_name=staff.name if staff else '',
                staff_earn=staff_earn,
                salon_earn=salon_earn,
                payment_method=method.value,
                timestamp=self._clock().isoformat(),
            )
            document.transactions.append(transaction)

            print(
                f"[LEDGER] Venta {transaction.id}: {product.name} x{qty} = {total:.2f} "
                f"(personal {staff_earn:.2f} / salón {salon_earn:.2f})"
            )
            return self._persist(transaction)

    # =========================================================================
    # VENTA DE SERVICIOS
    # =========================================================================

    def _sell_service_entry(
        self,
        document: Document,
        name: Any,
        section: Any,
        price: Any,
        staff_id: Any,
        payment_method: Any
    ) -> Transaction:
        """
        Valida y registra UN servicio en el documento (sin guardar).

        La comisión es SIEMPRE la de servicios, aunque el empleado tenga
        porcentaje propio para productos.
        """
        service_name = str(name or '').strip()
        if not service_name:
            raise ValidationError("Nombre del servicio requerido")
        service_section = Section.parse(section)
        amount = positive_money(price, 'Precio del servicio')
        method = PaymentMethod.parse(payment_method)
        staff = self._resolve_staff(document, staff_id)

        if staff is not None and not staff.works_in(service_section):
            raise SectionMismatch(
                f"{staff.name} no puede atender servicios de {service_section.value}"
            )

        staff_earn, salon_earn = self.policy.split_service_sale(amount, staff)

        if staff is not None:
            self._accrue(staff, staff_earn)

        transaction = Transaction(
            id=new_id('TX'),
            product_id=None,
            product_name=f"{service_name} ({service_section.value})",
            quantity=1,
            total=amount,
            staff_id=staff.id if staff else None,
            staff_name=staff.name if staff else '',
            staff_earn=staff_earn,
            salon_earn=salon_earn,
            payment_method=method.value,
            timestamp=self._clock().isoformat(),
        )
        document.transactions.append(transaction)

        print(
            f"[LEDGER] Servicio {transaction.id}: {transaction.product_name} = {amount:.2f} "
            f"(personal {staff_earn:.2f} / salón {salon_earn:.2f})"
        )
        return transaction

    @profile_function(name="Vender servicio")
    def sell_service(
        self,
        name: str,
        section: Any,
        price: Any,
        staff_id: str = None,
        payment_method: Any = PaymentMethod.CASH
    ) -> Transaction:
        """
        Vende un servicio.

        Args:
            name: Nombre del servicio (ej: "Deluxe Manicure")
            section: Sección del servicio
            price: Precio (> 0)
            staff_id: Empleado que atendió (debe trabajar en la sección)
            payment_method: Método de pago

        Returns:
            Transacción registrada (sin producto, cantidad 1)

        Raises:
            ValidationError: nombre vacío, sección/método inválidos, precio <= 0
            StaffNotFound: empleado indicado inexistente
            SectionMismatch: el empleado no trabaja en la sección
        """
        with self.document_repo.lock:
            document = self.document_repo.load()
            transaction = self._sell_service_entry(
                document, name, section, price, staff_id, payment_method
            )
            return self._persist(transaction)

    @profile_function(name="Vender servicios (lote)")
    def sell_services(
        self,
        names: Union[str, List[Any]],
        section: Any = None,
        price: Any = None,
        staff_id: str = None,
        payment_method: Any = PaymentMethod.CASH
    ) -> Dict[str, Any]:
        """
        Vende varios servicios de una vez. Cada entrada se valida y vende por
        separado: si una falla (ej: sección incorrecta) solo se omite esa.

        Args:
            names: "Corte, Barba" / lista de nombres / lista de dicts
                   {name, section?, price?, staffId?, paymentMethod?} que
                   sobrescriben los valores comunes
            section, price, staff_id, payment_method: valores comunes

        Returns:
            Dict con resultado:
            - ok: True si se vendió al menos un servicio
            - transactions: transacciones registradas
            - errors: [{name, error}] de las entradas omitidas
            - count: cantidad vendida

        Raises:
            ValidationError: si no hay ningún nombre
            PersistenceError: si falla el guardado (resultado adjunto)
        """
        entries = split_names(names)
        if not entries:
            raise ValidationError("Indica al menos un servicio")

        transactions: List[Transaction] = []
        errors: List[Dict[str, str]] = []

        with self.document_repo.lock:
            document = self.document_repo.load()

            for entry in entries:
                if not isinstance(entry, (str, dict)):
                    print(f"[LEDGER] Entrada de servicio inválida omitida: {entry!r}")
                    errors.append({'name': repr(entry), 'error': 'Entrada de servicio inválida'})
                    continue
                if isinstance(entry, dict):
                    entry_name = entry.get('name')
                    entry_section = entry.get('section', section)
                    entry_price = entry.get('price', price)
                    entry_staff = entry.get('staffId', entry.get('staff_id', staff_id))
                    entry_method = entry.get('paymentMethod', entry.get('payment_method', payment_method))
                else:
                    entry_name, entry_section, entry_price = entry, section, price
                    entry_staff, entry_method = staff_id, payment_method

                try:
                    transactions.append(self._sell_service_entry(
                        document, entry_name, entry_section, entry_price,
                        entry_staff, entry_method
                    ))
                except LedgerError as e:
                    print(f"[LEDGER] Servicio omitido '{entry_name}': {e}")
                    errors.append({'name': str(entry_name or ''), 'error': str(e)})

            result = {
                'ok': bool(transactions),
                'transactions': transactions,
                'errors': errors,
                'count': len(transactions),
            }
            if not transactions:
                return result
            return self._persist(result)

    # =========================================================================
    # PAGO DE SUELDOS
    # =========================================================================

    @profile_function(name="Pagar sueldo")
    def pay_salary(self, staff_id: str) -> SalaryRecord:
        """
        Paga la comisión mensual de un empleado.

        Efectos:
        - Registra amount_paid = monthly (valor antes del pago)
        - yearly += daily + monthly
        - daily = 0, monthly = 0

        "daily" nunca se limpia por otra vía: el pago de sueldo es el único
        punto de corte que consolida lo acumulado en el total anual.

        Raises:
            StaffNotFound: empleado inexistente
            NothingToPay: monthly <= 0
        """
        with self.document_repo.lock:
            document = self.document_repo.load()
            staff = self._resolve_staff(document, staff_id)
            if staff is None:
                raise StaffNotFound("Selecciona un empleado")
            if staff.monthly <= 0:
                raise NothingToPay(f"{staff.name} no tiene comisión mensual por pagar")

            moved_daily = round2(staff.daily)
            moved_monthly = round2(staff.monthly)
            moved_total = add_money(moved_daily, moved_monthly)
            now = self._clock()

            record = SalaryRecord(
                id=new_id('SAL'),
                staff_id=staff.id,
                staff_name=staff.name,
                amount_paid=moved_monthly,
                moved_daily=moved_daily,
                moved_monthly=moved_monthly,
                moved_total=moved_total,
                timestamp=now.isoformat(),
                year=now.year,
                month=now.month,
            )

            staff.yearly = add_money(staff.yearly, moved_total)
            staff.daily = 0.0
            staff.monthly = 0.0
            document.salary_history.append(record)

            print(f"[LEDGER] Sueldo {record.id}: {moved_monthly:.2f} pagado a {staff.name}")
            return self._persist(record)
