# ==============================================================================
# SERVICIO DE CATÁLOGO - Personal y productos
# ==============================================================================
# CRUD simple del catálogo. Los campos de comisión del personal
# (daily/monthly/yearly) NUNCA se tocan aquí: solo el ledger los modifica.
#
# Altas en lote (como en la pantalla de carga rápida):
#   - Personal:  "Ana, Luis\nMarta"       → tres empleados con las mismas secciones
#   - Productos: "Shampoo | 25 | 10"      → nombre | precio | stock
#                "Cera"                   → usa el precio/stock indicados
# ==============================================================================

import math
from typing import Any, List, Optional

from salon_ledger.exceptions import (
    InvalidQuantity,
    PersistenceError,
    ProductNotFound,
    StaffNotFound,
    ValidationError,
)
from salon_ledger.models import Product, Staff, new_id
from salon_ledger.repositories import IDocumentRepository
from salon_ledger.services.commission import positive_money, validate_percent
from salon_ledger.services.ledger_service import split_names

# Marca "no modificar" para campos donde None es un valor válido
UNCHANGED = object()


def _clean_name(value: Any, label: str) -> str:
    name = str(value or '').strip()
    if not name:
        raise ValidationError(f"{label} requerido")
    return name


def _parse_override(value: Any) -> Optional[float]:
    """'' / None → sin porcentaje propio; cualquier otro valor debe estar en 0..100."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return validate_percent(value, 'Porcentaje propio')


def _parse_stock(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Stock inválido: {value!r}")
    try:
        stock = float(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"Stock inválido: {value!r}")
    if not math.isfinite(stock) or stock < 0 or stock != int(stock):
        raise ValidationError("El stock debe ser un entero mayor o igual a 0")
    return int(stock)


def _parse_sections(value: Any) -> List[Any]:
    if value is None or isinstance(value, (str, list, tuple)):
        return split_names(value)
    raise ValidationError(f"Secciones inválidas: {value!r}")


class CatalogService:
    """
    Servicio para gestión del catálogo.

    Responsabilidades:
    - Alta, edición y baja de personal
    - Alta (individual y en lote), edición, baja y reposición de productos
    """

    def __init__(self, document_repo: IDocumentRepository):
        self.document_repo = document_repo

    def _persist(self, result: Any) -> Any:
        try:
            self.document_repo.save()
        except PersistenceError as e:
            print(f"[CATÁLOGO ERROR] Cambio aplicado en memoria pero no guardado: {e}")
            raise PersistenceError(str(e), result=result) from e
        return result

    # =========================================================================
    # PERSONAL
    # =========================================================================

    def list_staff(self) -> List[Staff]:
        return list(self.document_repo.load().staff)

    def get_staff(self, staff_id: str) -> Staff:
        staff = self.document_repo.load().find_staff(staff_id)
        if staff is None:
            raise StaffNotFound(f"Empleado {staff_id} no encontrado")
        return staff

    def create_staff(
        self,
        name: Any,
        sections: Any,
        commission_percent_override: Any = None,
        phone: str = ''
    ) -> List[Staff]:
        """
        Da de alta uno o varios empleados.

        Args:
            name: Nombre, o varios separados por comas/saltos de línea
            sections: Lista de secciones (o string "MANICURE, PEDICURE")
            commission_percent_override: Porcentaje propio para productos (None = general)
            phone: Teléfono

        Returns:
            Lista de empleados creados

        Raises:
            ValidationError: sin nombres, sin secciones, sección o porcentaje inválidos
        """
        names = split_names(name if isinstance(name, (str, list)) else str(name or ''))
        if not names:
            raise ValidationError("Nombre del empleado requerido")
        override = _parse_override(commission_percent_override)
        section_list = _parse_sections(sections)

        with self.document_repo.lock:
            document = self.document_repo.load()
            # Construir todos antes de agregar: si uno falla no se agrega ninguno
            created = [
                Staff(
                    id=new_id('STF'),
                    name=_clean_name(n, 'Nombre del empleado'),
                    sections=section_list,
                    commission_percent_override=override,
                    phone=str(phone or '').strip(),
                )
                for n in names
            ]
            document.staff.extend(created)
            print(f"[CATÁLOGO] {len(created)} empleado(s) agregado(s): {', '.join(s.name for s in created)}")
            return self._persist(created)

    def update_staff(
        self,
        staff_id: str,
        name: Any = None,
        sections: Any = None,
        commission_percent_override: Any = UNCHANGED,
        phone: Any = None
    ) -> Staff:
        """
        Edita los datos de identidad de un empleado (no sus comisiones).

        Raises:
            StaffNotFound: empleado inexistente
            ValidationError: datos inválidos (no se aplica ningún cambio)
        """
        with self.document_repo.lock:
            staff = self.get_staff(staff_id)

            new_name = _clean_name(name, 'Nombre del empleado') if name is not None else staff.name
            if sections is not None:
                # Validar con un Staff temporal (normaliza y rechaza listas vacías)
                new_sections = Staff(
                    id=staff.id, name=new_name, sections=_parse_sections(sections)
                ).sections
            else:
                new_sections = staff.sections
            if commission_percent_override is UNCHANGED:
                new_override = staff.commission_percent_override
            else:
                new_override = _parse_override(commission_percent_override)

            staff.name = new_name
            staff.sections = new_sections
            staff.commission_percent_override = new_override
            if phone is not None:
                staff.phone = str(phone).strip()

            return self._persist(staff)

    def delete_staff(self, staff_id: str) -> Staff:
        """
        Elimina un empleado. Sus transacciones y sueldos conservan el nombre.

        Raises:
            StaffNotFound: empleado inexistente
        """
        with self.document_repo.lock:
            staff = self.get_staff(staff_id)
            self.document_repo.load().staff.remove(staff)
            print(f"[CATÁLOGO] Empleado eliminado: {staff.name}")
            return self._persist(staff)

    # =========================================================================
    # PRODUCTOS
    # =========================================================================

    def list_products(self) -> List[Product]:
        return list(self.document_repo.load().products)

    def get_product(self, product_id: str) -> Product:
        product = self.document_repo.load().find_product(product_id)
        if product is None:
            raise ProductNotFound(f"Producto {product_id} no encontrado")
        return product

    def _build_product(self, name: Any, price: Any, stock: Any) -> Product:
        return Product(
            id=new_id('PRD'),
            name=_clean_name(name, 'Nombre del producto'),
            price=positive_money(price, 'Precio'),
            stock=_parse_stock(stock),
        )

    def create_product(self, name: Any, price: Any, stock: Any = 0) -> Product:
        """Alta de un producto individual."""
        return self.create_products([{'name': name, 'price': price, 'stock': stock}])[0]

    def create_products(self, text: Any, price: Any = None, stock: Any = 0) -> List[Product]:
        """
        Alta de productos en lote.

        Args:
            text: Una línea por producto: "nombre" o "nombre | precio | stock".
                  También acepta lista de strings o de dicts {name, price, stock}
            price: Precio por defecto para líneas sin precio
            stock: Stock por defecto para líneas sin stock

        Returns:
            Lista de productos creados

        Raises:
            ValidationError: alguna línea inválida (no se crea ninguno)
        """
        if isinstance(text, str):
            lines = [line.strip() for line in text.splitlines() if line.strip()]
        else:
            lines = [item for item in (text or []) if item not in (None, '')]
        if not lines:
            raise ValidationError("Indica al menos un producto")

        products = []
        for line in lines:
            if isinstance(line, dict):
                products.append(self._build_product(
                    line.get('name'), line.get('price', price), line.get('stock', stock)
                ))
                continue
            parts = [p.strip() for p in str(line).split('|')]
            line_price = parts[1] if len(parts) > 1 and parts[1] else price
            line_stock = parts[2] if len(parts) > 2 and parts[2] else stock
            products.append(self._build_product(parts[0], line_price, line_stock))

        with self.document_repo.lock:
            self.document_repo.load().products.extend(products)
            print(f"[CATÁLOGO] {len(products)} producto(s) agregado(s)")
            return self._persist(products)

    def update_product(
        self,
        product_id: str,
        name: Any = None,
        price: Any = None,
        stock: Any = None
    ) -> Product:
        """
        Edita un producto.

        Raises:
            ProductNotFound: producto inexistente
            ValidationError: datos inválidos (no se aplica ningún cambio)
        """
        with self.document_repo.lock:
            product = self.get_product(product_id)
            new_name = _clean_name(name, 'Nombre del producto') if name is not None else product.name
            new_price = positive_money(price, 'Precio') if price is not None else product.price
            new_stock = _parse_stock(stock) if stock is not None else product.stock

            product.name = new_name
            product.price = new_price
            product.stock = new_stock
            return self._persist(product)

    def delete_product(self, product_id: str) -> Product:
        """Elimina un producto. Las transacciones conservan su nombre."""
        with self.document_repo.lock:
            product = self.get_product(product_id)
            self.document_repo.load().products.remove(product)
            print(f"[CATÁLOGO] Producto eliminado: {product.name}")
            return self._persist(product)

    def restock(self, product_id: str, quantity: Any) -> Product:
        """
        Suma unidades al stock.

        Raises:
            ProductNotFound: producto inexistente
            InvalidQuantity: cantidad no entera o <= 0
        """
        with self.document_repo.lock:
            product = self.get_product(product_id)
            try:
                amount = _parse_stock(quantity)
            except ValidationError:
                raise InvalidQuantity(f"Cantidad inválida: {quantity!r}")
            if amount <= 0:
                raise InvalidQuantity("La cantidad a reponer debe ser mayor a 0")
            product.stock += amount
            print(f"[CATÁLOGO] Stock de {product.name}: +{amount} → {product.stock}")
            return self._persist(product)
