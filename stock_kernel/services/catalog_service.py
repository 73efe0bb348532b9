"""
CatalogService -- units, suppliers and products.

Responsibility:
    Create and edit the reference rows that purchase lots point at, and
    delete them without corrupting history.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Unit, supplier and product names are non-empty and unique.  Checked
      before insert so the caller gets DuplicateNameError rather than an
      IntegrityError.
    - A unit or supplier that products still point at cannot be deleted.
    - A product referenced by any year-end count item cannot be deleted.
    - Deleting a product or supplier detaches its purchase lots (the foreign
      key becomes NULL).  The lots keep their snapshots and stay in the
      ledger.
    - Flush-only.

Failure modes:
    - InvalidNameError, UnknownFieldError.
    - DuplicateNameError, EntityInUseError, ProductReferencedError.
    - ProductNotFoundError, SupplierNotFoundError, UnitNotFoundError.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import ProductInfo, SupplierInfo, UnitInfo
from stock_kernel.exceptions import (
    DuplicateNameError,
    EntityInUseError,
    InvalidNameError,
    ProductNotFoundError,
    ProductReferencedError,
    SupplierNotFoundError,
    UnitNotFoundError,
    UnknownFieldError,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.catalog import Product, Supplier, Unit
from stock_kernel.models.purchase_lot import PurchaseLot
from stock_kernel.models.year_end_count import YearEndCountItem
from stock_kernel.services.base import BaseService

logger = get_logger("services.catalog")

SUPPLIER_FIELDS = (
    "name",
    "contact_person",
    "email",
    "phone",
    "address",
    "city",
    "country",
    "tax_id",
    "notes",
)


class CatalogService(BaseService[Product]):
    """Write operations for the catalog, returning frozen DTOs."""

    def __init__(self, session: Session):
        super().__init__(session)

    # =========================================================================
    # Units
    # =========================================================================

    def create_unit(self, name: str) -> UnitInfo:
        name = self._clean_name("Unit", name)
        if self._exists(Unit, name):
            raise DuplicateNameError("Unit", name)
        unit = Unit(name=name)
        self.session.add(unit)
        self.session.flush()
        logger.info("unit_created", extra={"unit_id": unit.id, "unit_name": name})
        return UnitInfo.from_model(unit)

    def update_unit(self, unit_id: int, name: str) -> UnitInfo:
        unit = self._require_unit(unit_id)
        name = self._clean_name("Unit", name)
        if name != unit.name and self._exists(Unit, name):
            raise DuplicateNameError("Unit", name)
        unit.name = name
        self.session.flush()
        logger.info("unit_updated", extra={"unit_id": unit_id, "unit_name": name})
        return UnitInfo.from_model(unit)

    def delete_unit(self, unit_id: int) -> None:
        unit = self._require_unit(unit_id)
        in_use = self._count_products(Product.unit_id == unit_id)
        if in_use:
            raise EntityInUseError("Unit", unit_id, in_use)
        self.session.delete(unit)
        self.session.flush()
        logger.info("unit_deleted", extra={"unit_id": unit_id})

    # =========================================================================
    # Suppliers
    # =========================================================================

    def create_supplier(self, name: str, **details: Any) -> SupplierInfo:
        self._check_supplier_fields(details)
        name = self._clean_name("Supplier", name)
        if self._exists(Supplier, name):
            raise DuplicateNameError("Supplier", name)
        supplier = Supplier(name=name, **details)
        self.session.add(supplier)
        self.session.flush()
        logger.info("supplier_created", extra={
            "supplier_id": supplier.id,
            "supplier_name": name,
        })
        return SupplierInfo.from_model(supplier)

    def update_supplier(self, supplier_id: int, **fields: Any) -> SupplierInfo:
        """Edit a supplier.  Existing lots keep the snapshot they were written with."""
        supplier = self._require_supplier(supplier_id)
        self._check_supplier_fields(fields)
        if "name" in fields:
            name = self._clean_name("Supplier", fields["name"])
            if name != supplier.name and self._exists(Supplier, name):
                raise DuplicateNameError("Supplier", name)
            fields["name"] = name
        for key, value in fields.items():
            setattr(supplier, key, value)
        self.session.flush()
        logger.info("supplier_updated", extra={
            "supplier_id": supplier_id,
            "fields": sorted(fields),
        })
        return SupplierInfo.from_model(supplier)

    def delete_supplier(self, supplier_id: int) -> int:
        """
        Delete a supplier no product points at.

        Purchase lots bought from it survive with supplier_id NULL and render
        from their supplier_snapshot.  Returns the number of lots detached.
        """
        supplier = self._require_supplier(supplier_id)
        in_use = self._count_products(Product.supplier_id == supplier_id)
        if in_use:
            logger.warning("supplier_delete_rejected", extra={
                "supplier_id": supplier_id,
                "products": in_use,
            })
            raise EntityInUseError("Supplier", supplier_id, in_use)

        lots = self.session.execute(
            select(PurchaseLot)
            .where(PurchaseLot.supplier_id == supplier_id)
            .with_for_update(of=PurchaseLot)
        ).scalars().all()
        for lot in lots:
            lot.supplier = None
        self.session.delete(supplier)
        self.session.flush()

        logger.info("supplier_deleted", extra={
            "supplier_id": supplier_id,
            "detached_lots": len(lots),
        })
        return len(lots)

    # =========================================================================
    # Products
    # =========================================================================

    def create_product(
        self,
        name: str,
        unit_id: int,
        supplier_id: int,
        description: str | None = None,
    ) -> ProductInfo:
        name = self._clean_name("Product", name)
        if self._exists(Product, name):
            raise DuplicateNameError("Product", name)
        self._require_unit(unit_id)
        self._require_supplier(supplier_id)

        product = Product(
            name=name,
            description=description,
            unit_id=unit_id,
            supplier_id=supplier_id,
        )
        self.session.add(product)
        self.session.flush()
        self.session.refresh(product)

        logger.info("product_created", extra={
            "product_id": product.id,
            "product_name": name,
        })
        return ProductInfo.from_model(product)

    def update_product(
        self,
        product_id: int,
        *,
        name: str | None = None,
        description: str | None = None,
        unit_id: int | None = None,
        supplier_id: int | None = None,
    ) -> ProductInfo:
        product = self._require_product(product_id)

        if name is not None:
            name = self._clean_name("Product", name)
            if name != product.name and self._exists(Product, name):
                raise DuplicateNameError("Product", name)
            product.name = name
        if description is not None:
            product.description = description
        if unit_id is not None:
            self._require_unit(unit_id)
            product.unit_id = unit_id
        if supplier_id is not None:
            self._require_supplier(supplier_id)
            product.supplier_id = supplier_id

        self.session.flush()
        self.session.refresh(product)
        logger.info("product_updated", extra={"product_id": product_id})
        return ProductInfo.from_model(product)

    def delete_product(self, product_id: int) -> None:
        """
        Delete a product that no count references.

        Its lots survive with product_id NULL and render from their
        product_snapshot.
        """
        product = self._require_product(product_id)

        referenced = self.session.execute(
            select(func.count(YearEndCountItem.id)).where(
                YearEndCountItem.product_id == product_id
            )
        ).scalar_one()
        if referenced:
            logger.warning("product_delete_rejected", extra={
                "product_id": product_id,
                "count_items": referenced,
            })
            raise ProductReferencedError(product_id)

        lots = self.session.execute(
            select(PurchaseLot)
            .where(PurchaseLot.product_id == product_id)
            .with_for_update(of=PurchaseLot)
        ).scalars().all()
        for lot in lots:
            lot.product = None
        detached = len(lots)
        self.session.delete(product)
        self.session.flush()

        logger.info("product_deleted", extra={
            "product_id": product_id,
            "detached_lots": detached,
        })

    def find_product_by_name(self, name: str) -> ProductInfo | None:
        product = self.session.execute(
            select(Product).where(Product.name == name)
        ).scalar_one_or_none()
        return ProductInfo.from_model(product) if product is not None else None

    # =========================================================================
    # Internal
    # =========================================================================

    def _exists(self, model: type, name: str) -> bool:
        return self.session.execute(
            select(model.id).where(model.name == name)
        ).first() is not None

    def _require_product(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def _require_unit(self, unit_id: int) -> Unit:
        unit = self.session.get(Unit, unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return unit

    def _require_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.session.get(Supplier, supplier_id)
        if supplier is None:
            raise SupplierNotFoundError(supplier_id)
        return supplier

    def _count_products(self, condition) -> int:
        return self.session.execute(
            select(func.count(Product.id)).where(condition)
        ).scalar_one()

    @staticmethod
    def _clean_name(entity: str, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidNameError(entity)
        return name

    @staticmethod
    def _check_supplier_fields(fields: dict[str, Any]) -> None:
        unknown = sorted(set(fields) - set(SUPPLIER_FIELDS))
        if unknown:
            raise UnknownFieldError("Supplier", unknown)
