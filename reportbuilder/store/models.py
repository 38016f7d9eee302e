"""Database models for the inventory store (tenant data the reports run against)."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from reportbuilder.core.database import StoreBase as Base


class Item(Base):
    """Inventory item - the root of every report."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    unit = Column(String(30), nullable=True)
    description = Column(Text, nullable=True)
    barcode = Column(String(64), nullable=True)
    min_stock = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.now)

    entries = relationship("InventoryEntry", back_populates="item")
    supplier_links = relationship("ItemSupplier", back_populates="item")


class User(Base):
    """Staff member who records inventory entries."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(200), nullable=True)
    role = Column(String(30), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.now)


class InventoryEntry(Base):
    """Stock movement for an item: type is IN or OUT."""

    __tablename__ = "inventory_entries"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    type = Column(String(3), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=True)
    note = Column(Text, nullable=True)
    batch_number = Column(String(50), nullable=True)
    expiry_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    item = relationship("Item", back_populates="entries")
    user = relationship("User")


class Supplier(Base):
    """Supplier an item can be purchased from."""

    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    contact_name = Column(String(120), nullable=True)
    email = Column(String(200), nullable=True)
    phone_number = Column(String(40), nullable=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class ItemSupplier(Base):
    """Link table between items and suppliers."""

    __tablename__ = "item_suppliers"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    unit_price = Column(Numeric(12, 2), nullable=True)
    preferred_supplier = Column(Boolean, nullable=False, default=False)

    item = relationship("Item", back_populates="supplier_links")
    supplier = relationship("Supplier")
