"""Sample inventory data for two tenants, used for local runs and the test suite."""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.orm import Session

from reportbuilder.store.models import InventoryEntry, Item, ItemSupplier, Supplier, User

logger = logging.getLogger(__name__)

TENANT_A = "tenant-a"
TENANT_B = "tenant-b"


def clear_store(session: Session) -> None:
    for model in (ItemSupplier, InventoryEntry, Supplier, User, Item):
        session.execute(delete(model))
    session.commit()


def seed_sample_data(session: Session) -> None:
    """
    Replace the store contents with a small, fixed data set.

    tenant-a has four active items (one of them without entries or
    suppliers), one inactive item, entries with missing prices and users,
    and an item linked to two suppliers. tenant-b has a single item.
    """
    clear_store(session)

    session.add_all(
        [
            Item(id=1, tenant_id=TENANT_A, name="Flour", category="Baking", unit="kg",
                 min_stock=5, created_at=datetime(2024, 1, 1)),
            Item(id=2, tenant_id=TENANT_A, name="Sugar", category="Baking", unit="kg",
                 min_stock=2, created_at=datetime(2024, 1, 2)),
            Item(id=3, tenant_id=TENANT_A, name="Olive Oil", category="Oils, Vinegars", unit="l",
                 description='Extra "virgin", cold pressed', created_at=datetime(2024, 1, 3)),
            Item(id=4, tenant_id=TENANT_A, name="Old Salt", category="Baking", unit="kg",
                 is_active=False, created_at=datetime(2024, 1, 4)),
            Item(id=5, tenant_id=TENANT_A, name="Saffron", category=None, unit="g",
                 created_at=datetime(2024, 1, 5)),
            Item(id=6, tenant_id=TENANT_B, name="Rice", category="Grains", unit="kg",
                 created_at=datetime(2024, 1, 6)),
        ]
    )
    session.add_all(
        [
            User(id=1, tenant_id=TENANT_A, name="Alice", email="alice@example.com", role="manager",
                 created_at=datetime(2023, 12, 1)),
            User(id=2, tenant_id=TENANT_A, name="Bob", email="bob@example.com", role="staff",
                 created_at=datetime(2023, 12, 2)),
            User(id=3, tenant_id=TENANT_B, name="Carol", email="carol@example.com", role="manager",
                 created_at=datetime(2023, 12, 3)),
        ]
    )
    session.flush()

    session.add_all(
        [
            InventoryEntry(id=1, tenant_id=TENANT_A, item_id=1, user_id=1, type="IN",
                           quantity=Decimal("10"), unit_price=Decimal("2.50"), created_at=datetime(2024, 2, 1)),
            InventoryEntry(id=2, tenant_id=TENANT_A, item_id=1, user_id=2, type="OUT",
                           quantity=Decimal("3"), unit_price=None, created_at=datetime(2024, 2, 2)),
            InventoryEntry(id=3, tenant_id=TENANT_A, item_id=2, user_id=1, type="IN",
                           quantity=Decimal("5"), unit_price=Decimal("4.00"), created_at=datetime(2024, 2, 3)),
            InventoryEntry(id=4, tenant_id=TENANT_A, item_id=3, user_id=None, type="IN",
                           quantity=Decimal("2"), unit_price=Decimal("12.00"), created_at=datetime(2024, 2, 4)),
            InventoryEntry(id=5, tenant_id=TENANT_A, item_id=4, user_id=1, type="IN",
                           quantity=Decimal("7"), unit_price=Decimal("1.00"), created_at=datetime(2024, 2, 5)),
            InventoryEntry(id=6, tenant_id=TENANT_B, item_id=6, user_id=3, type="IN",
                           quantity=Decimal("20"), unit_price=Decimal("1.50"), created_at=datetime(2024, 2, 6)),
        ]
    )
    session.add_all(
        [
            Supplier(id=1, tenant_id=TENANT_A, name="Mill & Co", contact_name="Dora",
                     phone_number="555-0101", address="1 Mill Road, Springfield"),
            Supplier(id=2, tenant_id=TENANT_A, name="Sweet Supply", contact_name="Eli"),
            Supplier(id=3, tenant_id=TENANT_B, name="Rice Traders", contact_name="Fay"),
        ]
    )
    session.flush()

    session.add_all(
        [
            ItemSupplier(id=1, item_id=1, supplier_id=1, unit_price=Decimal("2.40"), preferred_supplier=True),
            ItemSupplier(id=2, item_id=1, supplier_id=2, unit_price=Decimal("2.60"), preferred_supplier=False),
            ItemSupplier(id=3, item_id=2, supplier_id=2, unit_price=Decimal("3.90"), preferred_supplier=True),
            ItemSupplier(id=4, item_id=6, supplier_id=3, unit_price=Decimal("1.40"), preferred_supplier=True),
        ]
    )
    session.commit()
    logger.info("Seeded sample inventory data for tenants %s and %s", TENANT_A, TENANT_B)
