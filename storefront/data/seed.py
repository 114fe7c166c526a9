# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ProductModel, UserModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    ("Margherita", Decimal("12.99")),
    ("Pepperoni", Decimal("15.99")),
    ("Caesar Salad", Decimal("9.50")),
    ("Tiramisu", Decimal("6.25")),
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Catalog already seeded, skipping")
            return
        db.add_all(ProductModel(name=name, price=price, available=True) for name, price in PRODUCTS)
        db.add(UserModel(id=1, email="admin@storefront.local", name="Admin", is_admin=True))
        db.add(UserModel(id=2, email="customer@storefront.local", name="Customer"))
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products and 2 users")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
