# storefront/services/product_service.py
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound
from storefront.domain.schemas import ProductCreate
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """Lokalny katalog - cena i dostepnosc czytane przez koszyk na biezaco."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def create_product(self, payload: ProductCreate) -> ProductModel:
        product = self.repo.create_product(
            ProductModel(name=payload.name, price=payload.price, available=payload.available)
        )
        logger.info(f"Product {product.id} created at price {product.price}")
        return product

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def change_price(self, product_id: int, price) -> ProductModel:
        # zamowienia trzymaja wlasna kopie ceny, zmiana dotyczy tylko koszykow
        product = self.repo.update_price(product_id, price)
        if not product:
            raise ProductNotFound(product_id)
        logger.info(f"Product {product_id} price changed to {price}")
        return product
