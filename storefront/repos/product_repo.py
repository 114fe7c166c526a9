# storefront/repos/product_repo.py
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update_price(self, product_id: int, price) -> ProductModel | None:
        product = self.get_product(product_id)
        if product:
            product.price = price
            self.db.commit()
            self.db.refresh(product)
        return product
