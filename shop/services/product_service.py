# shop/services/product_service.py
from sqlalchemy.orm import Session

from shop.data.models.category import CategoryModel
from shop.data.models.product import ProductModel
from shop.domain.schemas import CategoryIn, ProductIn
from shop.repos.product_repo import ProductRepo


class ProductService:
    """Catalog of categories and products."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_categories(self) -> list[CategoryModel]:
        return self.repo.list_categories()

    def create_category(self, payload: CategoryIn) -> CategoryModel:
        return self.repo.add_category(CategoryModel(**payload.model_dump()))

    def update_category(self, category_id: int, payload: CategoryIn) -> CategoryModel:
        category = self.repo.get_category(category_id)
        if not category:
            raise LookupError("Category not found")

        for key, value in payload.model_dump().items():
            setattr(category, key, value)
        return self.repo.save(category)

    def list_products(self, category_id: int | None = None, search: str | None = None) -> list[ProductModel]:
        return self.repo.list_products(category_id=category_id, search=search)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise LookupError("Product not found")
        return product

    def create_product(self, payload: ProductIn) -> ProductModel:
        self._check_category(payload.category_id)
        return self.repo.add_product(ProductModel(**payload.model_dump()))

    def update_product(self, product_id: int, payload: ProductIn) -> ProductModel:
        product = self.get_product(product_id)
        self._check_category(payload.category_id)

        for key, value in payload.model_dump().items():
            setattr(product, key, value)
        return self.repo.save(product)

    def delete_product(self, product_id: int) -> None:
        self.repo.delete_product(self.get_product(product_id))

    def _check_category(self, category_id: int | None) -> None:
        if category_id is not None and not self.repo.get_category(category_id):
            raise ValueError("Category does not exist")
