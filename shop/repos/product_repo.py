# shop/repos/product_repo.py
from sqlalchemy import select, or_
from sqlalchemy.orm import Session, joinedload

from shop.data.models.category import CategoryModel
from shop.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id, options=[joinedload(ProductModel.category)])

    def lock_product(self, product_id: int) -> ProductModel | None:
        """Read the product holding an exclusive row lock until the transaction ends."""
        return self.db.execute(
            select(ProductModel).where(ProductModel.id == product_id).with_for_update()
        ).scalar_one_or_none()

    def list_products(self, category_id: int | None = None, search: str | None = None) -> list[ProductModel]:
        stmt = select(ProductModel).options(joinedload(ProductModel.category))
        if category_id:
            stmt = stmt.where(ProductModel.category_id == category_id)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(ProductModel.name.like(pattern), ProductModel.description.like(pattern)))
        stmt = stmt.order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
        return list(self.db.execute(stmt).scalars())

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def save(self, obj):
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete_product(self, product: ProductModel) -> None:
        self.db.delete(product)
        self.db.commit()

    # categories

    def get_category(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def list_categories(self) -> list[CategoryModel]:
        return list(self.db.execute(select(CategoryModel).order_by(CategoryModel.name)).scalars())

    def add_category(self, category: CategoryModel) -> CategoryModel:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category
