from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, Boolean, DateTime, Numeric, Text, CheckConstraint
from sqlalchemy.orm import relationship

from shop.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    name = Column(String(160), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    category = relationship("CategoryModel")

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category else None

    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)
