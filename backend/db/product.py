from sqlalchemy import CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("expiration_months > 0", name="ck_products_expiration_positive"),)

    product_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True, index=True)
    # shelf life in whole months
    expiration_months = Column(Integer, nullable=False, default=6, server_default="6")

    storage_entries = relationship(
        "StorageEntry", back_populates="product", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def to_schema(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "expiration_months": self.expiration_months,
        }
