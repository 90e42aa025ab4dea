"""
Storage entries: one stocked item in one drawer.

An entry is created on stock-in and latched to unavailable (with date_out set)
on check-out. It is deleted with its drawer or product.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, Float, ForeignKey, Integer, true
from sqlalchemy.orm import relationship

from .database import Base


class StorageEntry(Base):
    __tablename__ = "storage"
    __table_args__ = (
        CheckConstraint("weight_grams > 0", name="ck_storage_weight_positive"),
        CheckConstraint("date_out IS NULL OR date_out >= date_in", name="ck_storage_date_out_after_in"),
    )

    storage_id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("products.product_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    drawer_id = Column(
        Integer,
        ForeignKey("drawers.drawer_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    weight_grams = Column(Float, nullable=False)
    date_in = Column(Date, nullable=False, index=True)
    date_out = Column(Date, nullable=True)
    available = Column(Boolean, nullable=False, default=True, server_default=true(), index=True)

    product = relationship("Product", back_populates="storage_entries")
    drawer = relationship("Drawer", back_populates="storage_entries")

    @property
    def to_schema(self):
        return {
            "storage_id": self.storage_id,
            "product_id": self.product_id,
            "drawer_id": self.drawer_id,
            "weight_grams": float(self.weight_grams),
            "date_in": self.date_in,
            "date_out": self.date_out,
            "available": bool(self.available),
        }
