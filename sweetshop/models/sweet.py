"""Sweet model definitions."""

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from sweetshop.database import Base


class Sweet(Base):
    """Represents a product in the catalog, owned by the admin who created it."""
    __tablename__ = "sweets"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_sweets_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_sweets_price_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="sweets", lazy="joined")
    owner = relationship("User", back_populates="sweets")
