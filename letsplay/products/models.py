"""
Product model.

owner_id references users.id with ON DELETE CASCADE, so removing a user at
the store level also removes its products.
"""
from datetime import datetime

from sqlalchemy import Column, String, Integer, Float, DateTime, ForeignKey

from letsplay.auth.models import generate_id
from letsplay.base_service import Base


class Product(Base):
    """A product listed by a user."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=True, index=True)
    stock = Column(Integer, nullable=False, default=0)
    owner_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
