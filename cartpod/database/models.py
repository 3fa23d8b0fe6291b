"""
Database Models

Tables for users, cart pods, food carts and reviews. Locations are stored as
separate longitude/latitude columns; distance search happens in the
directory repository.
"""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from cartpod.common.utils import utcnow
from cartpod.database.base import ModelBase


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRecord(ModelBase):
    """Persisted user credentials and profile."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('owner', 'admin')", name="role"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, index=True)
    reset_token = Column(Text, nullable=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class CartPodRecord(ModelBase):
    """A physical cluster of food carts."""

    __tablename__ = "cart_pods"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False, index=True)
    arrangement_image = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    food_carts = relationship(
        "FoodCartRecord",
        back_populates="cart_pod",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FoodCartRecord.created_at",
    )


class FoodCartRecord(ModelBase):
    """An individual vendor inside a cart pod."""

    __tablename__ = "food_carts"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False, index=True)
    cart_pod_id = Column(String(36), ForeignKey("cart_pods.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    pod_location_image = Column(Text, nullable=True)
    cart_image = Column(Text, nullable=True)
    menu_images = Column(JSON, nullable=False, default=list)
    average_rating = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    cart_pod = relationship("CartPodRecord", back_populates="food_carts", lazy="selectin")
    owner = relationship("UserRecord", lazy="selectin")
    reviews = relationship(
        "ReviewRecord",
        back_populates="food_cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ReviewRecord.created_at",
    )


class ReviewRecord(ModelBase):
    """A rating and comment left on a food cart."""

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="rating"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    food_cart_id = Column(String(36), ForeignKey("food_carts.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    user = Column(String(120), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    food_cart = relationship("FoodCartRecord", back_populates="reviews")
