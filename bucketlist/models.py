"""Database models for the bucket-list API.

This module defines SQLAlchemy ORM models used by the application.
Identifiers are 24-character hexadecimal strings generated by the
application rather than autoincrement integers.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    text,
)

from .database import Base, new_object_id


def utcnow() -> datetime:
    """Current UTC time, used for record timestamps."""
    return datetime.now(timezone.utc)


class User(Base):
    """
    SQLAlchemy model representing an application user.

    A user owns destinations by id. At most one user may hold the
    ``admin`` role; the partial unique index on ``role`` makes the
    store reject a second admin even under concurrent registration.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
        Index(
            "uq_users_single_admin",
            "role",
            unique=True,
            sqlite_where=text("role = 'admin'"),
            postgresql_where=text("role = 'admin'"),
        ),
    )

    id = Column(String(24), primary_key=True, default=new_object_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    avatar = Column(String(500), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), default="user", nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Destination(Base):
    """
    SQLAlchemy model representing a bucket-list destination.

    ``user_id`` is a plain reference without a foreign key: deleting a
    user or an admin-created source destination leaves dependent rows
    in place.
    """

    __tablename__ = "destinations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('to-visit', 'visited')", name="ck_destinations_status"
        ),
        CheckConstraint(
            "rating IS NULL OR (rating >= 1 AND rating <= 5)",
            name="ck_destinations_rating",
        ),
    )

    id = Column(String(24), primary_key=True, default=new_object_id)
    title = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False, index=True)
    description = Column(Text, default="", nullable=False)
    notes = Column(Text, default="", nullable=False)
    status = Column(String(20), default="to-visit", nullable=False)
    image_url = Column(String(1000), nullable=False)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    rating = Column(Integer, nullable=True)

    #: Identifier of the owning user
    user_id = Column(String(24), index=True, nullable=True)
    is_admin_created = Column(Boolean, default=False, nullable=False)

    #: Admin-created destination this row is a personal copy of
    parent_destination_id = Column(String(24), index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    @property
    def coordinates(self) -> dict | None:
        """Latitude/longitude pair, or ``None`` when not geotagged."""
        if self.lat is None or self.lng is None:
            return None
        return {"lat": self.lat, "lng": self.lng}

    @coordinates.setter
    def coordinates(self, value: dict | None) -> None:
        if value is None:
            self.lat = None
            self.lng = None
        else:
            self.lat = value["lat"]
            self.lng = value["lng"]
