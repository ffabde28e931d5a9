"""
Models used only by the test suite.

crudkit ships no models of its own; the service works with whatever mapped
classes the application defines. These two cover the shapes the service has to
handle: a string primary key assigned by the caller (Widget), a generated
primary key (Part), a nullable column, a NOT NULL column and a one-to-many /
many-to-one relationship pair.
"""

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Widget(Base):
    __tablename__ = "widgets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    parts: Mapped[list["Part"]] = relationship(back_populates="widget", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Widget id={self.id} name={self.name}>"


class Part(Base):
    __tablename__ = "parts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    widget_id: Mapped[str | None] = mapped_column(ForeignKey("widgets.id"), nullable=True)

    widget: Mapped[Widget | None] = relationship(back_populates="parts")


class Membership(Base):
    """Composite primary key: the service refuses to address it by a single id."""
    __tablename__ = "memberships"

    group_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    member_id: Mapped[str] = mapped_column(String(36), primary_key=True)
