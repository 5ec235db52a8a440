"""
SQLAlchemy models for the offers catalog.

This module defines the seller and offer tables using SQLAlchemy ORM,
matching the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Column, Integer, String, TIMESTAMP, ForeignKey, CheckConstraint, Index, text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Seller(Base):
    """Represents a seller owning an offers catalog."""

    __tablename__ = 'sellers'
    __table_args__ = (
        Index('idx_sellers_created_at', 'created_at'),
        {'comment': 'Sellers that upload offer spreadsheets'}
    )

    seller_id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    seller_name = Column(
        String(255),
        nullable=False,
        unique=True,
        comment='Display name, starts with a Latin or Cyrillic letter'
    )
    created_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Registration timestamp'
    )

    # Relationships
    offers = relationship('Offer', back_populates='seller', cascade='all, delete-orphan')
    tasks = relationship('Task', back_populates='seller')

    def __repr__(self):
        return f"<Seller(seller_id={self.seller_id}, seller_name='{self.seller_name}')>"

    def to_dict(self) -> dict:
        """Convert seller to dictionary representation."""
        return {
            'seller_id': self.seller_id,
            'seller_name': self.seller_name
        }


class Offer(Base):
    """Represents a single offer in a seller's catalog."""

    __tablename__ = 'offers'
    __table_args__ = (
        CheckConstraint('price >= 0', name='offers_price_check'),
        CheckConstraint('quantity > 0', name='offers_quantity_check'),
        Index('idx_offers_name', 'offer_name'),
        {'comment': 'Offers currently listed by sellers'}
    )

    seller_id = Column(
        Integer,
        ForeignKey('sellers.seller_id', ondelete='CASCADE'),
        primary_key=True,
        nullable=False
    )
    offer_id = Column(
        Integer,
        primary_key=True,
        autoincrement=False,
        nullable=False,
        comment='Seller-scoped offer identifier from the spreadsheet'
    )
    offer_name = Column(
        String(512),
        nullable=False
    )
    price = Column(
        Integer,
        nullable=False
    )
    quantity = Column(
        Integer,
        nullable=False
    )
    created_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False
    )
    updated_at = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False
    )

    seller = relationship('Seller', back_populates='offers')

    def __repr__(self):
        return f"<Offer(seller_id={self.seller_id}, offer_id={self.offer_id}, name='{self.offer_name}')>"

    def to_dict(self) -> dict:
        """Convert offer to dictionary representation, seller nested."""
        return {
            'offer_id': self.offer_id,
            'offer_name': self.offer_name,
            'price': self.price,
            'quantity': self.quantity,
            'seller': self.seller.to_dict() if self.seller else None
        }
