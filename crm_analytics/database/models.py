"""
Database Models - CRM Entities

Tables owned by the CRM and read by the analytics engine:

- customers: contacts and accounts
- leads: sales opportunities with source and pipeline status
- orders / order_items: purchases with line items
- campaigns: marketing sends with delivery metrics

Every model can render itself as a plain record dict keyed by the CRM's
public field names (``_id``, ``createdAt``, ``totalAmount`` ...), which is the
shape the analytics layer and the CSV exporter consume.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class CustomerStatus(str, Enum):
    """Customer lifecycle status"""
    ACTIVE = "active"
    INACTIVE = "inactive"
    LEAD = "lead"
    PROSPECT = "prospect"


class LeadSource(str, Enum):
    """Where a lead came from"""
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social_media"
    EMAIL_CAMPAIGN = "email_campaign"
    OTHER = "other"


class LeadStatus(str, Enum):
    """Sales pipeline stage"""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed_won"
    CLOSED_LOST = "closed_lost"


class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    """Payment status enumeration"""
    UNPAID = "unpaid"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Payment method enumeration"""
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    OTHER = "other"


class CampaignType(str, Enum):
    """Marketing channel"""
    EMAIL = "email"
    SOCIAL = "social"
    SMS = "sms"
    OTHER = "other"


class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"
    CANCELLED = "cancelled"


def _money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


# =============================================================================
# MIXINS
# =============================================================================

class RecordMixin:
    """
    Audit columns plus record serialization.

    ``version`` is the revision counter, exposed as ``__v`` so export
    projections can strip it explicitly. Timestamps are local wall-clock
    time, matching how analytics windows are computed.
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False
    )

    def _fields(self) -> Dict[str, Any]:
        raise NotImplementedError

    def to_record(self) -> Dict[str, Any]:
        """Render as a CRM record dict"""
        record: Dict[str, Any] = {"_id": str(self.id)}
        record.update(self._fields())
        record["createdAt"] = self.created_at
        record["updatedAt"] = self.updated_at
        record["__v"] = self.version
        return record


# =============================================================================
# TABLES
# =============================================================================

class Customer(RecordMixin, Base):
    """Customer / contact"""
    __tablename__ = "customers"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    company: Mapped[Optional[str]] = mapped_column(String(200))
    address: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default=CustomerStatus.LEAD.value)
    tags: Mapped[Optional[List[str]]] = mapped_column(JSON)

    leads: Mapped[List["Lead"]] = relationship(back_populates="customer")
    orders: Mapped[List["Order"]] = relationship(back_populates="customer")

    __table_args__ = (
        Index("ix_customers_created_at", "created_at"),
        Index("ix_customers_email", "email"),
    )

    def _fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "address": self.address,
            "notes": self.notes,
            "status": self.status,
            "tags": self.tags or [],
        }


class Lead(RecordMixin, Base):
    """Sales lead"""
    __tablename__ = "leads"

    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), ForeignKey("customers.id"))
    name: Mapped[Optional[str]] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    company: Mapped[Optional[str]] = mapped_column(String(200))
    source: Mapped[Optional[str]] = mapped_column(String(30), default=LeadSource.OTHER.value)
    status: Mapped[Optional[str]] = mapped_column(String(30), default=LeadStatus.NEW.value)
    score: Mapped[int] = mapped_column(Integer, default=0)
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    expected_closing_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    customer: Mapped[Optional["Customer"]] = relationship(back_populates="leads")

    __table_args__ = (
        Index("ix_leads_created_at", "created_at"),
        Index("ix_leads_source", "source"),
        Index("ix_leads_status", "status"),
    )

    def _fields(self) -> Dict[str, Any]:
        return {
            "customer": str(self.customer_id) if self.customer_id else None,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "source": self.source,
            "status": self.status,
            "score": self.score,
            "value": _money(self.value),
            "expectedClosingDate": self.expected_closing_date,
            "notes": self.notes,
        }


class Order(RecordMixin, Base):
    """Customer order"""
    __tablename__ = "orders"

    customer_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("customers.id"), nullable=False)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    status: Mapped[str] = mapped_column(String(20), default=OrderStatus.PENDING.value)
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.UNPAID.value)
    payment_method: Mapped[str] = mapped_column(String(20), default=PaymentMethod.CREDIT_CARD.value)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    customer: Mapped["Customer"] = relationship(back_populates="orders")
    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
        Index("ix_orders_customer", "customer_id"),
    )

    def _fields(self) -> Dict[str, Any]:
        return {
            "customer": str(self.customer_id),
            "items": [item.to_item() for item in self.items],
            "totalAmount": _money(self.total_amount),
            "status": self.status,
            "paymentStatus": self.payment_status,
            "paymentMethod": self.payment_method,
            "notes": self.notes,
        }


class OrderItem(Base):
    """Order line item"""
    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[Optional[str]] = mapped_column(String(64))
    product_name: Mapped[Optional[str]] = mapped_column(String(300))
    quantity: Mapped[Optional[int]] = mapped_column(Integer, default=1)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))

    order: Mapped["Order"] = relationship(back_populates="items")

    def to_item(self) -> Dict[str, Any]:
        return {
            "product": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": _money(self.price),
        }


class Campaign(RecordMixin, Base):
    """Marketing campaign"""
    __tablename__ = "campaigns"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(20), default=CampaignType.EMAIL.value)
    status: Mapped[str] = mapped_column(String(20), default=CampaignStatus.DRAFT.value)
    subject: Mapped[Optional[str]] = mapped_column(String(300))
    content: Mapped[Optional[str]] = mapped_column(Text)
    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    sent_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    # {"sent": int, "delivered": int, "opened": int, "clicked": int}
    metrics: Mapped[Optional[Dict[str, int]]] = mapped_column(JSON)

    __table_args__ = (
        Index("ix_campaigns_created_at", "created_at"),
        Index("ix_campaigns_type", "type"),
    )

    def _fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "subject": self.subject,
            "content": self.content,
            "scheduledDate": self.scheduled_date,
            "sentDate": self.sent_date,
            "metrics": self.metrics or {},
        }


class EntityType(str, Enum):
    """Entities the analytics layer can query"""
    CUSTOMERS = "customers"
    LEADS = "leads"
    ORDERS = "orders"
    CAMPAIGNS = "campaigns"


ENTITY_MODELS = {
    EntityType.CUSTOMERS: Customer,
    EntityType.LEADS: Lead,
    EntityType.ORDERS: Order,
    EntityType.CAMPAIGNS: Campaign,
}
