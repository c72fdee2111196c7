"""
Demo Data Seeder

Populates the CRM tables with synthetic customers, leads, orders and
campaigns spread over the past year, so every analytics range has data.

Usage:
    python -m crm_analytics.ingestion.seed_db --customers 200
"""

import argparse
import asyncio
import random
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List

from faker import Faker
import structlog

from crm_analytics.config.logging import configure_logging
from crm_analytics.database.connection import close_database, get_db, init_database
from crm_analytics.database.models import (
    Campaign,
    CampaignStatus,
    CampaignType,
    Customer,
    CustomerStatus,
    Lead,
    LeadSource,
    LeadStatus,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

logger = structlog.get_logger(__name__)

fake = Faker()

PRODUCTS = [
    ("prod-001", "Starter Plan", Decimal("29.00")),
    ("prod-002", "Growth Plan", Decimal("79.00")),
    ("prod-003", "Onboarding Session", Decimal("150.00")),
    ("prod-004", "Support Add-on", Decimal("19.00")),
    ("prod-005", "Custom Integration", Decimal("450.00")),
]

TAGS = ["vip", "newsletter", "wholesale", "referral", "enterprise", "local"]


def _created_within(days: int) -> datetime:
    """Random local timestamp in the last ``days`` days."""
    return datetime.now() - timedelta(seconds=random.randint(0, days * 86400))


def generate_customers(n: int) -> List[Customer]:
    customers = []
    for _ in range(n):
        created = _created_within(365)
        customers.append(Customer(
            name=fake.name(),
            email=fake.email(),
            phone=fake.phone_number(),
            company=fake.company(),
            address={
                "street": fake.street_address(),
                "city": fake.city(),
                "state": fake.state_abbr(),
                "zipCode": fake.postcode(),
                "country": "US",
            },
            status=random.choice(list(CustomerStatus)).value,
            tags=random.sample(TAGS, k=random.randint(0, 2)),
            created_at=created,
            updated_at=created,
        ))
    return customers


def generate_leads(customers: List[Customer], per_customer: float = 1.5) -> List[Lead]:
    leads = []
    for _ in range(int(len(customers) * per_customer)):
        customer = random.choice(customers)
        created = max(customer.created_at, _created_within(365))
        leads.append(Lead(
            customer_id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            company=customer.company,
            # Some legacy leads were imported without a source
            source=random.choice([s.value for s in LeadSource] + [None]),
            status=random.choice(list(LeadStatus)).value,
            score=random.randint(0, 100),
            value=Decimal(random.randint(5, 500) * 10),
            created_at=created,
            updated_at=created,
        ))
    return leads


def generate_orders(customers: List[Customer], per_customer: float = 2.0) -> List[Order]:
    orders = []
    for _ in range(int(len(customers) * per_customer)):
        customer = random.choice(customers)
        created = max(customer.created_at, _created_within(365))
        items = []
        for product_id, name, price in random.sample(PRODUCTS, k=random.randint(1, 3)):
            items.append(OrderItem(
                product_id=product_id,
                product_name=name,
                quantity=random.randint(1, 4),
                price=price,
            ))
        orders.append(Order(
            customer_id=customer.id,
            items=items,
            total_amount=sum((item.price * item.quantity for item in items), Decimal("0")),
            status=random.choice(list(OrderStatus)).value,
            payment_status=random.choice(list(PaymentStatus)).value,
            payment_method=random.choice(list(PaymentMethod)).value,
            created_at=created,
            updated_at=created,
        ))
    return orders


def generate_campaigns(n: int) -> List[Campaign]:
    campaigns = []
    for _ in range(n):
        created = _created_within(365)
        sent = random.randint(0, 5000)
        delivered = int(sent * random.uniform(0.9, 1.0))
        opened = int(delivered * random.uniform(0.1, 0.5))
        clicked = int(opened * random.uniform(0.05, 0.3))
        campaigns.append(Campaign(
            name=fake.catch_phrase(),
            type=random.choice(list(CampaignType)).value,
            status=CampaignStatus.SENT.value if sent else CampaignStatus.DRAFT.value,
            subject=fake.sentence(nb_words=6),
            content=fake.paragraph(),
            scheduled_date=created + timedelta(days=1),
            sent_date=created + timedelta(days=1) if sent else None,
            metrics={"sent": sent, "delivered": delivered, "opened": opened, "clicked": clicked},
            created_at=created,
            updated_at=created,
        ))
    return campaigns


async def seed(n_customers: int = 200, n_campaigns: int = 30, seed_value: int = 42) -> None:
    """Generate and insert a full demo data set."""
    random.seed(seed_value)
    Faker.seed(seed_value)

    await init_database(create_tables=True)
    try:
        customers = generate_customers(n_customers)
        async with get_db() as db:
            db.add_all(customers)
            # Customer ids are needed for foreign keys below
            await db.flush()

            leads = generate_leads(customers)
            orders = generate_orders(customers)
            campaigns = generate_campaigns(n_campaigns)
            db.add_all(leads)
            db.add_all(orders)
            db.add_all(campaigns)

        logger.info(
            "Seeding complete",
            customers=len(customers),
            leads=len(leads),
            orders=len(orders),
            campaigns=len(campaigns),
        )
    finally:
        await close_database()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the CRM database with demo data")
    parser.add_argument("--customers", type=int, default=200, help="Number of customers")
    parser.add_argument("--campaigns", type=int, default=30, help="Number of campaigns")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(seed(args.customers, args.campaigns, args.seed))


if __name__ == "__main__":
    main()
