"""
Data Ingestion Module

Demo data seeding for local development.
"""
from .seed_db import seed

__all__ = ["seed"]
