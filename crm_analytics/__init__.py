"""
CRM Analytics Service

Dashboard growth metrics, time-bucketed charts and CSV exports over the
CRM's customers, leads, orders and campaigns.
"""

__version__ = "1.0.0"
