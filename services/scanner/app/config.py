"""
Configuration for the scanner agent.

All settings are read from environment variables with development defaults.
"""
import os

# Inventory service (internal Docker network hostname by default)
INVENTORY_SERVICE_URL = os.getenv("INVENTORY_SERVICE_URL", "http://inventory:8000")
TIMEOUT = float(os.getenv("INVENTORY_TIMEOUT", "5.0"))  # seconds, per dispatch

# Local durable storage for the offline queue and inventory projection
SCANNER_DATABASE_URL = os.getenv("SCANNER_DATABASE_URL", "sqlite+aiosqlite:///./scanner.db")

# How often the connectivity monitor probes the inventory service
CONNECTIVITY_CHECK_INTERVAL = float(os.getenv("CONNECTIVITY_CHECK_INTERVAL", "30"))
