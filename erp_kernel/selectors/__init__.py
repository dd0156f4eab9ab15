"""Selectors for the ERP kernel (read side)."""

from erp_kernel.selectors.base import BaseSelector, store_guard
from erp_kernel.selectors.event_selector import EventSelector
from erp_kernel.selectors.inventory_selector import InventorySelector

__all__ = [
    "BaseSelector",
    "store_guard",
    "EventSelector",
    "InventorySelector",
]
