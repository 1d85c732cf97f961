"""
Sales Tracker Dashboard.

Record sales with one or more line items, browse the sale history and
chart the top-selling items.
"""

__version__ = "0.1.0"
