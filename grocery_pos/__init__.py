# grocery_pos/__init__.py
"""Grocery store point-of-sale billing: orders, payments, invoices and stock."""

__version__ = "0.1.0"
