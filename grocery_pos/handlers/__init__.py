# grocery_pos/handlers/__init__.py
"""Cashier bot handlers"""
from .base_handler import BaseHandler
from .order_handlers import OrderHandler, parse_new_order_args

__all__ = [
    'BaseHandler',
    'OrderHandler',
    'parse_new_order_args',
]
