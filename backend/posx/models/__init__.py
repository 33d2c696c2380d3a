from .clients import Client, License, Salesperson, SessionToken, CLIENT_STATUSES
from .catalog import Category, Product, DEFAULT_CATEGORY_COLOR
from .sales import Sale, SaleItem, DocumentSequence, PaymentMethod
from .inventory import StockMovement, StockAction, MOVEMENT_SALE
from .cashflow import Expense, OpeningBalance
from .labels import LabelTemplate, LABEL_ELEMENT_TYPES

__all__ = [
    'Client', 'License', 'Salesperson', 'SessionToken', 'CLIENT_STATUSES',
    'Category', 'Product', 'DEFAULT_CATEGORY_COLOR',
    'Sale', 'SaleItem', 'DocumentSequence', 'PaymentMethod',
    'StockMovement', 'StockAction', 'MOVEMENT_SALE',
    'Expense', 'OpeningBalance',
    'LabelTemplate', 'LABEL_ELEMENT_TYPES',
]
