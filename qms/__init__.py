"""
QMS - Quotation / Order Management System
"""

__version__ = "1.0.0"
