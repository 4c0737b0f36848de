"""Inventory, sales and purchase-order analytics served from the data warehouse."""

__version__ = "0.1.0"
