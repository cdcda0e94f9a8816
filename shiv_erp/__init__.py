"""Shiv Furnitures ERP - accounting core."""
