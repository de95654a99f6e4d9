"""
Product catalog package for storeapi.

This package provides:
- The product model and catalog store
- The listing query engine (filters, search, sort, pagination)
- Product routes
"""
