"""Properties app package.

This app holds the property catalog that owners list and clients book.
"""
