"""
Domain logic module for business rules.

This package contains the sale-entry workflow, the submission and deletion
protocols and the top-items aggregation. None of it depends on a concrete
storage backend or user interface.
"""
