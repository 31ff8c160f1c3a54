"""
Warranty registration, triage and reporting services.
"""

from .query_builder import ScopeMode, WarrantyListParams, build_query
from .warranty_service import (
    create_warranty,
    get_warranty,
    list_warranties,
    update_warranty,
    delete_warranty,
    assign_warranty,
    bulk_update,
    lookup_by_code,
)
from .reporting_service import admin_report, owner_summary

__all__ = [
    "ScopeMode",
    "WarrantyListParams",
    "build_query",
    "create_warranty",
    "get_warranty",
    "list_warranties",
    "update_warranty",
    "delete_warranty",
    "assign_warranty",
    "bulk_update",
    "lookup_by_code",
    "admin_report",
    "owner_summary",
]
