"""Fold raw transaction records into uniform line rows.

Transactions arrive either with a single ``items`` list or with the older
split ``products`` / ``services`` (and singular ``service``) lists. Both
shapes are reduced to plain dicts keyed by ``LineItem`` field names.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .utils import to_decimal

DEFAULT_ITEM_NAME = "Item"
ITEM_TYPES = ("product", "service")


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _is_service(row: Mapping[str, Any]) -> bool:
    if _first(row, "item_type", "itemType") == "service":
        return True
    return bool(row.get("service")) or bool(row.get("serviceName"))


def _nested_name(value: Any, key: str) -> Optional[str]:
    if isinstance(value, Mapping):
        return value.get(key)
    return None


def _row_name(row: Mapping[str, Any], is_service: bool, service_names: Optional[Mapping[str, str]]) -> str:
    name = row.get("name") or row.get("productName") or _nested_name(row.get("product"), "name")
    if not name and is_service:
        service = row.get("service")
        name = row.get("serviceName") or _nested_name(service, "serviceName")
        if not name and service and service_names and not isinstance(service, Mapping):
            name = service_names.get(str(service))
    return name or DEFAULT_ITEM_NAME


def unify_row(row: Mapping[str, Any], service_names: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Normalize one raw product/service row.

    Rows without an item type default to product; an unknown item type is
    passed through untouched so that model validation rejects it.
    """
    out: Dict[str, Any] = {k: v for k, v in row.items() if k not in ("itemType", "pricePerUnit")}
    declared = _first(row, "item_type", "itemType")
    if declared is not None and declared not in ITEM_TYPES:
        out["item_type"] = declared
        return out

    is_service = _is_service(row)
    out["item_type"] = "service" if is_service else "product"
    out["name"] = _row_name(row, is_service, service_names)
    out["description"] = row.get("description") or ""

    if is_service:
        # services are billed as a lump amount
        out["quantity"] = None
        out["unit_price"] = None
        out["amount"] = to_decimal(row.get("amount"))
        return out

    quantity = to_decimal(row.get("quantity"), default=to_decimal(1))
    price = _first(row, "unit_price", "pricePerUnit")
    if _first(row, "amount") is not None:
        amount = to_decimal(row.get("amount"))
    else:
        amount = to_decimal(price) * quantity
    out["quantity"] = quantity
    out["amount"] = amount
    # without a price the stored amount stays the taxable base
    out["unit_price"] = None if price is None else to_decimal(price)
    return out


def unify_line_rows(record: Mapping[str, Any], service_names: Optional[Mapping[str, str]] = None) -> List[Dict[str, Any]]:
    """Return the transaction's lines as uniform dict rows.

    A non-empty ``items`` list wins; otherwise the legacy lists are read in
    the order products, services, service.
    """
    items = record.get("items")
    if isinstance(items, list) and items:
        return [unify_row(row, service_names) for row in items]

    rows: List[Dict[str, Any]] = []
    for row in record.get("products") or []:
        rows.append(unify_row({**row, "itemType": "product"}, service_names))
    for key in ("services", "service"):
        legacy = record.get(key)
        if isinstance(legacy, list):
            for row in legacy:
                rows.append(unify_row({**row, "itemType": "service"}, service_names))
    return rows
