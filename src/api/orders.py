"""
Submit flows for forms that allocate stock.

Each flow validates locally (required fields, then the line selection
against freshly fetched stock) and only then talks to the backend, so a
rejected submission never saves anything. The backend is expected to
re-check stock when it persists; this check is for fast feedback.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional

import api.crud as crud
from api.models import Bill, BookPO, Customer, LcsParcel, Parcel
from utils.logger import get_logger
from utils.pure import parse_number
from utils.selection import (
    LineItem,
    LineItemSelection,
    ValidationError,
    parse_quantity,
    previous_allocations,
    validate_stock,
)

_logger = get_logger(__name__)

# Urdu: "please fill in all the fields"
BOOK_PO_REQUIRED = "براہ کرم تمام خانے مکمل پُر کریں"


def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v.strip() if isinstance(v, str) else v for k, v in fields.items()}


async def _check_selection(selection: LineItemSelection, previous: Dict[str, int]) -> None:
    products = await crud.list_products(refresh=True)
    validate_stock(selection.items, products, previous)


# ---------------------------
# Customers
# ---------------------------


def build_customer_payload(fields: Dict[str, Any], selection: LineItemSelection) -> Dict[str, Any]:
    payload = _clean(fields)
    payload["productsInfo"] = selection.to_products_info()
    payload.update(selection.legacy_fields())
    return payload


async def submit_customer(
    fields: Dict[str, Any],
    selection: LineItemSelection,
    existing: Optional[Customer] = None,
) -> None:
    """Create or update a customer. A customer may carry no products at all."""
    if not (fields.get("name") or "").strip():
        raise ValidationError("Customer name is required")

    previous: Dict[str, int] = {}
    if existing is not None:
        previous = previous_allocations(existing.products_info, existing.product_id)

    if selection.items:
        await _check_selection(selection, previous)

    payload = build_customer_payload(fields, selection)
    if existing is not None:
        await crud.update_customer(existing.cid, payload)
        _logger.info(f"Customer {existing.cid} updated")
    else:
        await crud.create_customer(payload)
        _logger.info(f"Customer {payload.get('name')} created")


# ---------------------------
# Parcels (PO)
# ---------------------------


def build_parcel_payload(fields: Dict[str, Any], selection: LineItemSelection) -> Dict[str, Any]:
    payload = _clean(fields)
    cod = payload.get("codAmount")
    amount = 0.0 if cod in (None, "") else parse_number(cod)
    if amount is None or not math.isfinite(amount):
        raise ValidationError("COD amount must be a number")
    payload["codAmount"] = amount
    payload["productsInfo"] = selection.to_products_info()
    payload["productId"] = selection.legacy_product_id
    return payload


async def submit_parcel(
    fields: Dict[str, Any],
    selection: LineItemSelection,
    existing: Optional[Parcel] = None,
) -> None:
    if not selection.items:
        raise ValidationError("Please select a product")
    if not (fields.get("trackingNumber") or "").strip() or not (fields.get("address") or "").strip():
        raise ValidationError("Tracking number and address are required")

    payload = build_parcel_payload(fields, selection)

    previous: Dict[str, int] = {}
    if existing is not None:
        previous = previous_allocations(existing.products_info, existing.product_id)
    await _check_selection(selection, previous)

    if existing is not None:
        await crud.update_parcel(existing.poid, payload)
    else:
        await crud.create_parcel(payload)


# ---------------------------
# Bills
# ---------------------------


def compute_bill_totals(
    items: Iterable[LineItem], amount_paid: float, existing: Optional[Bill] = None
) -> Dict[str, float]:
    """
    subtotal, total, remaining amount and the balance carried over.

    For an edited bill the carried balance is recovered from its stored
    figures as ``remaining - total + paid``.
    """
    subtotal = sum(float(i.unit_price or 0) * float(i.quantity or 0) for i in items)
    total = max(0.0, subtotal)
    paid = float(amount_paid or 0)
    previous_remaining = 0.0
    if existing is not None:
        previous_remaining = existing.remaining_amount - existing.total + existing.amount_paid
    return {
        "subtotal": subtotal,
        "total": total,
        "amountPaid": paid,
        "remainingAmount": max(0.0, total - paid),
        "previousRemaining": previous_remaining,
    }


def bill_allocations(bill: Bill) -> Dict[str, int]:
    previous: Dict[str, int] = {}
    for item in bill.items:
        previous[item.product_id] = previous.get(item.product_id, 0) + item.quantity
    return previous


def build_bill_payload(
    selection: LineItemSelection,
    amount_paid: float,
    notes: str,
    customer: Optional[Dict[str, Any]] = None,
    existing: Optional[Bill] = None,
    categories: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    price_types = {i.product_id: i.selected_price_type for i in existing.items} if existing else {}
    categories = categories or {}
    items: List[Dict[str, Any]] = [
        {
            "productId": i.product_id,
            "name": i.name,
            "model": i.model,
            "category": categories.get(i.product_id, ""),
            "selectedPriceType": price_types.get(i.product_id, "retailPrice"),
            "selectedPrice": float(i.unit_price or 0),
            "quantity": i.quantity,
        }
        for i in selection.items
    ]
    payload: Dict[str, Any] = {
        "customer": customer if customer is not None else (existing.customer if existing else None),
        "items": items,
        "discount": 0,
        "discountType": "percentage",
        "paymentMethod": existing.payment_method if existing else "cash",
        "notes": (notes or "").strip(),
    }
    payload.update(compute_bill_totals(selection.items, amount_paid, existing))
    return payload


async def submit_bill(
    selection: LineItemSelection,
    amount_paid: float,
    notes: str = "",
    customer: Optional[Dict[str, Any]] = None,
    existing: Optional[Bill] = None,
) -> None:
    if not selection.items:
        raise ValidationError("Bill must have at least one item")
    if amount_paid is None or amount_paid < 0:
        raise ValidationError("Amount paid cannot be negative")

    previous = bill_allocations(existing) if existing is not None else {}
    products = await crud.list_products(refresh=True)
    validate_stock(selection.items, products, previous)

    categories = {p.pid: p.category for p in products}
    payload = build_bill_payload(selection, amount_paid, notes, customer, existing, categories)
    if existing is not None:
        await crud.update_bill(existing.bid, payload)
        _logger.info(f"Bill {existing.bid} updated")
    else:
        await crud.create_bill(payload)


# ---------------------------
# Stock in / stock back
# ---------------------------


async def submit_purchase_batch(
    supplier_name: str,
    purchase_date: str,
    items: Iterable[LineItem],
    batch_number: str = "",
    notes: str = "",
) -> None:
    """Record bought stock with its cost; lines without a quantity are dropped."""
    if not (supplier_name or "").strip():
        raise ValidationError("Supplier name is required")

    clean_items = []
    for i in items:
        qty = float(i.quantity or 0)
        price = float(i.unit_price or 0)
        if i.product_id and qty > 0 and price >= 0:
            clean_items.append({"productId": i.product_id, "quantity": i.quantity, "unitPrice": price})
    if not clean_items:
        raise ValidationError("Add at least one product to the batch")

    await crud.create_purchase_batch(
        {
            "batchNumber": batch_number.strip() or None,
            "supplierName": supplier_name.strip(),
            "purchaseDate": purchase_date,
            "notes": notes.strip() or None,
            "items": clean_items,
        }
    )


async def submit_return(
    product_id: Optional[str],
    quantity: Any,
    unit_price: Any = 0,
    customer_name: str = "",
    tracking_id: str = "",
    notes: str = "",
) -> None:
    if not product_id:
        raise ValidationError("Please select a product")
    try:
        qty = parse_quantity(quantity)
    except ValidationError:
        raise ValidationError("Quantity must be greater than 0") from None

    await crud.create_return(
        {
            "productId": product_id,
            "quantity": qty,
            "unitPrice": float(unit_price or 0),
            "customerName": customer_name.strip(),
            "trackingId": tracking_id.strip(),
            "notes": notes.strip(),
        }
    )


async def submit_book_po(fields: Dict[str, Any], existing: Optional[BookPO] = None) -> None:
    fields = _clean(fields)
    required = ("toName", "toPhone", "toAddress", "weight", "amount")
    if any(not fields.get(k) for k in required):
        raise ValidationError(BOOK_PO_REQUIRED)
    try:
        fields["amount"] = float(fields["amount"])
    except (TypeError, ValueError):
        raise ValidationError(BOOK_PO_REQUIRED) from None
    payload = {k: fields[k] for k in required}
    if existing is not None:
        await crud.update_book_po(existing.bpid, payload)
    else:
        await crud.create_book_po(payload)


async def submit_sale(
    product_id: Optional[str],
    quantity: Any,
    unit_price: Any,
    customer_name: str = "",
    seller_id: Optional[str] = None,
) -> None:
    """Record a direct sale; the quantity must fit in the product's stock."""
    if not product_id:
        raise ValidationError("Please select a product")
    products = await crud.list_products(refresh=True)
    product = next((p for p in products if p.pid == product_id), None)
    line = LineItem(product_id, product.name if product else product_id, quantity=quantity)
    validate_stock([line], products)

    price = float(unit_price or 0)
    if price < 0:
        raise ValidationError("Unit price cannot be negative")
    payload: Dict[str, Any] = {
        "productId": product_id,
        "quantity": parse_quantity(quantity),
        "unitPrice": price,
        "customerName": customer_name.strip(),
    }
    if seller_id:
        payload["sellerId"] = seller_id
    await crud.create_sale(payload)


async def submit_lcs_products(parcel: LcsParcel, selection: LineItemSelection) -> None:
    """Attach products to a synced courier parcel; stock is checked like a PO."""
    if not selection.items:
        raise ValidationError("Please select a product")
    await _check_selection(selection, previous_allocations(parcel.products_info))
    await crud.update_lcs_parcel_products(parcel.lid, selection.to_products_info())
