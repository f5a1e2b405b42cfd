"""
Multi-product line selection shared by the customer, parcel and bill forms.

Index 0 of the selection is the primary product. Older records stored a
single product, so the primary is mirrored into the legacy ``product`` /
``productId`` fields on every change.

Editing never checks stock; ``validate_stock`` runs once at submit and only
requires the increase over what the entity already holds to fit in the
available stock.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from api.models import Allocation, Product
from utils.logger import get_logger

_logger = get_logger(__name__)

Number = Union[int, float]


class ValidationError(ValueError):
    """Submission blocked before any network call."""


@dataclass
class LineItem:
    product_id: str
    name: str
    model: str = ""
    quantity: Number = 1
    unit_price: Optional[float] = None

    def to_allocation(self) -> Dict[str, Any]:
        return {"productId": self.product_id, "quantity": self.quantity}


class LineItemSelection:
    """
    Ordered list of selected products with the legacy primary mirror.

    ``on_warning`` receives non-blocking messages (out of stock on add,
    quantity above stock while typing); the forms route it to a toast.
    """

    def __init__(
        self,
        items: Optional[Iterable[LineItem]] = None,
        on_warning: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.items: List[LineItem] = list(items or [])
        self.on_warning = on_warning or _logger.warning
        self.legacy_product: str = ""
        self.legacy_product_id: Optional[str] = None
        self._mirror_primary()

    @classmethod
    def from_allocations(
        cls,
        allocations: Iterable[Allocation],
        products: Iterable[Product],
        on_warning: Optional[Callable[[str], None]] = None,
    ) -> LineItemSelection:
        """Rebuild the selection of an existing record from its productsInfo."""
        by_id = {p.pid: p for p in products}
        items = []
        for a in allocations:
            prod = by_id.get(a.product_id)
            items.append(
                LineItem(
                    product_id=a.product_id,
                    name=prod.name if prod else a.product_id,
                    model=prod.model if prod else "",
                    quantity=a.quantity,
                )
            )
        return cls(items, on_warning)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def primary(self) -> Optional[LineItem]:
        return self.items[0] if self.items else None

    def find(self, product_id: str) -> Optional[LineItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def _mirror_primary(self) -> None:
        primary = self.primary
        self.legacy_product = primary.name if primary else ""
        self.legacy_product_id = primary.product_id if primary else None

    def select_primary(self, product: Product, unit_price: Optional[float] = None) -> None:
        """Install ``product`` at index 0 with quantity 1, replacing the old primary."""
        line = LineItem(product.pid, product.name, product.model, 1, unit_price)
        rest = [i for i in self.items[1:] if i.product_id != product.pid]
        self.items = [line] + rest
        self._mirror_primary()

    def add_secondary(
        self, product: Product, unit_price: Optional[float] = None, check_stock: bool = True
    ) -> bool:
        """
        Append ``product`` with quantity 1, or bump an existing line by 1.

        Out-of-stock products are refused with a warning unless
        ``check_stock`` is off (stock coming in); returns whether the
        selection changed.
        """
        if check_stock and product.stock <= 0:
            self.on_warning(f"{product.name} is out of stock")
            return False

        existing = self.find(product.pid)
        if existing is not None:
            existing.quantity += 1
        else:
            self.items.append(LineItem(product.pid, product.name, product.model, 1, unit_price))
            self._mirror_primary()
        return True

    def set_quantity(
        self, product_id: str, quantity: Number, current_stock: Optional[int] = None
    ) -> None:
        line = self.find(product_id)
        if line is None:
            return
        if not math.isfinite(quantity) or quantity != int(quantity):
            self.on_warning(f"Quantity for {line.name} must be a whole number")
            return
        line.quantity = max(1, int(quantity))
        if current_stock is not None and line.quantity > current_stock:
            self.on_warning(
                f"Only {current_stock} of {line.name} in stock, requested {line.quantity}"
            )

    def set_unit_price(self, product_id: str, price: float) -> None:
        line = self.find(product_id)
        if line is not None:
            line.unit_price = max(0.0, price)

    def remove_line(self, product_id: str) -> None:
        """Drop a line; removing the primary promotes the next line."""
        self.items = [i for i in self.items if i.product_id != product_id]
        self._mirror_primary()

    def clear(self) -> None:
        self.items = []
        self._mirror_primary()

    def to_products_info(self) -> List[Dict[str, Any]]:
        return [i.to_allocation() for i in self.items]

    def legacy_fields(self) -> Dict[str, Any]:
        return {"product": self.legacy_product, "productId": self.legacy_product_id}


def parse_quantity(value: Any) -> Number:
    """Quantity as a number; anything non-finite or below 1 is rejected."""
    if isinstance(value, bool):
        raise ValidationError("Quantity must be at least 1")
    try:
        qty = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be at least 1") from None
    if not math.isfinite(qty) or qty < 1:
        raise ValidationError("Quantity must be at least 1")
    return int(qty) if qty.is_integer() else qty


def previous_allocations(
    products_info: Iterable[Allocation] = (), legacy_product_id: Optional[str] = None
) -> Dict[str, int]:
    """
    Quantity per product already committed to the record being edited.

    Records from before productsInfo only name one product, which counts
    as a single unit.
    """
    previous: Dict[str, int] = {}
    for a in products_info:
        previous[a.product_id] = previous.get(a.product_id, 0) + a.quantity
    if not previous and legacy_product_id:
        previous[legacy_product_id] = 1
    return previous


def validate_stock(
    items: Iterable[LineItem],
    products: Iterable[Product],
    previous: Optional[Mapping[str, Number]] = None,
) -> None:
    """
    Check a selection against live stock, raising ValidationError on the first problem.

    Every quantity is checked first. Then for each line in order the
    increase over ``previous`` must fit in the product's stock.
    """
    items = list(items)
    previous = previous or {}
    by_id = {p.pid: p for p in products}

    if not items:
        raise ValidationError("Please select at least one product")

    quantities = [parse_quantity(item.quantity) for item in items]

    for item, requested in zip(items, quantities):
        product = by_id.get(item.product_id)
        if product is None:
            raise ValidationError(f"Product not found: {item.name or item.product_id}")

        delta = requested - previous.get(item.product_id, 0)
        if delta > 0 and delta > product.stock:
            raise ValidationError(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.stock}, Requested: {delta}"
            )
