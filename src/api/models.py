# provide dataclass view models, mirrored from backend JSON

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


def _ref_id(value: Any) -> Optional[str]:
    """Backend references arrive either as an id string or as a populated document."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
        return str(value) if value is not None else None
    return str(value)


def _num(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _dt(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


@dataclass(frozen=True)
class Allocation:
    """One ``{productId, quantity}`` entry of a productsInfo list."""

    product_id: str
    quantity: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Allocation:
        return cls(product_id=_ref_id(data.get("productId")) or "", quantity=_int(data.get("quantity")))


def _allocations(data: Any) -> Tuple[Allocation, ...]:
    return tuple(Allocation.from_json(a) for a in (data or []) if _ref_id(a.get("productId")))


@dataclass(frozen=True)
class User:
    uid: str
    username: str
    email: str
    role: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> User:
        return cls(
            uid=_ref_id(data.get("_id")) or "",
            username=data.get("username") or data.get("name") or "",
            email=data.get("email") or "",
            role=data.get("role") or "admin",
        )


@dataclass(frozen=True)
class Product:
    pid: str
    name: str
    model: str
    category: str
    original_price: float
    wholesale_price: float
    retail_price: float
    website_price: float
    stock: int
    low_stock_alert: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Product:
        return cls(
            pid=_ref_id(data.get("_id")) or "",
            name=data.get("name") or "",
            model=data.get("model") or "",
            category=data.get("category") or "",
            original_price=_num(data.get("originalPrice")),
            wholesale_price=_num(data.get("wholesalePrice")),
            retail_price=_num(data.get("retailPrice")),
            website_price=_num(data.get("websitePrice")),
            stock=_int(data.get("stock")),
            low_stock_alert=_int(data.get("lowStockAlert"), 5),
        )

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.low_stock_alert


@dataclass(frozen=True)
class StockMovement:
    quantity: int
    kind: str
    note: str
    created_at: Optional[datetime]

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> StockMovement:
        return cls(
            quantity=_int(data.get("quantity")),
            kind=data.get("type") or "",
            note=data.get("note") or data.get("notes") or "",
            created_at=_dt(data.get("createdAt")),
        )


@dataclass(frozen=True)
class Category:
    cid: str
    name: str
    description: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Category:
        return cls(
            cid=_ref_id(data.get("_id")) or "",
            name=data.get("name") or "",
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class Customer:
    cid: str
    name: str
    type: str  # "online" or "offline"
    phone: str = ""
    address: str = ""
    price: Optional[float] = None
    tracking_number: str = ""
    seller_id: Optional[str] = None
    products_info: Tuple[Allocation, ...] = ()
    # legacy single-product fields, mirror products_info[0]
    product: str = ""
    product_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Customer:
        price = data.get("price")
        return cls(
            cid=_ref_id(data.get("_id")) or "",
            name=data.get("name") or "",
            type=data.get("type") or "online",
            phone=data.get("phone") or "",
            address=data.get("address") or "",
            price=None if price in (None, "") else _num(price),
            tracking_number=data.get("trackingNumber") or "",
            seller_id=_ref_id(data.get("seller")),
            products_info=_allocations(data.get("productsInfo")),
            product=data.get("product") or "",
            product_id=_ref_id(data.get("productId")),
        )


@dataclass(frozen=True)
class Seller:
    sid: str
    name: str
    phone: str
    basic_salary: float
    commission_rate: float  # flat amount per product unit sold
    total_commission: float
    email: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Seller:
        return cls(
            sid=_ref_id(data.get("_id")) or "",
            name=data.get("name") or "",
            phone=data.get("phone") or "",
            basic_salary=_num(data.get("basicSalary")),
            commission_rate=_num(data.get("commissionRate")),
            total_commission=_num(data.get("totalCommission")),
            email=data.get("email") or "",
        )


@dataclass(frozen=True)
class BillItem:
    product_id: str
    name: str
    model: str
    selected_price: float
    quantity: int
    category: str = ""
    selected_price_type: str = "retailPrice"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> BillItem:
        return cls(
            product_id=_ref_id(data.get("productId")) or "",
            name=data.get("name") or "",
            model=data.get("model") or "",
            selected_price=_num(data.get("selectedPrice", data.get("unitPrice"))),
            quantity=_int(data.get("quantity")),
            category=data.get("category") or "",
            selected_price_type=data.get("selectedPriceType") or "retailPrice",
        )


@dataclass(frozen=True)
class Bill:
    bid: str
    bill_number: str
    customer: Dict[str, Any]
    items: Tuple[BillItem, ...]
    subtotal: float
    total: float
    amount_paid: float
    remaining_amount: float
    notes: str = ""
    payment_method: str = "cash"
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Bill:
        return cls(
            bid=_ref_id(data.get("_id")) or "",
            bill_number=str(data.get("billNumber") or ""),
            customer=data.get("customer") or {},
            items=tuple(BillItem.from_json(i) for i in data.get("items") or []),
            subtotal=_num(data.get("subtotal")),
            total=_num(data.get("total")),
            amount_paid=_num(data.get("amountPaid")),
            remaining_amount=_num(data.get("remainingAmount")),
            notes=data.get("notes") or "",
            payment_method=data.get("paymentMethod") or "cash",
            created_at=_dt(data.get("createdAt")),
        )

    @property
    def customer_name(self) -> str:
        return self.customer.get("name") or "Walk-in"


@dataclass(frozen=True)
class Parcel:
    poid: str
    tracking_number: str
    customer_name: str
    customer_phone: str
    address: str
    cod_amount: float
    status: str  # processing / delivered / return
    payment_status: str  # paid / unpaid
    products_info: Tuple[Allocation, ...] = ()
    product_id: Optional[str] = None
    book_po_id: Optional[str] = None
    notes: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Parcel:
        return cls(
            poid=_ref_id(data.get("_id")) or "",
            tracking_number=data.get("trackingNumber") or "",
            customer_name=data.get("customerName") or "",
            customer_phone=data.get("customerPhone") or "",
            address=data.get("address") or "",
            cod_amount=_num(data.get("codAmount")),
            status=data.get("status") or "processing",
            payment_status=data.get("paymentStatus") or "unpaid",
            products_info=_allocations(data.get("productsInfo")),
            product_id=_ref_id(data.get("productId")),
            book_po_id=_ref_id(data.get("bookPO")),
            notes=data.get("notes") or "",
            created_at=_dt(data.get("createdAt")),
        )


@dataclass(frozen=True)
class BookPO:
    """A saved printable shipping label."""

    bpid: str
    to_name: str
    to_phone: str
    to_address: str
    weight: str
    amount: float
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> BookPO:
        return cls(
            bpid=_ref_id(data.get("_id")) or "",
            to_name=data.get("toName") or "",
            to_phone=data.get("toPhone") or "",
            to_address=data.get("toAddress") or "",
            weight=str(data.get("weight") or ""),
            amount=_num(data.get("amount")),
            created_at=_dt(data.get("createdAt")),
        )


@dataclass(frozen=True)
class Sale:
    sid: str
    product_name: str
    customer_name: str
    seller_name: str
    quantity: int
    unit_price: float
    total: float
    commission: float
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> Sale:
        return cls(
            sid=_ref_id(data.get("_id")) or "",
            product_name=data.get("productName") or "",
            customer_name=data.get("customerName") or "",
            seller_name=data.get("sellerName") or "",
            quantity=_int(data.get("quantity")),
            unit_price=_num(data.get("unitPrice")),
            total=_num(data.get("total")),
            commission=_num(data.get("commission")),
            created_at=_dt(data.get("createdAt")),
        )


@dataclass(frozen=True)
class ReturnRecord:
    rid: str
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    customer_name: str = ""
    tracking_id: str = ""
    notes: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> ReturnRecord:
        product = data.get("productId")
        return cls(
            rid=_ref_id(data.get("_id")) or "",
            product_id=_ref_id(product) or "",
            product_name=data.get("productName")
            or (product.get("name") if isinstance(product, dict) else "")
            or "",
            quantity=_int(data.get("quantity")),
            unit_price=_num(data.get("unitPrice")),
            customer_name=data.get("customerName") or "",
            tracking_id=data.get("trackingId") or "",
            notes=data.get("notes") or "",
            created_at=_dt(data.get("createdAt")),
        )


@dataclass(frozen=True)
class LedgerEntry:
    """An expense or an income row."""

    eid: str
    title: str
    amount: float
    notes: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> LedgerEntry:
        return cls(
            eid=_ref_id(data.get("_id")) or "",
            title=data.get("title") or data.get("source") or "",
            amount=_num(data.get("amount")),
            notes=data.get("notes") or "",
            created_at=_dt(data.get("createdAt") or data.get("date")),
        )


@dataclass(frozen=True)
class DailyFigure:
    """Per-day total, used by ad spend and dispatch records."""

    date: str
    total: float
    notes: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> DailyFigure:
        return cls(
            date=str(data.get("date") or "")[:10],
            total=_num(data.get("total", data.get("count"))),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class PurchaseItem:
    product_id: str
    quantity: int
    unit_price: float
    name: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> PurchaseItem:
        product = data.get("productId")
        return cls(
            product_id=_ref_id(product) or "",
            quantity=_int(data.get("quantity")),
            unit_price=_num(data.get("unitPrice")),
            name=data.get("name") or (product.get("name") if isinstance(product, dict) else "") or "",
        )


@dataclass(frozen=True)
class PurchaseBatch:
    batch_number: str
    supplier_name: str
    purchase_date: str
    items: Tuple[PurchaseItem, ...]
    notes: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> PurchaseBatch:
        return cls(
            batch_number=data.get("batchNumber") or "",
            supplier_name=data.get("supplierName") or "",
            purchase_date=str(data.get("purchaseDate") or "")[:10],
            items=tuple(PurchaseItem.from_json(i) for i in data.get("items") or []),
            notes=data.get("notes") or "",
        )

    @property
    def total_cost(self) -> float:
        return sum(i.quantity * i.unit_price for i in self.items)


@dataclass(frozen=True)
class LcsParcel:
    """Courier parcel synced from LCS, read-only apart from its product list."""

    lid: str
    tracking_number: str
    consignee_name: str
    consignee_phone: str
    destination: str
    status: str
    cod_amount: float
    booking_date: str = ""
    products_info: Tuple[Allocation, ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> LcsParcel:
        return cls(
            lid=_ref_id(data.get("_id")) or "",
            tracking_number=data.get("trackingNumber") or "",
            consignee_name=data.get("consigneeName") or "",
            consignee_phone=data.get("consigneePhone") or "",
            destination=data.get("destination") or "",
            status=data.get("status") or "",
            cod_amount=_num(data.get("codAmount")),
            booking_date=str(data.get("bookingDate") or "")[:10],
            products_info=_allocations(data.get("products")),
        )


@dataclass(frozen=True)
class ChartPoint:
    date: str
    sales: int
    revenue: float

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> ChartPoint:
        return cls(
            date=str(data.get("date") or data.get("_id") or ""),
            sales=_int(data.get("sales")),
            revenue=_num(data.get("revenue")),
        )


@dataclass(frozen=True)
class DashboardStats:
    total_products: int = 0
    total_sellers: int = 0
    online_customers: int = 0
    offline_customers: int = 0
    total_sales: int = 0
    total_revenue: float = 0.0
    total_commission: float = 0.0
    low_stock_products: int = 0
    top_products: Tuple[Dict[str, Any], ...] = ()
    sales_by_category: Tuple[Dict[str, Any], ...] = ()
    recent_sales: Tuple[Dict[str, Any], ...] = ()
    low_stock_items: Tuple[Dict[str, Any], ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> DashboardStats:
        return cls(
            total_products=_int(data.get("totalProducts")),
            total_sellers=_int(data.get("totalSellers")),
            online_customers=_int(data.get("onlineCustomers")),
            offline_customers=_int(data.get("offlineCustomers")),
            total_sales=_int(data.get("totalSales")),
            total_revenue=_num(data.get("totalRevenue")),
            total_commission=_num(data.get("totalCommission")),
            low_stock_products=_int(data.get("lowStockProducts")),
            top_products=tuple(data.get("topProducts") or ()),
            sales_by_category=tuple(data.get("salesByCategory") or ()),
            recent_sales=tuple(data.get("recentSales") or ()),
            low_stock_items=tuple(data.get("lowStockItems") or ()),
        )
