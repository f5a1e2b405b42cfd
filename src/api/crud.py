# src/api/crud.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from api import cache, models
from api.cache import cached_query
from api.client import API_URL, request


def _list(data: Any) -> List[Dict[str, Any]]:
    """List endpoints answer either a bare array or ``{"data": [...]}``."""
    if data is None:
        return []
    if isinstance(data, dict):
        for key in ("data", "items", "results"):
            if isinstance(data.get(key), list):
                return data[key]
        return []
    return list(data)


# ---------------------------
# Auth
# ---------------------------


async def login(email: str, password: str) -> Dict[str, Any]:
    """POST /auth/login. Returns the raw body: token, admin|user, userType."""
    return await request(
        "POST",
        "/auth/login",
        json={"email": email, "password": password},
        fallback="Login failed",
    )


async def register(username: str, email: str, password: str, invite_code: str = "") -> Dict[str, Any]:
    body = {"username": username, "email": email, "password": password}
    if invite_code:
        body["inviteCode"] = invite_code
    return await request("POST", "/auth/register", json=body, fallback="Registration failed")


async def logout() -> None:
    await request("POST", "/auth/logout", json={}, fallback="Logout failed")


async def get_me() -> Optional[models.User]:
    """Profile of the token owner; admins come back as ``admin``, sellers as ``user``."""
    data = await request("GET", "/auth/me", fallback="Auth check failed")
    profile = (data or {}).get("admin") or (data or {}).get("user")
    return models.User.from_json(profile) if profile else None


async def change_password(current_password: str, new_password: str) -> None:
    await request(
        "PUT",
        "/auth/change-password",
        json={"currentPassword": current_password, "newPassword": new_password},
        fallback="Failed to change password",
    )


async def forgot_password(email: str) -> str:
    data = await request(
        "POST",
        "/auth/forgot-password",
        json={"email": email},
        fallback="Failed to send reset email",
    )
    return (data or {}).get("message") or "Reset instructions sent."


async def reset_password(token: str, password: str) -> None:
    await request(
        "PUT",
        "/auth/reset-password",
        json={"token": token, "password": password},
        fallback="Failed to reset password",
    )


# ---------------------------
# Products & categories
# ---------------------------


@cached_query("products")
async def list_products() -> List[models.Product]:
    data = await request("GET", "/products", fallback="Failed to load products")
    return [models.Product.from_json(p) for p in _list(data)]


async def get_product(pid: str) -> Optional[models.Product]:
    data = await request("GET", f"/products/{pid}", fallback="Failed to load product")
    return models.Product.from_json(data) if data else None


async def create_product(data: Dict[str, Any]) -> models.Product:
    res = await request("POST", "/products", json=data, fallback="Failed to create product")
    cache.invalidate("products", "low-stock")
    return models.Product.from_json(res or data)


async def update_product(pid: str, data: Dict[str, Any]) -> models.Product:
    res = await request("PUT", f"/products/{pid}", json=data, fallback="Failed to update product")
    cache.invalidate("products", "low-stock")
    return models.Product.from_json(res or {"_id": pid, **data})


async def delete_product(pid: str) -> None:
    await request("DELETE", f"/products/{pid}", fallback="Failed to delete product")
    cache.invalidate("products", "low-stock")


@cached_query("low-stock")
async def list_low_stock_products() -> List[models.Product]:
    data = await request("GET", "/products/low-stock", fallback="Failed to load low stock products")
    return [models.Product.from_json(p) for p in _list(data)]


async def add_stock(pid: str, quantity: int, note: str = "") -> models.Product:
    res = await request(
        "POST",
        f"/products/{pid}/stock",
        json={"quantity": quantity, "note": note},
        fallback="Failed to add stock",
    )
    cache.invalidate("products", "low-stock")
    return models.Product.from_json((res or {}).get("product") or res or {"_id": pid})


async def stock_history(pid: str) -> List[models.StockMovement]:
    data = await request("GET", f"/products/{pid}/stock-history", fallback="Failed to load stock history")
    return [models.StockMovement.from_json(m) for m in _list(data)]


@cached_query("categories")
async def list_categories() -> List[models.Category]:
    data = await request("GET", "/categories", fallback="Failed to load categories")
    return [models.Category.from_json(c) for c in _list(data)]


async def create_category(name: str, description: str = "") -> None:
    await request(
        "POST",
        "/categories",
        json={"name": name, "description": description},
        fallback="Failed to create category",
    )
    cache.invalidate("categories")


async def update_category(cid: str, name: str, description: str = "") -> None:
    await request(
        "PUT",
        f"/categories/{cid}",
        json={"name": name, "description": description},
        fallback="Failed to update category",
    )
    cache.invalidate("categories")


async def delete_category(cid: str) -> None:
    await request("DELETE", f"/categories/{cid}", fallback="Failed to delete category")
    cache.invalidate("categories")


# ---------------------------
# Customers
# ---------------------------


@cached_query("customers")
async def list_customers() -> List[models.Customer]:
    data = await request("GET", "/customers", fallback="Failed to load customers")
    return [models.Customer.from_json(c) for c in _list(data)]


async def get_customer(cid: str) -> Optional[models.Customer]:
    data = await request("GET", f"/customers/{cid}", fallback="Failed to load customer")
    return models.Customer.from_json(data) if data else None


async def create_customer(data: Dict[str, Any]) -> None:
    await request("POST", "/customers", json=data, fallback="Failed to create customer")
    # customers with products take stock
    cache.invalidate("customers", "products", "low-stock")


async def update_customer(cid: str, data: Dict[str, Any]) -> None:
    await request("PUT", f"/customers/{cid}", json=data, fallback="Failed to update customer")
    cache.invalidate("customers", "products", "low-stock")


async def delete_customer(cid: str) -> None:
    await request("DELETE", f"/customers/{cid}", fallback="Failed to delete customer")
    cache.invalidate("customers", "products", "low-stock")


async def customer_history(cid: str) -> Dict[str, Any]:
    """Bills and outstanding balance of one customer."""
    data = await request("GET", f"/customers/{cid}/history", fallback="Failed to load customer history")
    return data or {}


# ---------------------------
# Sellers
# ---------------------------


@cached_query("sellers")
async def list_sellers() -> List[models.Seller]:
    data = await request("GET", "/sellers", fallback="Failed to load sellers")
    return [models.Seller.from_json(s) for s in _list(data)]


async def get_seller(sid: str) -> Optional[models.Seller]:
    data = await request("GET", f"/sellers/{sid}", fallback="Failed to load seller")
    return models.Seller.from_json(data) if data else None


async def create_seller(data: Dict[str, Any]) -> Tuple[models.Seller, str]:
    """Create a seller; returns the seller and the temporary password issued."""
    res = await request("POST", "/sellers", json=data, fallback="Failed to create seller") or {}
    cache.invalidate("sellers", "seller-leaderboard")
    seller = models.Seller.from_json(res.get("seller") or data)
    return seller, res.get("temporaryPassword") or ""


async def update_seller(sid: str, data: Dict[str, Any]) -> None:
    await request("PUT", f"/sellers/{sid}", json=data, fallback="Failed to update seller")
    cache.invalidate("sellers", "seller-leaderboard")


async def delete_seller(sid: str) -> None:
    await request("DELETE", f"/sellers/{sid}", fallback="Failed to delete seller")
    cache.invalidate("sellers", "seller-leaderboard")


@cached_query("seller-leaderboard")
async def seller_leaderboard() -> List[Dict[str, Any]]:
    data = await request("GET", "/sellers/leaderboard", fallback="Failed to load leaderboard")
    return _list(data)


async def seller_sales(sid: str) -> List[models.Sale]:
    data = await request("GET", f"/sellers/{sid}/sales", fallback="Failed to load seller sales")
    return [models.Sale.from_json(s) for s in _list(data)]


async def preview_commission_backfill() -> Dict[str, Any]:
    return await request(
        "GET", "/sellers/commission/preview", fallback="Failed to preview commission"
    ) or {}


async def backfill_commission() -> Dict[str, Any]:
    res = await request(
        "POST", "/sellers/commission/backfill", json={}, fallback="Failed to backfill commission"
    )
    cache.invalidate("sellers", "seller-leaderboard")
    return res or {}


# ---------------------------
# Bills
# ---------------------------


@cached_query("bills")
async def list_bills() -> List[models.Bill]:
    data = await request("GET", "/bills", fallback="Failed to load bills")
    return [models.Bill.from_json(b) for b in _list(data)]


async def get_bill(bid: str) -> Optional[models.Bill]:
    data = await request("GET", f"/bills/{bid}", fallback="Failed to load bill")
    return models.Bill.from_json(data) if data else None


async def create_bill(data: Dict[str, Any]) -> None:
    await request("POST", "/bills", json=data, fallback="Failed to create bill")
    cache.invalidate("products", "low-stock", "bills", "billing-stats")


async def update_bill(bid: str, data: Dict[str, Any]) -> None:
    await request("PUT", f"/bills/{bid}", json=data, fallback="Failed to update bill")
    cache.invalidate("products", "low-stock", "bills", "billing-stats")


async def delete_bill(bid: str) -> None:
    await request("DELETE", f"/bills/{bid}", fallback="Failed to delete bill")
    cache.invalidate("products", "low-stock", "bills", "billing-stats")


@cached_query("billing-stats")
async def billing_stats() -> Dict[str, Any]:
    return await request("GET", "/bills/stats", fallback="Failed to load billing stats") or {}


# ---------------------------
# Parcels (PO) and Book PO
# ---------------------------


@cached_query("parcels")
async def list_parcels() -> List[models.Parcel]:
    data = await request("GET", "/parcels", fallback="Failed to load parcels")
    return [models.Parcel.from_json(p) for p in _list(data)]


async def create_parcel(data: Dict[str, Any]) -> None:
    await request("POST", "/parcels", json=data, fallback="Failed to create parcel")
    cache.invalidate("parcels", "products", "low-stock")


async def update_parcel(poid: str, data: Dict[str, Any]) -> None:
    await request("PUT", f"/parcels/{poid}", json=data, fallback="Failed to update parcel")
    cache.invalidate("parcels", "products", "low-stock")


async def delete_parcel(poid: str) -> None:
    await request("DELETE", f"/parcels/{poid}", fallback="Failed to delete parcel")
    cache.invalidate("parcels", "products", "low-stock")


async def update_parcel_status(
    poid: str, status: Optional[str] = None, payment_status: Optional[str] = None
) -> None:
    body: Dict[str, Any] = {}
    if status:
        body["status"] = status
    if payment_status:
        body["paymentStatus"] = payment_status
    await request("PATCH", f"/parcels/{poid}/status", json=body, fallback="Failed to update status")
    # returned parcels put stock back
    cache.invalidate("parcels", "products", "low-stock")


@cached_query("book-po")
async def list_book_pos() -> List[models.BookPO]:
    data = await request("GET", "/book-po", fallback="Failed to load Book PO records")
    return [models.BookPO.from_json(b) for b in _list(data)]


async def create_book_po(data: Dict[str, Any]) -> None:
    await request("POST", "/book-po", json=data, fallback="Error in saving bill.")
    cache.invalidate("book-po")


async def update_book_po(bpid: str, data: Dict[str, Any]) -> None:
    await request("PUT", f"/book-po/{bpid}", json=data, fallback="Failed to update Book PO record")
    cache.invalidate("book-po")


async def delete_book_po(bpid: str) -> None:
    await request("DELETE", f"/book-po/{bpid}", fallback="Failed to delete Book PO record")
    cache.invalidate("book-po")


# ---------------------------
# Sales & returns
# ---------------------------


@cached_query("sales")
async def list_sales() -> List[models.Sale]:
    data = await request("GET", "/sales", fallback="Failed to load sales")
    return [models.Sale.from_json(s) for s in _list(data)]


async def create_sale(data: Dict[str, Any]) -> None:
    await request("POST", "/sales", json=data, fallback="Failed to record sale")
    cache.invalidate("sales", "products", "low-stock", "sellers", "seller-leaderboard")


def invoice_url(sale_id: str) -> str:
    """Download link for the PDF invoice rendered by the backend."""
    return f"{API_URL.rstrip('/')}/pdf/invoice/{sale_id}"


@cached_query("returns")
async def list_returns() -> List[models.ReturnRecord]:
    data = await request("GET", "/returns", fallback="Failed to load returns")
    return [models.ReturnRecord.from_json(r) for r in _list(data)]


async def create_return(data: Dict[str, Any]) -> None:
    await request("POST", "/returns", json=data, fallback="Failed to record return")
    cache.invalidate("returns", "products", "low-stock")


# ---------------------------
# Expenses, income, ad spend, dispatch
# ---------------------------


@cached_query("expenses")
async def list_expenses() -> List[models.LedgerEntry]:
    data = await request("GET", "/expenses", fallback="Failed to load expenses")
    return [models.LedgerEntry.from_json(e) for e in _list(data)]


async def create_expense(title: str, amount: float, notes: str = "") -> None:
    await request(
        "POST",
        "/expenses",
        json={"title": title, "amount": amount, "notes": notes},
        fallback="Failed to add expense",
    )
    cache.invalidate("expenses", "expense-stats")


@cached_query("expense-stats")
async def expense_stats() -> Dict[str, Any]:
    """Totals keyed by period: today / week / month / year."""
    return await request("GET", "/expenses/stats", fallback="Failed to load expense stats") or {}


@cached_query("income")
async def list_income() -> List[models.LedgerEntry]:
    data = await request("GET", "/income", fallback="Failed to load income")
    return [models.LedgerEntry.from_json(e) for e in _list(data)]


async def create_income(title: str, amount: float, notes: str = "") -> None:
    await request(
        "POST",
        "/income",
        json={"title": title, "amount": amount, "notes": notes},
        fallback="Failed to add income",
    )
    cache.invalidate("income", "income-stats")


@cached_query("income-stats")
async def income_stats() -> Dict[str, Any]:
    return await request("GET", "/income/stats", fallback="Failed to load income stats") or {}


@cached_query("ad-spend")
async def list_ad_spend() -> List[models.DailyFigure]:
    data = await request("GET", "/ad-spend", fallback="Failed to load ad spend")
    return [models.DailyFigure.from_json(a) for a in _list(data)]


async def upsert_ad_spend(date: str, total: float) -> None:
    await request(
        "POST", "/ad-spend", json={"date": date, "total": total}, fallback="Failed to save ad spend"
    )
    cache.invalidate("ad-spend")


@cached_query("dispatch-records")
async def list_dispatch_records() -> List[models.DailyFigure]:
    data = await request("GET", "/dispatch-records", fallback="Failed to load dispatch records")
    return [models.DailyFigure.from_json(d) for d in _list(data)]


async def upsert_dispatch_record(date: str, count: int, notes: str = "") -> None:
    await request(
        "POST",
        "/dispatch-records",
        json={"date": date, "count": count, "notes": notes},
        fallback="Failed to save dispatch record",
    )
    cache.invalidate("dispatch-records")


# ---------------------------
# Purchase batches
# ---------------------------


@cached_query("purchase-batches")
async def list_purchase_batches() -> List[models.PurchaseBatch]:
    data = await request("GET", "/purchase-batches", fallback="Failed to load purchase batches")
    return [models.PurchaseBatch.from_json(b) for b in _list(data)]


async def create_purchase_batch(data: Dict[str, Any]) -> None:
    await request("POST", "/purchase-batches", json=data, fallback="Failed to create purchase batch")
    cache.invalidate("products", "low-stock", "purchase-batches")


# ---------------------------
# LCS courier
# ---------------------------


@cached_query("lcs-parcels")
async def list_lcs_parcels() -> List[models.LcsParcel]:
    data = await request("GET", "/lcs/parcels", fallback="Failed to load LCS parcels")
    return [models.LcsParcel.from_json(p) for p in _list(data)]


async def sync_lcs_parcels(date_from: str, date_to: str) -> int:
    """Pull parcels booked in [date_from, date_to] from LCS; returns how many synced."""
    res = await request(
        "POST", "/lcs/sync", json={"from": date_from, "to": date_to}, fallback="Failed to fetch"
    ) or {}
    cache.invalidate("lcs-parcels")
    return int(res.get("synced") or res.get("count") or 0)


async def lookup_lcs_parcel(tracking_number: str) -> Optional[models.LcsParcel]:
    data = await request(
        "GET", f"/lcs/parcels/{tracking_number}", fallback="Tracking number not found"
    )
    return models.LcsParcel.from_json(data) if data else None


async def update_lcs_parcel_products(lid: str, products: List[Dict[str, Any]]) -> None:
    await request(
        "PUT",
        f"/lcs/parcels/{lid}/products",
        json={"products": products},
        fallback="Failed to update parcel products",
    )
    cache.invalidate("lcs-parcels")


# ---------------------------
# Dashboard & admins
# ---------------------------


async def dashboard_stats() -> models.DashboardStats:
    data = await request("GET", "/dashboard/stats", fallback="Failed to load dashboard")
    return models.DashboardStats.from_json(data or {})


async def chart_data() -> List[models.ChartPoint]:
    """Seven-day sales/revenue series."""
    data = await request("GET", "/dashboard/chart-data", fallback="Failed to load chart data")
    return [models.ChartPoint.from_json(p) for p in _list(data)]


async def list_admins() -> List[models.User]:
    data = await request("GET", "/admins", fallback="Failed to load admins")
    return [models.User.from_json(a) for a in _list(data)]


async def update_admin_role(uid: str, role: str) -> None:
    await request("PUT", f"/admins/{uid}/role", json={"role": role}, fallback="Failed to update role")


async def get_invite_code() -> str:
    data = await request("GET", "/admins/invite-code", fallback="Failed to load invite code")
    return (data or {}).get("inviteCode") or ""
