from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.timer import Timer
from textual.widgets import LoadingIndicator

import api.client as client
from utils.config import settings
from utils.logger import get_logger
from utils.messages import NotificationsChangedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.notifications import NotificationCenter, check_low_stock
from utils.state import SessionState
from views.scr_admins import AdminsScreen
from views.scr_billing import BillingScreen
from views.scr_book_po import BookPOScreen
from views.scr_customers import CustomersScreen
from views.scr_dashboard import DashboardScreen
from views.scr_lcs import LcsScreen
from views.scr_ledger import AdSpendScreen, DispatchScreen, ExpensesScreen, IncomeScreen
from views.scr_login import LoginScreen
from views.scr_notifications import NotificationsScreen
from views.scr_po import POScreen
from views.scr_products import ProductsScreen
from views.scr_purchase_batches import PurchaseBatchesScreen
from views.scr_sales import ReturnsScreen, SalesScreen
from views.scr_sellers import SellersScreen

_logger = get_logger(__name__)


class EtimadMartApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "dashboard": DashboardScreen,
        "products": ProductsScreen,
        "purchase_batches": PurchaseBatchesScreen,
        "customers": CustomersScreen,
        "po": POScreen,
        "book_po": BookPOScreen,
        "billing": BillingScreen,
        "sellers": SellersScreen,
        "sales": SalesScreen,
        "returns": ReturnsScreen,
        "expenses": ExpensesScreen,
        "income": IncomeScreen,
        "ad_spend": AdSpendScreen,
        "dispatch": DispatchScreen,
        "lcs": LcsScreen,
        "notifications": NotificationsScreen,
        "admins": AdminsScreen,
    }

    ADMIN_MODES = {
        "dashboard": "Dashboard",
        "products": "Products",
        "purchase_batches": "Purchase Batches",
        "customers": "Customers",
        "po": "PO",
        "book_po": "Book PO",
        "billing": "Billing",
        "sellers": "Sellers",
        "sales": "Sales",
        "returns": "Returns",
        "expenses": "Expenses",
        "income": "Income",
        "ad_spend": "Ad Spend",
        "dispatch": "Dispatch",
        "lcs": "LCS Parcels",
        "notifications": "Notifications",
        "admins": "Admin Management",
    }
    SELLER_MODES = {
        "dashboard": "Dashboard",
        "customers": "Customers",
        "sales": "Sales",
        "notifications": "Notifications",
    }

    CSS_PATH = "views/styles/app.tcss"

    state: SessionState
    notifications: NotificationCenter

    def __init__(self):
        super().__init__()
        self.state = SessionState()
        self.notifications = NotificationCenter()
        self._poll_timer: Optional[Timer] = None
        self._in_login = False
        client.on_unauthorized(self.handle_unauthorized)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def start_low_stock_poll(self) -> None:
        self.stop_low_stock_poll()
        self._poll_timer = self.set_interval(settings.LOW_STOCK_POLL_SECONDS, self.poll_low_stock)
        self.poll_low_stock()

    def stop_low_stock_poll(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.stop()
            self._poll_timer = None

    @work(exclusive=True, group="low-stock")
    async def poll_low_stock(self) -> None:
        note = await check_low_stock(self.notifications, self.state)
        if note is None:
            return
        self.notify(note.message, title=note.title, severity="warning")
        self.screen.post_message(NotificationsChangedMessage())

    def handle_unauthorized(self) -> None:
        """Any 401 ends the session; send the user back to login once."""
        self.stop_low_stock_poll()
        if self._in_login:
            return
        self.notify("Session expired, please log in again.", severity="warning")
        self.main_flow()

    def reload_session(self) -> None:
        self.main_flow()

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        self.stop_low_stock_poll()
        await self.state.logout()
        self.notifications.clear()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.stop_low_stock_poll()
        self.exit()

    @work
    async def main_flow(self):
        """Restore the saved session or ask for a login, then open the dashboard."""
        self._in_login = True
        try:
            self.state.load()
            if not await self.state.restore():
                await self.push_screen_wait(LoginScreen())
        finally:
            self._in_login = False

        _logger.info(f"Session started as {self.state.role}")
        self.start_low_stock_poll()
        await self.switch_mode("dashboard")


def run() -> None:
    EtimadMartApp().run()


if __name__ == "__main__":
    run()
