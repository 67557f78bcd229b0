from typing import Dict

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.models import Notification, UserRole
from utils.logger import get_logger, route_to_textual
from utils.messages import (
    AlertsChangedMessage,
    CartChangedMessage,
    ModeSwitchedMessage,
    NewOrderMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from utils.state import AppStore
from views.base_screen import Sidebar
from views.modal_support import SupportModal
from views.scr_account import AccountScreen
from views.scr_admin import AdminScreen
from views.scr_cart import CartScreen
from views.scr_contact import ContactScreen
from views.scr_login import LoginScreen
from views.scr_shop import ShopScreen
from views.scr_studio import StudioScreen

_logger = get_logger(__name__)

SEVERITY = {
    "success": "information",
    "info": "information",
    "warning": "warning",
    "error": "error",
}


class ArtishaApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "account": AccountScreen,
        "studio": StudioScreen,
        "contact": ContactScreen,
        "admin": AdminScreen,
    }

    MODE_TITLES = {
        "shop": "Gallery",
        "cart": "Cart",
        "account": "My Account",
        "studio": "Creative Studio",
        "contact": "Contact Us",
        "admin": "Admin Dashboard",
    }

    CUSTOMER_MODES = ["shop", "cart", "studio", "account", "contact"]
    ADMIN_MODES = ["admin", "shop", "account"]

    CSS_PATH = "styles/index.tcss"

    store: AppStore

    def __init__(self):
        super().__init__()
        self.store = AppStore()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        route_to_textual()
        await self.store.bootstrap()
        self.store.notices.subscribe(self.show_notification)
        self.store.start_analytics()
        self.main_flow()

    def menu_modes(self) -> Dict[str, str]:
        user = self.store.user
        modes = (
            self.ADMIN_MODES
            if user is not None and user.role == UserRole.ADMIN
            else self.CUSTOMER_MODES
        )
        return {k: self.MODE_TITLES[k] for k in modes}

    def show_notification(self, note: Notification) -> None:
        self.notify(note.message, severity=SEVERITY[note.type])
        self.post_message(AlertsChangedMessage())

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def action_support(self) -> None:
        if not isinstance(self.screen, SupportModal):
            self.push_screen(SupportModal())

    @on(CartChangedMessage)
    @on(AlertsChangedMessage)
    @on(NewOrderMessage)
    async def handle_sidebar_refresh(self) -> None:
        for screen in self.screen_stack:
            for sidebar in screen.query(Sidebar):
                await sidebar.refresh_info()

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.store.logout()
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.store.close()
        self.exit()

    @work
    async def main_flow(self):
        if not self.store.session.active:
            await self.push_screen_wait(LoginScreen())

        user = self.store.user
        mode = "admin" if user is not None and user.role == UserRole.ADMIN else "shop"
        _logger.info(f"Entering {mode} as {user.email if user else 'guest'}")
        self.post_message(ModeSwitchedMessage(self.current_mode, mode))
        await self.switch_mode(mode)


def run() -> None:
    ArtishaApp().run()


if __name__ == "__main__":
    run()
