from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from db.models import UserRole
from utils.messages import ModeSwitchedMessage, UserLoginMessage, UserLogoutMessage
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import AlertsModal, DialogModal, QuitDialogModal


class Sidebar(Container):
    init_mode = ""
    _menu: tuple = ()

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Alerts", id="btn-alerts")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.refresh_info()
        await self.rebuild_menu()

    async def rebuild_menu(self) -> None:
        """menu depends on the role of whoever is logged in"""
        modes = self.app.menu_modes()
        if tuple(modes) == self._menu:
            return
        self._menu = tuple(modes)
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in modes.items()]
        )
        self.highlight_item(self.init_mode)

    async def refresh_info(self) -> None:
        store = self.app.store
        user = store.user
        if user is None:
            rows = [["Role", "Guest"]]
        else:
            role = "Administrator" if user.role == UserRole.ADMIN else "Customer"
            rows = [["Name", user.name], ["Email", user.email], ["Role", role]]
        rows.append(["Cart", f"{store.cart_count} ({format_price(store.cart_total)})"])
        if user is not None and user.role == UserRole.ADMIN:
            rows.append(["New orders", store.new_order_count])
            rows.append(["Unread msgs", store.unread_message_count])
        md_table_str = generate_markdown_table(None, rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)
        self.query_one("#btn-alerts", Button).label = f"Alerts ({len(store.alerts)})"

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-alerts")
    @work()
    async def handle_alerts(self):
        await self.app.push_screen_wait(AlertsModal(self.app.store.alerts))
        await self.refresh_info()

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
        Binding("f1", "support", "Support", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Base Screen",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        :return:
        """

        # auto gen titles and subtitles
        self.app.title = "Artisha"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.MODE_TITLES.get(k, header_sub_title)

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @property
    def store(self):
        return self.app.store

    async def refresh_sidebar(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_info()

    async def on_resize(self, event: Resize) -> None:
        min_width = 80
        min_height = 24
        if event.size.width < min_width or event.size.height < min_height:
            self.notify(
                f"Resize the terminal to at least {min_width}x{min_height}.",
                severity="warning",
            )

    @on(UserLoginMessage)
    @on(ScreenResume)
    async def handle_user_login(self):
        for sidebar in self.query(Sidebar):
            await sidebar.rebuild_menu()
        await self.refresh_sidebar()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())

    def action_support(self) -> None:
        self.app.action_support()
