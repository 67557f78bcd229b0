import dataclasses
from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import (
    Button,
    DataTable,
    Input,
    Label,
    MarkdownViewer,
    TabbedContent,
    TabPane,
)

from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import format_price, generate_markdown_table, is_valid_email
from views.base_screen import BaseScreen


class AccountScreen(BaseScreen):
    """
    Profile, password, past orders and wishlist of the logged-in user.
    """

    def __init__(self) -> None:
        super().__init__()
        self._wish_ids: List[str] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-account"):
            with TabPane("Orders", id="tab-orders"):
                with Vertical():
                    yield MarkdownViewer(
                        "", id="md-order-detail", show_table_of_contents=False
                    )
                    yield DataTable(id="table-orders")
            with TabPane("Wishlist", id="tab-wishlist"):
                with Vertical():
                    yield DataTable(id="table-wishlist")
                    with Horizontal(classes="form-buttons"):
                        yield Button("Remove", id="btn-wish-remove")
                        yield Button(
                            "Add to Cart", id="btn-wish-cart", variant="primary"
                        )
            with TabPane("Profile", id="tab-profile"):
                with Vertical(classes="form"):
                    yield Label("Name")
                    yield Input(id="input-name")
                    yield Label("Email")
                    yield Input(id="input-email")
                    yield Label("", id="label-email-error", classes="form-error")
                    yield Label("Avatar URL")
                    yield Input(id="input-avatar")
                    yield Label("Bio")
                    yield Input(id="input-bio")
                    yield Button("Save Profile", id="btn-profile", variant="primary")
            with TabPane("Password", id="tab-password"):
                with Vertical(classes="form"):
                    yield Label("Current password")
                    yield Input(password=True, id="input-pwd-current")
                    yield Label("New password")
                    yield Input(password=True, id="input-pwd-new")
                    yield Label("Confirm new password")
                    yield Input(password=True, id="input-pwd-confirm")
                    yield Button(
                        "Change Password", id="btn-password", variant="primary"
                    )

    def on_mount(self) -> None:
        orders = self.query_one("#table-orders", DataTable)
        orders.cursor_type = "row"
        orders.zebra_stripes = True
        orders.add_columns("Order", "Date", "Items", "Status", "Total")

        wishes = self.query_one("#table-wishlist", DataTable)
        wishes.cursor_type = "row"
        wishes.add_columns("Title", "Category", "Price")
        self.handle_refresh()

    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self) -> None:
        store = self.store
        user = store.user
        if user is None:
            return

        orders = self.query_one("#table-orders", DataTable)
        orders.clear()
        for o in store.user_orders:
            orders.add_row(
                o.id,
                o.date[:10],
                str(sum(i.quantity for i in o.items)),
                o.status.value.title(),
                format_price(o.total),
                key=o.id,
            )

        wishes = self.query_one("#table-wishlist", DataTable)
        wishes.clear()
        products = store.wishlist_products
        self._wish_ids = [p.id for p in products]
        for p in products:
            wishes.add_row(p.title, p.category, format_price(p.price))

        self.query_one("#input-name", Input).value = user.name
        self.query_one("#input-email", Input).value = user.email
        self.query_one("#input-avatar", Input).value = user.avatar or ""
        self.query_one("#input-bio", Input).value = user.bio or ""

    @on(DataTable.RowHighlighted, "#table-orders")
    async def handle_order_highlight(self, event: DataTable.RowHighlighted) -> None:
        order_id = event.row_key.value if event.row_key else None
        order = next((o for o in self.store.user_orders if o.id == order_id), None)
        if order is None:
            return
        rows = [
            [i.product.title, format_price(i.product.price), i.quantity,
             format_price(i.line_total)]
            for i in order.items
        ]
        md = (
            f"### Order {order.id}\n\n"
            f"Placed {order.date[:10]}, status **{order.status.value}**\n\n"
            + generate_markdown_table(
                ["Product", "Unit Price", "Qty", "Total"], rows, ["l", "r", "c", "r"]
            )
            + f"\n\n**Total:** {format_price(order.total)}"
        )
        await self.query_one("#md-order-detail", MarkdownViewer).document.update(md)

    def _selected_wish(self) -> str | None:
        table = self.query_one("#table-wishlist", DataTable)
        if not self._wish_ids or not 0 <= table.cursor_row < len(self._wish_ids):
            return None
        return self._wish_ids[table.cursor_row]

    @on(Button.Pressed, "#btn-wish-remove")
    @work(exclusive=True)
    async def handle_wish_remove(self) -> None:
        product_id = self._selected_wish()
        if product_id is None:
            return
        await self.store.toggle_wishlist(product_id)
        self.handle_refresh()

    @on(Button.Pressed, "#btn-wish-cart")
    async def handle_wish_cart(self) -> None:
        product_id = self._selected_wish()
        product = self.store.get_product(product_id) if product_id else None
        if product is None:
            return
        self.store.add_to_cart(product)
        self.app.post_message(CartChangedMessage())
        await self.refresh_sidebar()

    @on(Button.Pressed, "#btn-profile")
    @work(exclusive=True)
    async def handle_profile(self) -> None:
        user = self.store.user
        if user is None:
            return
        email_input = self.query_one("#input-email", Input)
        email = email_input.value.strip()
        if not is_valid_email(email):
            self.query_one("#label-email-error", Label).update(
                "Please enter a valid email address."
            )
            email_input.add_class("-invalid")
            self.notify("Validation failed.", severity="error")
            return
        self.query_one("#label-email-error", Label).update("")
        email_input.remove_class("-invalid")

        updated = dataclasses.replace(
            user,
            name=self.query_one("#input-name", Input).value.strip() or user.name,
            email=email,
            avatar=self.query_one("#input-avatar", Input).value.strip() or None,
            bio=self.query_one("#input-bio", Input).value.strip() or None,
        )
        if await self.store.update_profile(updated):
            await self.refresh_sidebar()

    @on(Button.Pressed, "#btn-password")
    @work(exclusive=True)
    async def handle_password(self) -> None:
        fields = ["#input-pwd-current", "#input-pwd-new", "#input-pwd-confirm"]
        current, new, confirm = (self.query_one(f, Input).value for f in fields)
        if not new:
            self.query_one("#input-pwd-new", Input).focus()
            return
        if await self.store.change_password(current, new, confirm):
            for f in fields:
                self.query_one(f, Input).value = ""
