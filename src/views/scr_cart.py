from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class CartScreen(BaseScreen):
    """
    cart lines, plus ordering
    """

    def __init__(self) -> None:
        super().__init__()
        self._row_ids: List[str] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-cart")
        yield Label("Total Cart Value: LKR 0", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Remove Item", id="btn-remove")
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Place Order", id="btn-checkout", variant="primary")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Unit Price", "Quantity", "Line Total")
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def handle_cart_change(self) -> None:
        store = self.store
        table = self.query_one(DataTable)
        table.clear()
        self._row_ids = [item.id for item in store.cart]
        for item in store.cart:
            table.add_row(
                item.product.title,
                format_price(item.product.price),
                str(item.quantity),
                format_price(item.line_total),
            )

        table.set_class(not store.cart, "no-items")
        self.query_one("#label-cart-total", Label).update(
            f"Total Cart Value: {format_price(store.cart_total)}"
        )

    @on(Button.Pressed, "#btn-remove")
    @work()
    async def handle_remove_item(self) -> None:
        table = self.query_one(DataTable)
        if not self._row_ids:
            self.notify("Cart is empty.", severity="warning")
            return
        product_id = self._row_ids[table.cursor_row]

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        )
        if remove_confirmed:
            self.store.remove_from_cart(product_id)
            self.handle_cart_change()
            await self.refresh_sidebar()

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not self.store.cart:
            self.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        )
        if remove_confirmed:
            self.store.clear_cart()
            self.handle_cart_change()
            await self.refresh_sidebar()

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True)
    async def handle_checkout(self) -> None:
        store = self.store
        if not store.cart:
            self.notify("Cart is empty.", severity="warning")
            return

        confirmed = await self.app.push_screen_wait(
            DialogModal(
                f"Place order for {store.cart_count} item(s), "
                f"total {format_price(store.cart_total)}?",
                primary_text="Place Order",
                secondary_text="Go Back",
                tone="positive",
            )
        )
        if not confirmed:
            return
        if await store.place_order() is not None:
            self.app.post_message(NewOrderMessage())
        self.handle_cart_change()
        await self.refresh_sidebar()
