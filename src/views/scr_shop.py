from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Select

from db.models import Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

ALL_CATEGORIES = "__all__"


def matches(product: Product, query: str, category: str) -> bool:
    """Case-insensitive match on title, description and tags."""
    if category != ALL_CATEGORIES and product.category != category:
        return False
    query = query.strip().lower()
    if not query:
        return True
    haystack = " ".join([product.title, product.description, *product.tags]).lower()
    return all(word in haystack for word in query.split())


class ShopScreen(BaseScreen):
    """
    The gallery: browse and search products, open one for details.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
        Binding("a", "add_to_cart", "Add to Cart", show=True),
        Binding("w", "toggle_wishlist", "Wishlist", show=True),
    ]

    def __init__(self):
        super().__init__()
        self._row_ids: List[str] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-filters"):
            yield Input(
                id="input-search", placeholder="Search by title, tag or description..."
            )
            yield Select(
                [("All categories", ALL_CATEGORIES)],
                value=ALL_CATEGORIES,
                allow_blank=False,
                id="select-category",
            )
        yield DataTable(id="table-products")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Title", "Category", "Price", "Stock", "♥")
        self.reload()
        self.query_one("#input-search").focus()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    def handle_resume(self) -> None:
        self.reload()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed, "#select-category")
    def handle_filter_change(self) -> None:
        self.fill_table()

    def reload(self) -> None:
        categories = sorted({p.category for p in self.store.products})
        select = self.query_one("#select-category", Select)
        current = select.value
        select.set_options(
            [("All categories", ALL_CATEGORIES)] + [(c, c) for c in categories]
        )
        select.value = current if current in categories else ALL_CATEGORIES
        self.fill_table()

    def fill_table(self) -> None:
        query = self.query_one("#input-search", Input).value
        category = self.query_one("#select-category", Select).value
        if category is Select.BLANK:
            category = ALL_CATEGORIES

        products = [p for p in self.store.products if matches(p, query, category)]
        table = self.query_one(DataTable)
        table.clear()
        self._row_ids = [p.id for p in products]
        for p in products:
            table.add_row(
                p.id,
                p.title,
                p.category,
                format_price(p.price),
                str(p.stock) if p.stock > 0 else "Sold out",
                "♥" if p.id in self.store.wishlist else "",
            )

    def _selected(self) -> Product | None:
        table = self.query_one(DataTable)
        if not self._row_ids or table.cursor_row is None:
            return None
        if not 0 <= table.cursor_row < len(self._row_ids):
            return None
        return self.store.get_product(self._row_ids[table.cursor_row])

    @on(DataTable.RowSelected)
    def handle_row_selected(self) -> None:
        self.open_detail()

    @work()
    async def open_detail(self) -> None:
        product = self._selected()
        if product is None:
            return
        await self.app.push_screen_wait(ProdDetailModal(product.id))
        self.fill_table()
        await self.refresh_sidebar()

    def action_noop(self) -> None:
        pass

    async def action_add_to_cart(self) -> None:
        product = self._selected()
        if product is None:
            return
        self.store.add_to_cart(product)
        self.app.post_message(CartChangedMessage())
        await self.refresh_sidebar()

    @work(exclusive=True)
    async def action_toggle_wishlist(self) -> None:
        product = self._selected()
        if product is None:
            return
        await self.store.toggle_wishlist(product.id)
        self.fill_table()
