from __future__ import annotations

import dataclasses
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import (
    Button,
    DataTable,
    Input,
    Label,
    MarkdownViewer,
    Select,
    Sparkline,
    TabbedContent,
    TabPane,
)

from db.models import OrderStatus, Product, UserRole
from services import genai
from utils.messages import CatalogChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_price, generate_markdown_table, new_id
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

OVERVIEW_REFRESH = 2.0


class AdminScreen(BaseScreen):
    """
    Admin dashboard: live overview, catalog editor, order fulfilment,
    user management and the contact inbox.
    """

    def __init__(self) -> None:
        super().__init__()
        self._editing_id: Optional[str] = None
        self._pending_image: Optional[str] = None
        self._product_ids: List[str] = []
        self._order_ids: List[str] = []
        self._user_ids: List[str] = []
        self._message_ids: List[str] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="tabs-admin"):
            with TabPane("Overview", id="tab-overview"):
                with Vertical():
                    yield MarkdownViewer(
                        "", id="md-overview", show_table_of_contents=False
                    )
                    yield Label("Active users (live)")
                    yield Sparkline([], id="spark-users")
                    yield Label("Page views (live)")
                    yield Sparkline([], id="spark-views")
            with TabPane("Products", id="tab-products"):
                with Horizontal():
                    yield DataTable(id="table-admin-products")
                    with Vertical(classes="form", id="vert-product-form"):
                        yield Label("Title")
                        yield Input(id="input-p-title")
                        yield Label("Category")
                        yield Input(id="input-p-category")
                        yield Label("Price (LKR)")
                        yield Input(
                            id="input-p-price",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                        yield Label("Stock")
                        yield Input(
                            id="input-p-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                        yield Label("Tags (comma separated)")
                        yield Input(id="input-p-tags")
                        yield Label("Description")
                        yield Input(id="input-p-description")
                        yield Label("", id="label-p-image")
                        with Horizontal(classes="form-buttons"):
                            yield Button("AI Description", id="btn-ai-description")
                            yield Button("AI Image", id="btn-ai-image")
                        with Horizontal(classes="form-buttons"):
                            yield Button("New", id="btn-p-new")
                            yield Button("Delete", id="btn-p-delete", variant="error")
                            yield Button("Save", id="btn-p-save", variant="primary")
            with TabPane("Orders", id="tab-orders"):
                with Vertical():
                    yield DataTable(id="table-admin-orders")
                    with Horizontal(classes="form-buttons"):
                        yield Select(
                            [(s.value.title(), s.value) for s in OrderStatus],
                            value=OrderStatus.PROCESSING.value,
                            allow_blank=False,
                            id="select-status",
                        )
                        yield Button(
                            "Update Status", id="btn-order-status", variant="primary"
                        )
            with TabPane("Users", id="tab-users"):
                with Vertical():
                    yield DataTable(id="table-admin-users")
                    with Horizontal(classes="form-buttons"):
                        yield Button("Delete User", id="btn-user-delete", variant="error")
            with TabPane("Inbox", id="tab-inbox"):
                with Vertical():
                    yield DataTable(id="table-admin-inbox")
                    yield MarkdownViewer(
                        "", id="md-message", show_table_of_contents=False
                    )
                    with Horizontal(classes="form-buttons"):
                        yield Button("Mark Read", id="btn-msg-read")
                        yield Button("Delete", id="btn-msg-delete", variant="error")

    def on_mount(self) -> None:
        columns = {
            "#table-admin-products": ("Title", "Category", "Price", "Stock"),
            "#table-admin-orders": ("Order", "Customer", "Date", "Total", "Status"),
            "#table-admin-users": ("Name", "Email", "Role", "Joined"),
            "#table-admin-inbox": ("", "From", "Subject", "Date"),
        }
        for selector, names in columns.items():
            table = self.query_one(selector, DataTable)
            table.cursor_type = "row"
            table.zebra_stripes = True
            table.add_columns(*names)

        self.call_after_refresh(self.handle_reload)
        self.set_interval(OVERVIEW_REFRESH, self.refresh_overview)

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @on(NewOrderMessage)
    @on(CatalogChangedMessage)
    async def handle_reload(self) -> None:
        await self.refresh_overview()
        self.fill_products()
        self.fill_orders()
        self.fill_users()
        self.fill_inbox()

    # ---------------------------
    # Overview
    # ---------------------------

    async def refresh_overview(self) -> None:
        store = self.store
        latest = store.analytics[-1] if store.analytics else None
        rows = [
            ["Total revenue", format_price(store.revenue)],
            ["Orders", len(store.orders)],
            ["New orders", store.new_order_count],
            ["Products", len(store.products)],
            ["Users", len(store.users)],
            ["Unread messages", store.unread_message_count],
        ]
        if latest is not None:
            rows.append(["Active users", latest.active_users])
            rows.append(["Last action", latest.recent_action])
        md = "### Store Overview\n\n" + generate_markdown_table(
            ["Metric", "Value"], rows, ["l", "r"]
        )
        await self.query_one("#md-overview", MarkdownViewer).document.update(md)
        self.query_one("#spark-users", Sparkline).data = [
            m.active_users for m in store.analytics
        ]
        self.query_one("#spark-views", Sparkline).data = [
            m.page_views for m in store.analytics
        ]

    @on(TabbedContent.TabActivated, "#tabs-admin")
    async def handle_tab(self, event: TabbedContent.TabActivated) -> None:
        if event.pane.id == "tab-orders":
            self.store.clear_new_order_count()
            await self.refresh_sidebar()

    # ---------------------------
    # Products
    # ---------------------------

    def fill_products(self) -> None:
        table = self.query_one("#table-admin-products", DataTable)
        table.clear()
        self._product_ids = [p.id for p in self.store.products]
        for p in self.store.products:
            table.add_row(p.title, p.category, format_price(p.price), str(p.stock))

    @on(DataTable.RowHighlighted, "#table-admin-products")
    def handle_product_highlight(self, event: DataTable.RowHighlighted) -> None:
        if not 0 <= event.cursor_row < len(self._product_ids):
            return
        product = self.store.get_product(self._product_ids[event.cursor_row])
        if product is not None:
            self.load_form(product)

    def load_form(self, product: Optional[Product]) -> None:
        self._editing_id = product.id if product else None
        self._pending_image = product.image_url if product else None
        values = {
            "#input-p-title": product.title if product else "",
            "#input-p-category": product.category if product else "",
            "#input-p-price": str(product.price) if product else "",
            "#input-p-stock": str(product.stock) if product else "",
            "#input-p-tags": ", ".join(product.tags) if product else "",
            "#input-p-description": product.description if product else "",
        }
        for selector, value in values.items():
            self.query_one(selector, Input).value = value
        self.update_image_label()

    def update_image_label(self) -> None:
        self.query_one("#label-p-image", Label).update(
            "Image: attached" if self._pending_image else "Image: none"
        )

    @on(Button.Pressed, "#btn-p-new")
    def handle_new_product(self) -> None:
        self.load_form(None)
        self.query_one("#input-p-title", Input).focus()

    def read_form(self) -> Optional[Product]:
        title_input = self.query_one("#input-p-title", Input)
        price_input = self.query_one("#input-p-price", Input)
        stock_input = self.query_one("#input-p-stock", Input)
        for required in (title_input, price_input):
            if not required.value.strip():
                required.add_class("-invalid")
                required.focus()
                return None
            required.remove_class("-invalid")

        tags = [
            t.strip()
            for t in self.query_one("#input-p-tags", Input).value.split(",")
            if t.strip()
        ]
        return Product(
            id=self._editing_id or new_id("p"),
            title=title_input.value.strip(),
            description=self.query_one("#input-p-description", Input).value.strip(),
            price=int(price_input.value),
            category=self.query_one("#input-p-category", Input).value.strip()
            or "Uncategorized",
            image_url=self._pending_image or "",
            stock=int(stock_input.value or 0),
            tags=tags,
        )

    @on(Button.Pressed, "#btn-p-save")
    @work(exclusive=True)
    async def handle_save_product(self) -> None:
        product = self.read_form()
        if product is None:
            self.notify("Title and price are required.", severity="error")
            return

        if self._editing_id is None:
            ok = await self.store.add_product(product)
        else:
            existing = self.store.get_product(self._editing_id)
            if existing is not None:
                product = dataclasses.replace(
                    product, ai_pricing_details=existing.ai_pricing_details
                )
            ok = await self.store.update_product(product)
        if ok:
            self._editing_id = product.id
            self.fill_products()
            self.app.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-p-delete")
    @work(exclusive=True)
    async def handle_delete_product(self) -> None:
        if self._editing_id is None:
            self.notify("Select a product first.", severity="warning")
            return
        confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Delete this product from the catalog?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        )
        if confirmed and await self.store.remove_product(self._editing_id):
            self.load_form(None)
            self.fill_products()
            self.app.post_message(CatalogChangedMessage())

    @on(Button.Pressed, "#btn-ai-description")
    @work(exclusive=True)
    async def handle_ai_description(self) -> None:
        title = self.query_one("#input-p-title", Input).value.strip()
        category = self.query_one("#input-p-category", Input).value.strip()
        if not title:
            self.notify("Enter a title first.", severity="warning")
            return
        button = self.query_one("#btn-ai-description", Button)
        button.disabled = True
        try:
            description = await genai.generate_product_description(title, category)
        finally:
            button.disabled = False
        if description:
            self.query_one("#input-p-description", Input).value = description
        else:
            self.notify("Could not generate a description.", severity="warning")

    @on(Button.Pressed, "#btn-ai-image")
    @work(exclusive=True)
    async def handle_ai_image(self) -> None:
        title = self.query_one("#input-p-title", Input).value.strip()
        description = self.query_one("#input-p-description", Input).value.strip()
        if not title:
            self.notify("Enter a title first.", severity="warning")
            return
        button = self.query_one("#btn-ai-image", Button)
        button.disabled = True
        try:
            image = await genai.generate_art_image(f"{title}. {description}")
        finally:
            button.disabled = False
        if image:
            self._pending_image = image
            self.update_image_label()
        else:
            self.notify("Could not generate an image.", severity="warning")

    # ---------------------------
    # Orders
    # ---------------------------

    def fill_orders(self) -> None:
        names = {u.id: u.name for u in self.store.users}
        table = self.query_one("#table-admin-orders", DataTable)
        table.clear()
        self._order_ids = [o.id for o in self.store.orders]
        for o in self.store.orders:
            table.add_row(
                o.id,
                names.get(o.user_id, o.user_id),
                o.date[:10],
                format_price(o.total),
                o.status.value.title(),
            )

    @on(Button.Pressed, "#btn-order-status")
    @work(exclusive=True)
    async def handle_order_status(self) -> None:
        table = self.query_one("#table-admin-orders", DataTable)
        if not 0 <= table.cursor_row < len(self._order_ids):
            self.notify("No order selected.", severity="warning")
            return
        status = self.query_one("#select-status", Select).value
        if await self.store.update_order_status(
            self._order_ids[table.cursor_row], status
        ):
            self.fill_orders()
            self.app.post_message(NewOrderMessage())

    # ---------------------------
    # Users
    # ---------------------------

    def fill_users(self) -> None:
        table = self.query_one("#table-admin-users", DataTable)
        table.clear()
        self._user_ids = [u.id for u in self.store.users]
        for u in self.store.users:
            role = "Admin" if u.role == UserRole.ADMIN else "Customer"
            table.add_row(u.name, u.email, role, (u.join_date or "")[:10])

    @on(Button.Pressed, "#btn-user-delete")
    @work(exclusive=True)
    async def handle_delete_user(self) -> None:
        table = self.query_one("#table-admin-users", DataTable)
        if not 0 <= table.cursor_row < len(self._user_ids):
            return
        user_id = self._user_ids[table.cursor_row]
        if user_id == self.store.session.uid:
            self.notify("You cannot delete your own account.", severity="error")
            return
        confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Delete this user?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        )
        if confirmed and await self.store.delete_user(user_id):
            self.fill_users()

    # ---------------------------
    # Inbox
    # ---------------------------

    def fill_inbox(self) -> None:
        table = self.query_one("#table-admin-inbox", DataTable)
        table.clear()
        self._message_ids = [m.id for m in self.store.messages]
        for m in self.store.messages:
            table.add_row("" if m.read else "●", m.name, m.subject, m.date[:10])

    def _selected_message_id(self) -> Optional[str]:
        table = self.query_one("#table-admin-inbox", DataTable)
        if not 0 <= table.cursor_row < len(self._message_ids):
            return None
        return self._message_ids[table.cursor_row]

    @on(DataTable.RowHighlighted, "#table-admin-inbox")
    async def handle_message_highlight(self) -> None:
        message_id = self._selected_message_id()
        message = next((m for m in self.store.messages if m.id == message_id), None)
        if message is None:
            return
        md = (
            f"### {message.subject}\n\n"
            f"From **{message.name}** <{message.email}>, {message.date[:10]}\n\n"
            f"{message.message}"
        )
        await self.query_one("#md-message", MarkdownViewer).document.update(md)

    @on(Button.Pressed, "#btn-msg-read")
    @work(exclusive=True)
    async def handle_mark_read(self) -> None:
        message_id = self._selected_message_id()
        if message_id is not None and await self.store.mark_message_read(message_id):
            self.fill_inbox()
            await self.refresh_sidebar()

    @on(Button.Pressed, "#btn-msg-delete")
    @work(exclusive=True)
    async def handle_delete_message(self) -> None:
        message_id = self._selected_message_id()
        if message_id is None:
            return
        if await self.store.delete_message(message_id):
            self.fill_inbox()
            await self.refresh_sidebar()
