from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, MarkdownViewer, Select

from db.models import Review
from utils.messages import CartChangedMessage
from utils.pure import format_price, generate_markdown_table, new_id, now_iso


class ProdDetailModal(ModalScreen[bool]):
    """
    Product details with its reviews. Returns True if the cart changed.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self, product_id: str):
        super().__init__()
        self.product_id = product_id
        self._cart_changed = False

    def compose(self) -> ComposeResult:
        with Vertical(id="div-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False, id="md-prod")
            with Horizontal(id="hort-review"):
                yield Select(
                    [(f"{n} ★", n) for n in range(5, 0, -1)],
                    value=5,
                    allow_blank=False,
                    id="select-rating",
                )
                yield Input(placeholder="Share your thoughts...", id="input-review")
                yield Button("Post Review", id="btn-review")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Close", id="btn-close")
                yield Button("♥ Wishlist", id="btn-wishlist", variant="warning")
                yield Button("Add to Cart", id="btn-add", variant="primary")

    async def on_mount(self) -> None:
        await self.render_product()
        self.query_one("#btn-add").focus()

    async def render_product(self) -> None:
        store = self.app.store
        prod = store.get_product(self.product_id)
        if prod is None:
            await self.query_one(MarkdownViewer).document.update("Product not found.")
            return

        rows = [
            ["Price", format_price(prod.price)],
            ["Category", prod.category],
            ["In stock", prod.stock],
            ["Tags", ", ".join(prod.tags)],
        ]
        if prod.ai_pricing_details:
            rows.append(["AI pricing", prod.ai_pricing_details])
        wished = "♥ in your wishlist\n\n" if prod.id in store.wishlist else ""
        md = (
            f"## {prod.title}\n\n{wished}{prod.description}\n\n"
            + generate_markdown_table(["Detail", "Value"], rows, ["l", "l"])
        )

        reviews = store.product_reviews(prod.id)
        md += f"\n\n### Reviews ({len(reviews)})\n\n"
        if reviews:
            avg = sum(r.rating for r in reviews) / len(reviews)
            md += f"Average rating: {avg:.1f} / 5\n\n"
            for r in reviews:
                md += f"- **{r.user_name}** {'★' * r.rating}: {r.comment}\n"
        else:
            md += "No reviews yet.\n"
        await self.query_one(MarkdownViewer).document.update(md)

    @on(Button.Pressed, "#btn-add")
    async def handle_add(self) -> None:
        prod = self.app.store.get_product(self.product_id)
        if prod is None:
            return
        self.app.store.add_to_cart(prod)
        self._cart_changed = True
        self.app.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-wishlist")
    @work(exclusive=True)
    async def handle_wishlist(self) -> None:
        await self.app.store.toggle_wishlist(self.product_id)
        await self.render_product()

    @on(Button.Pressed, "#btn-review")
    @work(exclusive=True)
    async def handle_review(self) -> None:
        store = self.app.store
        if store.user is None:
            self.notify("Please login to write a review.", severity="warning")
            return
        comment_input = self.query_one("#input-review", Input)
        comment = comment_input.value.strip()
        if not comment:
            comment_input.add_class("-invalid")
            comment_input.focus()
            return

        review = Review(
            id=new_id("r"),
            product_id=self.product_id,
            user_id=store.user.id,
            user_name=store.user.name,
            rating=int(self.query_one("#select-rating", Select).value),
            comment=comment,
            date=now_iso(),
        )
        if await store.add_review(review):
            comment_input.value = ""
            comment_input.remove_class("-invalid")
            await self.render_product()

    @on(Button.Pressed, "#btn-close")
    def action_close(self) -> None:
        self.dismiss(self._cart_changed)

