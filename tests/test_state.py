import asyncio
import dataclasses
import os
import random
import sys
import tempfile
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import crud  # noqa: E402
from db import database as db_database  # noqa: E402
from db.models import (  # noqa: E402
    AnalyticsMetric,
    Message,
    OrderStatus,
    Product,
    Review,
    User,
    UserRole,
)
from utils.analytics import ACTIONS  # noqa: E402
from utils.permissions import Capability  # noqa: E402
from utils.state import DEFAULT_BIO, DEFAULT_PASSWORD, AppStore  # noqa: E402

ADMIN_EMAIL = "admin@artisha.com"
CUSTOMER_EMAIL = "john@example.com"
PASSWORD = "password123"


def p9(price: int = 1000) -> Product:
    return Product(
        id="p9",
        title="Harbour at Dawn",
        description="Watercolour",
        price=price,
        category="Paintings",
        stock=5,
    )


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        db_database.DB_PATH = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database._initialized = False

    async def asyncSetUp(self):
        self.store = AppStore(rng=random.Random(7))
        await self.store.bootstrap()

    async def asyncTearDown(self):
        await self.store.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    def last_notice(self):
        return self.store.notifications[-1]

    async def login_admin(self):
        self.assertTrue(await self.store.login(ADMIN_EMAIL, UserRole.ADMIN, PASSWORD))

    async def login_customer(self):
        self.assertTrue(await self.store.login(CUSTOMER_EMAIL, password=PASSWORD))


class BootstrapTests(StoreTestCase):
    async def test_loads_seed_data(self):
        self.assertEqual(len(self.store.products), 4)
        self.assertEqual(len(self.store.users), 2)
        self.assertIsNone(self.store.user)
        self.assertEqual(self.store.cart, [])

    async def test_session_restored_on_next_start(self):
        await self.login_customer()
        await self.store.toggle_wishlist("p2")

        restarted = AppStore()
        await restarted.bootstrap()
        self.assertEqual(restarted.user.email, CUSTOMER_EMAIL)
        self.assertEqual(restarted.wishlist, ["p2"])

    async def test_no_session_after_logout(self):
        await self.login_customer()
        await self.store.logout()

        restarted = AppStore()
        await restarted.bootstrap()
        self.assertIsNone(restarted.user)


class AuthTests(StoreTestCase):
    async def test_register_then_login(self):
        ok = await self.store.register("Jane", "jane@x.com", UserRole.CUSTOMER, "pw1")
        self.assertTrue(ok)
        self.assertEqual(
            self.last_notice().message, "Account created successfully! Welcome, Jane."
        )
        jane = self.store.user
        self.assertTrue(jane.id.startswith("u-"))
        self.assertEqual(jane.bio, DEFAULT_BIO)
        self.assertIn("ui-avatars.com/api/?name=Jane", jane.avatar)
        self.assertIsNotNone(jane.join_date)

        await self.store.logout()
        self.assertTrue(await self.store.login("jane@x.com", UserRole.CUSTOMER, "pw1"))
        self.assertEqual(self.store.user.id, jane.id)
        self.assertEqual(self.last_notice().message, "Welcome back, Jane!")

    async def test_wrong_password_changes_nothing(self):
        await self.store.register("Jane", "jane@x.com", UserRole.CUSTOMER, "pw1")
        marker = await crud.load_session_marker()

        self.assertFalse(
            await self.store.login("jane@x.com", UserRole.CUSTOMER, "wrong")
        )
        self.assertEqual(self.last_notice().type, "error")
        self.assertEqual(self.last_notice().message, "Invalid password.")
        self.assertEqual(await crud.load_session_marker(), marker)
        self.assertEqual(self.store.user, marker)

    async def test_wrong_password_for_other_account_keeps_marker(self):
        await self.login_customer()
        self.assertFalse(await self.store.login(ADMIN_EMAIL, UserRole.ADMIN, "nope"))
        self.assertEqual((await crud.load_session_marker()).email, CUSTOMER_EMAIL)

    async def test_unknown_email(self):
        self.assertFalse(await self.store.login("ghost@x.com"))
        self.assertEqual(self.last_notice().message, "User not found. Please register.")
        self.assertIsNone(self.store.user)

    async def test_account_without_password_accepts_anything(self):
        await crud.add_user(User(id="u-legacy", name="Old Timer", email="old@x.com"))
        self.assertTrue(await self.store.login("old@x.com", password="whatever"))
        self.assertEqual(self.store.user.id, "u-legacy")

    async def test_role_does_not_restrict_match(self):
        self.assertTrue(await self.store.login(ADMIN_EMAIL, UserRole.CUSTOMER))
        self.assertEqual(self.store.user.role, UserRole.ADMIN)

    async def test_register_validation(self):
        self.assertFalse(await self.store.register("", "a@x.com"))
        self.assertFalse(await self.store.register("Ann", "not-an-email"))
        self.assertFalse(await self.store.register("Ann", CUSTOMER_EMAIL))
        self.assertEqual(self.last_notice().message, "Email already registered.")
        self.assertIsNone(self.store.user)
        self.assertEqual(len(self.store.users), 2)

    async def test_register_default_password(self):
        await self.store.register("Ann", "ann@x.com")
        self.assertEqual(self.store.user.password, DEFAULT_PASSWORD)

    async def test_logout_clears_session_state(self):
        await self.login_customer()
        await self.store.toggle_wishlist("p1")
        await self.store.logout()
        self.assertIsNone(self.store.user)
        self.assertEqual(self.store.wishlist, [])
        self.assertIsNone(await crud.load_session_marker())
        self.assertEqual(self.last_notice().message, "You have been logged out.")

    async def test_login_clears_previous_studio_transcript(self):
        await crud.save_studio_chat([])
        await self.login_customer()
        self.assertIsNone(await crud.load_studio_chat())

    async def test_change_password(self):
        await self.login_customer()
        self.assertFalse(await self.store.change_password(PASSWORD, "a", "b"))
        self.assertEqual(self.last_notice().message, "Passwords don't match.")
        self.assertFalse(await self.store.change_password("bad", "new-pw"))
        self.assertEqual(self.last_notice().message, "Current password incorrect.")

        self.assertTrue(await self.store.change_password(PASSWORD, "new-pw", "new-pw"))
        await self.store.logout()
        self.assertFalse(await self.store.login(CUSTOMER_EMAIL, password=PASSWORD))
        self.assertTrue(await self.store.login(CUSTOMER_EMAIL, password="new-pw"))

    async def test_change_password_needs_session(self):
        self.assertFalse(await self.store.change_password("x", "y"))
        self.assertEqual(self.last_notice().message, "Please login first.")

    async def test_update_profile(self):
        await self.login_customer()
        user = self.store.user
        updated = User(id=user.id, name="Johnny", email=user.email, role=user.role)
        self.assertTrue(await self.store.update_profile(updated))
        self.assertEqual(self.store.user.name, "Johnny")
        # merged, so untouched fields survive
        self.assertEqual(self.store.user.password, PASSWORD)
        self.assertEqual((await crud.load_session_marker()).name, "Johnny")

    async def test_update_profile_rejects_taken_email(self):
        await self.login_customer()
        user = self.store.user
        taken = User(id=user.id, name=user.name, email=ADMIN_EMAIL, role=user.role)
        self.assertFalse(await self.store.update_profile(taken))
        self.assertEqual(self.store.user.email, CUSTOMER_EMAIL)

    async def test_customer_cannot_edit_other_profiles(self):
        await self.login_customer()
        other = User(id="admin1", name="Hacked", email=ADMIN_EMAIL, role=UserRole.ADMIN)
        self.assertFalse(await self.store.update_profile(other))
        self.assertEqual(self.last_notice().message, "You are not allowed to do that.")

    async def test_customer_cannot_promote_themselves(self):
        await self.login_customer()
        promoted = dataclasses.replace(self.store.user, role=UserRole.ADMIN)
        self.assertFalse(await self.store.update_profile(promoted))
        self.assertEqual(self.last_notice().message, "You are not allowed to do that.")
        self.assertEqual(self.store.user.role, UserRole.CUSTOMER)
        self.assertFalse(self.store.can(Capability.MANAGE_USERS))
        stored = await crud.find_user_by_email(CUSTOMER_EMAIL)
        self.assertEqual(stored.role, UserRole.CUSTOMER)

    async def test_admin_can_change_roles(self):
        await self.login_admin()
        john = await crud.find_user_by_email(CUSTOMER_EMAIL)
        promoted = dataclasses.replace(john, role=UserRole.ADMIN)
        self.assertTrue(await self.store.update_profile(promoted))
        stored = await crud.find_user_by_email(CUSTOMER_EMAIL)
        self.assertEqual(stored.role, UserRole.ADMIN)

    async def test_reset_password_does_not_reveal_accounts(self):
        await self.store.reset_password(CUSTOMER_EMAIL)
        known = self.last_notice()
        await self.store.reset_password("ghost@x.com")
        unknown = self.last_notice()
        self.assertEqual(known.type, unknown.type)
        self.assertEqual(
            unknown.message,
            "If an account exists for ghost@x.com, a reset link has been sent.",
        )

    async def test_delete_user_needs_admin(self):
        await self.login_customer()
        self.assertFalse(await self.store.delete_user("admin1"))
        await self.store.logout()

        await self.login_admin()
        self.assertTrue(await self.store.delete_user("cust1"))
        self.assertEqual([u.id for u in self.store.users], ["admin1"])

    async def test_admin_cannot_delete_own_account(self):
        await self.login_admin()
        self.assertFalse(await self.store.delete_user("admin1"))
        self.assertEqual(
            self.last_notice().message, "You cannot delete your own account."
        )
        self.assertEqual(len(self.store.users), 2)
        self.assertEqual((await crud.load_session_marker()).id, "admin1")


class CatalogAndOrderTests(StoreTestCase):
    async def test_add_then_remove_product(self):
        await self.login_admin()
        others = list(self.store.products)

        self.assertTrue(await self.store.add_product(p9()))
        self.assertIn("p9", [p.id for p in await crud.get_all_products()])

        self.assertTrue(await self.store.remove_product("p9"))
        self.assertEqual(await crud.get_all_products(), others)
        self.assertEqual(self.store.products, others)

    async def test_duplicate_product_id_rejected(self):
        await self.login_admin()
        duplicate = Product(id="p1", title="Dup", description="", price=1, category="X")
        self.assertFalse(await self.store.add_product(duplicate))
        self.assertEqual(len(self.store.products), 4)

    async def test_update_product(self):
        await self.login_admin()
        original = self.store.get_product("p4")
        changed = Product(**{**original.to_dict(), "price": 9000})
        self.assertTrue(await self.store.update_product(changed))
        self.assertEqual((await crud.get_product("p4")).price, 9000)
        self.assertFalse(await self.store.update_product(p9()))
        self.assertEqual(self.last_notice().message, "Product not found.")

    async def test_catalog_needs_admin(self):
        self.assertFalse(await self.store.add_product(p9()))
        self.assertEqual(self.last_notice().message, "Please login first.")

        await self.login_customer()
        self.assertFalse(await self.store.add_product(p9()))
        self.assertFalse(await self.store.remove_product("p1"))
        self.assertEqual(len(await crud.get_all_products()), 4)

    async def test_add_to_cart_merges_lines(self):
        product = self.store.get_product("p1")
        self.store.add_to_cart(product)
        line = self.store.add_to_cart(product)
        self.assertEqual(len(self.store.cart), 1)
        self.assertEqual(line.quantity, 2)
        self.assertEqual(self.store.cart_count, 2)
        self.assertEqual(self.store.cart_total, 2 * product.price)
        self.assertEqual(self.last_notice().message, f"{product.title} added to cart!")

    async def test_remove_and_clear_cart(self):
        self.store.add_to_cart(self.store.get_product("p1"))
        self.store.add_to_cart(self.store.get_product("p2"))
        self.store.remove_from_cart("p1")
        self.assertEqual([i.id for i in self.store.cart], ["p2"])
        self.store.clear_cart()
        self.assertEqual(self.store.cart, [])

    async def test_place_order_scenario(self):
        await self.login_admin()
        await self.store.add_product(p9())
        self.store.add_to_cart(self.store.get_product("p9"))
        self.store.add_to_cart(self.store.get_product("p9"))

        order = await self.store.place_order()
        self.assertIsNotNone(order)
        self.assertEqual(len(order.items), 1)
        self.assertEqual(order.items[0].id, "p9")
        self.assertEqual(order.items[0].quantity, 2)
        self.assertEqual(order.total, 2000)
        self.assertEqual(order.status, OrderStatus.PENDING)
        self.assertEqual(self.store.cart, [])
        self.assertEqual(self.store.new_order_count, 1)

        stored = await crud.get_all_orders()
        self.assertEqual([o.id for o in stored], [order.id])
        self.assertEqual(self.store.user_orders, stored)

    async def test_place_order_total_is_sum_of_lines(self):
        await self.login_customer()
        for pid in ("p1", "p2", "p2", "p4"):
            self.store.add_to_cart(self.store.get_product(pid))
        expected = sum(i.product.price * i.quantity for i in self.store.cart)
        order = await self.store.place_order()
        self.assertEqual(order.total, expected)
        self.assertEqual(self.store.revenue, expected)

    async def test_empty_cart_cannot_order(self):
        await self.login_customer()
        self.assertIsNone(await self.store.place_order())
        self.assertEqual(self.last_notice().message, "Your cart is empty.")
        self.assertEqual(await crud.get_all_orders(), [])

    async def test_order_needs_session(self):
        self.store.add_to_cart(self.store.get_product("p1"))
        self.assertIsNone(await self.store.place_order())
        self.assertEqual(len(self.store.cart), 1)

    async def test_update_order_status(self):
        await self.login_customer()
        self.store.add_to_cart(self.store.get_product("p3"))
        order = await self.store.place_order()
        await self.store.logout()

        await self.login_admin()
        self.store.clear_alerts()
        self.assertTrue(await self.store.update_order_status(order.id, "shipped"))
        stored = (await crud.get_orders_by_user("cust1"))[0]
        self.assertEqual(stored.status, OrderStatus.SHIPPED)
        self.assertEqual(
            self.last_notice().message, f"Order #{order.id} updated to shipped."
        )
        self.assertEqual(
            self.store.alerts[0].message,
            f"Update for Order #{order.id}: Your order status is now shipped.",
        )

        # a step back is allowed, it is a correction
        self.assertTrue(
            await self.store.update_order_status(order.id, OrderStatus.PROCESSING)
        )
        self.assertFalse(await self.store.update_order_status(order.id, "lost"))
        self.assertFalse(await self.store.update_order_status("ord-missing", "shipped"))

    async def test_customer_cannot_update_order_status(self):
        await self.login_customer()
        self.store.add_to_cart(self.store.get_product("p3"))
        order = await self.store.place_order()
        self.assertFalse(await self.store.update_order_status(order.id, "delivered"))
        self.assertEqual(self.store.orders[0].status, OrderStatus.PENDING)

    async def test_clear_new_order_count(self):
        await self.login_customer()
        self.store.add_to_cart(self.store.get_product("p1"))
        await self.store.place_order()
        self.store.clear_new_order_count()
        self.assertEqual(self.store.new_order_count, 0)


class CommunityTests(StoreTestCase):
    async def test_wishlist_toggle(self):
        await self.login_customer()
        self.assertTrue(await self.store.toggle_wishlist("p3"))
        self.assertEqual([p.id for p in self.store.wishlist_products], ["p3"])
        self.assertFalse(await self.store.toggle_wishlist("p3"))
        self.assertEqual(self.store.wishlist, [])
        self.assertEqual(await crud.get_user_wishlist("cust1"), [])

    async def test_wishlist_needs_session(self):
        self.assertIsNone(await self.store.toggle_wishlist("p3"))
        self.assertEqual(self.last_notice().type, "info")
        self.assertEqual(self.last_notice().message, "Please login to use Wishlist.")
        self.assertEqual(await crud.get_all_wishlist(), [])

    async def test_reviews(self):
        review = Review(
            id="r1",
            product_id="p1",
            user_id="cust1",
            user_name="John Doe",
            rating=5,
            comment="Stunning",
            date="2024-01-01",
        )
        self.assertTrue(await self.store.add_review(review))
        self.assertEqual(self.store.product_reviews("p1"), [review])
        self.assertEqual(self.store.product_reviews("p2"), [])

        bad = Review(**{**review.to_dict(), "id": "r2", "rating": 6})
        self.assertFalse(await self.store.add_review(bad))
        self.assertEqual(len(self.store.reviews), 1)

    async def test_inbox(self):
        msg = Message(
            id="m1",
            name="Ann",
            email="ann@x.com",
            subject="Commission",
            message="Can you paint my dog?",
            date="2024-01-01",
        )
        self.assertTrue(await self.store.send_message(msg))
        self.assertFalse(
            await self.store.send_message(
                Message(**{**msg.to_dict(), "id": "m2", "email": "nope"})
            )
        )
        self.assertEqual(self.store.unread_message_count, 1)

        # inbox management is admin work
        self.assertFalse(await self.store.mark_message_read("m1"))
        await self.login_admin()
        self.assertTrue(await self.store.mark_message_read("m1"))
        self.assertEqual(self.store.unread_message_count, 0)
        self.assertTrue(await self.store.delete_message("m1"))
        self.assertEqual(self.store.messages, [])

    async def test_capabilities(self):
        self.assertFalse(self.store.can(Capability.SHOP))
        await self.login_customer()
        self.assertTrue(self.store.can(Capability.SHOP))
        self.assertFalse(self.store.can(Capability.MANAGE_CATALOG))
        await self.store.logout()
        await self.login_admin()
        self.assertTrue(all(self.store.can(c) for c in Capability))


class NotificationAndAnalyticsTests(StoreTestCase):
    async def test_notify_and_remove(self):
        note = self.store.notify("warning", "Heads up")
        self.assertIs(self.store.alerts[0], note)
        self.store.remove_notification(note.id)
        self.assertNotIn(note, self.store.notifications)

    async def test_record_analytics_capped(self):
        for _ in range(crud.ANALYTICS_CAP + 5):
            metric = await self.store.record_analytics()
            self.assertIn(metric.recent_action, ACTIONS)
            self.assertTrue(10 <= metric.active_users <= 29)
            self.assertTrue(0 <= metric.page_views <= 4)
        self.assertEqual(len(self.store.analytics), crud.ANALYTICS_CAP)
        self.assertEqual(self.store.analytics, await crud.get_recent_analytics())

    async def test_record_given_metric(self):
        metric = AnalyticsMetric(
            timestamp=1, active_users=12, page_views=3, recent_action="Search"
        )
        self.assertIs(await self.store.record_analytics(metric), metric)

    async def test_analytics_ticker(self):
        self.store.start_analytics(interval=0.01)
        await asyncio.sleep(0.1)
        await self.store.close()
        count = len(self.store.analytics)
        self.assertGreater(count, 0)

        await asyncio.sleep(0.05)
        self.assertEqual(len(self.store.analytics), count)


if __name__ == "__main__":
    unittest.main()
