# first-run data, written by crud.init() only when a collection is absent

from db.models import Product, User, UserRole

SEED_PASSWORD = "password123"

INITIAL_PRODUCTS = [
    Product(
        id="p1",
        title="Serenity in Blue",
        description="A calming abstract oil painting depicting the ocean depths.",
        price=25000,
        category="Painting",
        image_url="https://picsum.photos/400/500?random=1",
        stock=5,
        tags=["abstract", "blue", "ocean", "oil"],
    ),
    Product(
        id="p2",
        title="Golden Elephant Sculpture",
        description=(
            "Hand-carved wooden elephant with gold leaf accents, "
            "traditional Sri Lankan craft."
        ),
        price=18500,
        category="Sculpture",
        image_url="https://picsum.photos/400/400?random=2",
        stock=2,
        tags=["wood", "traditional", "sculpture"],
    ),
    Product(
        id="p3",
        title="Sunset over Sigiriya",
        description=(
            "Vibrant acrylic on canvas capturing the ancient rock fortress at dusk."
        ),
        price=45000,
        category="Painting",
        image_url="https://picsum.photos/400/300?random=3",
        stock=1,
        tags=["landscape", "sri lanka", "nature"],
    ),
    Product(
        id="p4",
        title="Batik Wall Hanging",
        description="Intricate traditional wax-resist dyeing on cotton fabric.",
        price=8000,
        category="Textile",
        image_url="https://picsum.photos/400/600?random=4",
        stock=10,
        tags=["batik", "textile", "wall art"],
    ),
]

ADMIN = User(
    id="admin1",
    name="Aaiysha (Artist)",
    email="admin@artisha.com",
    role=UserRole.ADMIN,
    avatar="https://picsum.photos/100/100?random=5",
    password=SEED_PASSWORD,
)

CUSTOMER = User(
    id="cust1",
    name="John Doe",
    email="john@example.com",
    role=UserRole.CUSTOMER,
    avatar="https://picsum.photos/100/100?random=6",
    password=SEED_PASSWORD,
)

INITIAL_USERS = [ADMIN, CUSTOMER]
