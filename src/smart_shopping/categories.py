"""Built-in categories, the keyword index and keyword-based categorization."""

from collections.abc import Iterable

from .models import Category, CategoryOrigin

OTHER_CATEGORY = "other"

BUILTIN_CATEGORIES: tuple[Category, ...] = (
    Category(id="produce", name="Produce", icon="🥬", sort_order=1, origin=CategoryOrigin.BUILTIN),
    Category(id="dairy", name="Dairy", icon="🥛", sort_order=2, origin=CategoryOrigin.BUILTIN),
    Category(id="meat", name="Meat & Seafood", icon="🥩", sort_order=3, origin=CategoryOrigin.BUILTIN),
    Category(id="bakery", name="Bakery", icon="🍞", sort_order=4, origin=CategoryOrigin.BUILTIN),
    Category(id="frozen", name="Frozen Foods", icon="🧊", sort_order=5, origin=CategoryOrigin.BUILTIN),
    Category(id="pantry", name="Pantry", icon="🥫", sort_order=6, origin=CategoryOrigin.BUILTIN),
    Category(id="beverages", name="Beverages", icon="🥤", sort_order=7, origin=CategoryOrigin.BUILTIN),
    Category(id="snacks", name="Snacks", icon="🍪", sort_order=8, origin=CategoryOrigin.BUILTIN),
    Category(id="household", name="Household", icon="🧹", sort_order=9, origin=CategoryOrigin.BUILTIN),
    Category(id=OTHER_CATEGORY, name="Other", icon="📦", sort_order=10, origin=CategoryOrigin.BUILTIN),
)

BUILTIN_CATEGORY_IDS = frozenset(c.id for c in BUILTIN_CATEGORIES)

# Iteration order is the tie-break: the first category with a matching
# keyword wins ("frozen yogurt" resolves to dairy, "pepper" to produce).
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "produce": (
        "tomato", "lettuce", "cucumber", "carrot", "potato", "onion", "garlic",
        "apple", "banana", "orange", "grape", "berry", "lemon", "lime",
        "avocado", "spinach", "broccoli", "pepper", "mushroom", "salad",
        "fruit", "vegetable",
    ),
    "dairy": (
        "milk", "cheese", "yogurt", "butter", "cream", "eggs", "ice cream",
        "sour cream", "cottage cheese", "mozzarella", "cheddar", "parmesan",
    ),
    "meat": (
        "chicken", "beef", "pork", "fish", "salmon", "tuna", "shrimp",
        "turkey", "ham", "bacon", "sausage", "steak", "ground beef", "lamb",
    ),
    "bakery": (
        "bread", "baguette", "roll", "bagel", "croissant", "muffin", "cake",
        "pastry", "donut",
    ),
    "frozen": ("frozen", "popsicle", "frozen pizza", "frozen vegetables", "frozen meals"),
    "pantry": (
        "pasta", "rice", "flour", "sugar", "salt", "pepper", "oil", "vinegar",
        "sauce", "can", "jar", "cereal", "oatmeal", "beans", "soup",
        "tomato sauce",
    ),
    "beverages": (
        "water", "juice", "soda", "coffee", "tea", "beer", "wine", "drink",
        "beverage", "cola",
    ),
    "snacks": (
        "chips", "cookie", "candy", "chocolate", "popcorn", "crackers", "nuts",
        "pretzels", "snack",
    ),
    "household": (
        "soap", "shampoo", "toothpaste", "paper towel", "toilet paper",
        "detergent", "cleaner", "dish soap", "trash bags", "tissue",
    ),
}

STORE_LAYOUT_PRESETS: dict[str, list[str]] = {
    "standard": [
        "produce", "bakery", "dairy", "meat", "frozen", "pantry", "snacks",
        "beverages", "household",
    ],
    "reverse": [
        "household", "beverages", "snacks", "pantry", "frozen", "meat",
        "dairy", "bakery", "produce",
    ],
    "quick_shop": ["dairy", "produce", "bakery", "snacks"],
}


def categorize(item_name: str, preferred_category: str | None = None) -> str:
    """Resolve the category id for an item name.

    A learned preference always wins. Otherwise the lowercased name is scanned
    against CATEGORY_KEYWORDS in order and the first category with a keyword
    contained in the name is returned.

    Args:
        item_name: Item name as typed or parsed
        preferred_category: Learned preference for this name, if any

    Returns:
        Category id, "other" when nothing matches
    """
    if preferred_category:
        return preferred_category

    normalized = item_name.lower().strip()
    if not normalized:
        return OTHER_CATEGORY

    for category_id, keywords in CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if keyword in normalized:
                return category_id

    return OTHER_CATEGORY


def sort_categories(categories: Iterable[Category], order: list[str] | None = None) -> list[Category]:
    """Sort categories for display.

    With no explicit order, categories sort by sort_order. With one, listed ids
    come first in the given order and the rest follow in their default order.
    """
    by_default = sorted(categories, key=lambda c: c.sort_order)
    if not order:
        return by_default

    position = {category_id: index for index, category_id in enumerate(order)}
    after_all = len(position)
    return sorted(by_default, key=lambda c: position.get(c.id, after_all))


def get_builtin_category(category_id: str) -> Category | None:
    """Look up a built-in category by id."""
    for category in BUILTIN_CATEGORIES:
        if category.id == category_id:
            return category
    return None
