"""Static category taxonomy used by the classifier and the category picker.

Declaration order matters: the keyword layer walks TAXONOMY top to bottom and
the first category with a matching keyword wins.
"""

from types import MappingProxyType
from typing import List, Mapping, Tuple

from models.category import CategoryResult

MISCELLANEOUS = "Miscellaneous"
OTHER = "Other"

TAXONOMY: Mapping[str, Mapping[str, Tuple[str, ...]]] = MappingProxyType({
    "Food & Drinks": MappingProxyType({
        "Meals": (
            "food", "meal", "lunch", "dinner", "breakfast", "pizza", "burger",
            "sushi", "restaurant", "sandwich", "tacos", "pasta", "salad",
            "chicken", "beef", "seafood", "rice", "bread", "meat", "fish",
        ),
        "Snacks": (
            "snack", "chips", "cookies", "candy", "chocolate", "popcorn", "nuts",
            "crackers", "fruit",
        ),
        "Drinks/Coffee": ("coffee", "latte", "espresso", "cappuccino", "starbucks"),
        "Drinks/Sodas": ("coke", "soda", "pepsi", "sprite", "fanta"),
        "Drinks/Beer": ("beer", "alcohol", "wine", "drinks", "bar"),
    }),
    "Transport": MappingProxyType({
        "Taxis & Rideshares": ("taxi", "uber", "lyft", "cab", "ride", "didi"),
        "Fuel": ("gas", "fuel", "petrol", "diesel"),
        "Public Transport": ("bus", "metro", "subway", "train", "transit", "transport"),
        "Parking": ("parking", "toll"),
    }),
    "Shopping": MappingProxyType({
        "Clothing": ("clothes", "clothing", "shirt", "pants", "shoes", "dress", "jacket"),
        "Electronics": ("electronics", "computer", "laptop", "gadget", "device"),
        "Groceries": ("groceries", "supermarket", "market", "store", "walmart", "target"),
    }),
    "Entertainment": MappingProxyType({
        "Games": ("game", "gaming", "playstation", "xbox", "nintendo", "steam"),
        "Movies & Streaming": ("movie", "netflix", "cinema", "hulu", "disney", "theater"),
        "Music & Concerts": ("concert", "music", "spotify", "festival", "ticket"),
    }),
    "Health": MappingProxyType({
        "Medical": ("doctor", "hospital", "dentist", "clinic"),
        "Pharmacy": ("pharmacy", "drugstore", "medicine"),
        "Fitness": ("gym", "fitness", "yoga"),
    }),
    "Bills & Utilities": MappingProxyType({
        "Electricity": ("electricity", "power", "electric", "energy"),
        "Water": ("water", "utilities", "utility"),
        "Internet & Phone": ("internet", "phone", "mobile", "wifi", "broadband"),
        "Rent": ("rent", "mortgage"),
    }),
    MISCELLANEOUS: MappingProxyType({
        "Gifts": ("gift", "present"),
        "Subscriptions": ("subscription", "membership"),
        "Education": ("course", "book", "tuition"),
        OTHER: (),
    }),
})

# High-frequency single words resolved before any keyword scan.
EXACT_PHRASES: Mapping[str, str] = MappingProxyType({
    "food": "Food & Drinks>Meals",
    "meal": "Food & Drinks>Meals",
    "lunch": "Food & Drinks>Meals",
    "dinner": "Food & Drinks>Meals",
    "breakfast": "Food & Drinks>Meals",
    "snack": "Food & Drinks>Snacks",
    "coffee": "Food & Drinks>Drinks/Coffee",
    "coke": "Food & Drinks>Drinks/Sodas",
    "beer": "Food & Drinks>Drinks/Beer",
    "taxi": "Transport>Taxis & Rideshares",
    "uber": "Transport>Taxis & Rideshares",
    "gas": "Transport>Fuel",
    "fuel": "Transport>Fuel",
    "bus": "Transport>Public Transport",
    "metro": "Transport>Public Transport",
    "game": "Entertainment>Games",
    "movie": "Entertainment>Movies & Streaming",
    "netflix": "Entertainment>Movies & Streaming",
    "concert": "Entertainment>Music & Concerts",
    "clothes": "Shopping>Clothing",
    "clothing": "Shopping>Clothing",
    "electronics": "Shopping>Electronics",
    "groceries": "Shopping>Groceries",
    "supermarket": "Shopping>Groceries",
    "electricity": "Bills & Utilities>Electricity",
    "water": "Bills & Utilities>Water",
    "internet": "Bills & Utilities>Internet & Phone",
    "phone": "Bills & Utilities>Internet & Phone",
    "gift": "Miscellaneous>Gifts",
    "medicine": "Health>Pharmacy",
    "subscription": "Miscellaneous>Subscriptions",
})

FOOD_INDICATORS: Tuple[str, ...] = (
    # meals and dishes
    "food", "meal", "dish", "cuisine", "restaurant", "diner",
    "pizza", "burger", "sandwich", "pasta", "rice", "noodles",
    # latin american
    "empanada", "taco", "burrito", "arepa", "pupusa", "tamale",
    "milanesa", "churrasco", "ceviche", "chimichurri", "asado",
    "enchilada", "fajita", "quesadilla", "torta", "chilaquiles",
    # european
    "risotto", "paella", "schnitzel", "bratwurst", "pierogi", "goulash",
    "croissant",
    # asian
    "sushi", "ramen", "curry", "dimsum", "pho", "pad thai",
    "tempura", "sashimi", "udon", "bibimbap", "dumpling",
    # middle eastern
    "kebab", "falafel", "hummus", "shawarma", "pita",
    # meal times
    "breakfast", "lunch", "dinner", "brunch", "snack",
    # ingredients
    "meat", "chicken", "beef", "pork", "fish", "vegetable",
    "steak", "pollo", "carne", "pescado", "verdura",
    # places to eat
    "cafe", "bakery", "deli", "cafeteria", "bistro", "pub", "fonda", "cantina",
    # cooking methods
    "fried", "baked", "grilled", "roasted", "steamed",
    "frito", "horneado", "cocido",
    # generic
    "eat", "appetizer", "comida", "almuerzo", "cena", "merienda", "plato",
)

FOOD_SUFFIXES: Tuple[str, ...] = (
    "ada", "ito", "esa", "soup", "pie", "bread", "roll", "burger", "steak",
    "sopa", "guiso",
)

TRANSPORT_WORDS: Tuple[str, ...] = (
    "transport", "travel", "ride", "vehicle", "car", "bus", "train",
    "taxi", "uber", "lyft", "cab", "metro", "subway", "bike",
)

FUEL_WORDS: Tuple[str, ...] = ("gas", "fuel", "gasolina", "nafta", "petrol", "diesel")


def main_categories() -> List[str]:
    """Get main categories in declaration order."""
    return list(TAXONOMY)


def subcategories(main_category: str) -> List[str]:
    """Get the subcategories of a main category in declaration order.

    Raises:
        KeyError: If the main category is not in the taxonomy.
    """
    return list(TAXONOMY[main_category])


def find_main_category(label: str):
    """Match a user-typed label against the main categories.

    The label matches when it equals a main category or is a prefix of one,
    case-insensitively ("bills" -> "Bills & Utilities").

    Returns:
        The main category name, or None.
    """
    wanted = label.strip().casefold()
    if not wanted:
        return None
    for name in TAXONOMY:
        if name.casefold() == wanted:
            return name
    for name in TAXONOMY:
        if name.casefold().startswith(wanted):
            return name
    return None


def exact_phrase(text: str):
    """Look up a lower-cased phrase in EXACT_PHRASES.

    Returns:
        CategoryResult, or None when the phrase is not mapped.
    """
    path = EXACT_PHRASES.get(text)
    if path is None:
        return None
    return CategoryResult.from_path(path)


def format_taxonomy() -> str:
    """Render the taxonomy as prompt text for the LLM classifier."""
    lines = []
    for main, subs in TAXONOMY.items():
        lines.append(f"- {main}: {', '.join(subs)}")
    return "\n".join(lines)
