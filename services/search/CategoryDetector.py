"""Keyword based category detection for free-text queries."""

# Order matters: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "food": ["food", "eat", "meal", "snack", "breakfast", "lunch", "dinner", "cook", "recipe"],
    "drinks": ["drink", "beverage", "juice", "soda", "water", "coffee", "tea", "alcohol"],
    "household": ["household", "cleaning", "kitchen", "bathroom", "laundry", "home"],
    "beauty": ["beauty", "cosmetic", "makeup", "skincare", "hair", "shower", "bath"],
    "health": ["health", "medical", "medicine", "vitamin", "supplement", "first aid"],
    "electronics": ["electronic", "tech", "device", "phone", "computer", "gadget"],
    "clothing": ["clothing", "clothes", "shirt", "pants", "dress", "shoes", "fashion"],
    "books": ["book", "reading", "novel", "textbook", "magazine", "literature"],
    "sports": ["sport", "exercise", "fitness", "gym", "workout", "athletic"],
    "toys": ["toy", "game", "play", "entertainment", "fun", "children"],
    "automotive": ["car", "auto", "vehicle", "transport", "driving"],
    "garden": ["garden", "plant", "flower", "outdoor", "yard", "lawn"],
    "office": ["office", "work", "business", "desk", "stationery", "paper"],
}


def detect_category(query: str | None) -> str | None:
    """Guess a category filter from keywords contained in the query.

    Matching is a plain substring test on the lower-cased query, so "teapot"
    matches "tea" and lands in "drinks".

    Returns:
        str | None: The first matching category, or None.
    """
    if not query:
        return None
    query_lower = query.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in query_lower for keyword in keywords):
            return category
    return None
