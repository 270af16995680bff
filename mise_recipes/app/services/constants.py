"""Word lists and character maps shared by the text pipeline."""

STOP_WORDS = frozenset(
    {
        "a",
        "an",
        "and",
        "or",
        "of",
        "the",
        "to",
        "with",
        "for",
        "each",
        "fresh",
        "freshly",
        "optional",
        "taste",
        "about",
        "approx",
    }
)

UNIT_WORDS = frozenset(
    {
        "g",
        "kg",
        "mg",
        "ml",
        "l",
        "oz",
        "lb",
        "lbs",
        "pound",
        "pounds",
        "tbsp",
        "tsp",
        "cup",
        "cups",
        "tablespoon",
        "tablespoons",
        "teaspoon",
        "teaspoons",
        "clove",
        "cloves",
        "pinch",
        "dash",
        "package",
        "packages",
        "can",
        "cans",
        "slice",
        "slices",
        "inch",
        "inches",
    }
)

HTML_ENTITY_MAP = {
    "&amp;": "&",
    "&quot;": '"',
    "&#39;": "'",
    "&#x27;": "'",
    "&lt;": "<",
    "&gt;": ">",
    "&nbsp;": " ",
    "&ndash;": "-",
    "&mdash;": "-",
}

FRACTION_MAP = {
    "¼": "1/4",
    "½": "1/2",
    "¾": "3/4",
    "⅓": "1/3",
    "⅔": "2/3",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}

FRACTION_CHARS = "".join(FRACTION_MAP.keys())

COOKING_VERBS = (
    "add",
    "stir",
    "mix",
    "cook",
    "bake",
    "heat",
    "simmer",
    "boil",
    "saute",
    "whisk",
    "combine",
    "pour",
    "bring",
    "place",
    "transfer",
    "serve",
    "fold",
    "reduce",
    "season",
    "drain",
)
