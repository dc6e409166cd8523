"""
Static vocabularies used by the rule-based query analyzer.

Tables are read-only. Lookups walk them in declaration order and the first
hit wins.
"""
from types import MappingProxyType

GREETINGS = (
    "hello", "hi", "hey", "good morning", "good afternoon", "good evening", "sup", "yo"
)

HELP_WORDS = (
    "help", "support", "assist", "guide", "how", "what can you do"
)

# Constraint word -> bound it sets
PRICE_KEYWORDS = MappingProxyType({
    "under": "max",
    "below": "max",
    "less": "max",
    "maximum": "max",
    "up": "max",
    "over": "min",
    "above": "min",
    "minimum": "min",
    "from": "min",
})

CATEGORY_SYNONYMS = MappingProxyType({
    "laptop": ("laptop", "notebook", "computer", "pc", "hp", "dell", "lenovo", "macbook", "acer", "asus"),
    "smartphone": ("phone", "smartphone", "mobile", "iphone", "samsung", "huawei", "xiaomi", "oppo", "vivo"),
    "headphones": ("headphones", "earphones", "earbuds", "airpods", "wireless", "bluetooth"),
    "tablet": ("tablet", "ipad", "android tablet", "samsung tablet"),
    "camera": ("camera", "dslr", "mirrorless", "canon", "nikon", "sony"),
    "gaming": ("gaming", "game", "console", "ps5", "xbox", "nintendo"),
    "fashion": ("shirt", "dress", "shoes", "bag", "watch", "jewelry", "clothing"),
    "home": ("furniture", "kitchen", "appliance", "tv", "speaker", "lighting"),
    "sports": ("sports", "fitness", "gym", "running", "football", "basketball"),
    "books": ("book", "novel", "textbook", "magazine", "comic"),
})

BRAND_KEYWORDS = MappingProxyType({
    "hp": ("hp", "hewlett packard", "pavilion", "elitebook", "probook"),
    "dell": ("dell", "inspiron", "latitude", "precision", "xps"),
    "lenovo": ("lenovo", "thinkpad", "ideapad", "yoga"),
    "apple": ("apple", "iphone", "ipad", "macbook", "mac", "airpods"),
    "samsung": ("samsung", "galaxy", "note", "tab"),
    "nike": ("nike", "air max", "jordan"),
    "adidas": ("adidas", "boost", "ultraboost"),
    "canon": ("canon", "eos", "powershot"),
    "nikon": ("nikon", "coolpix", "nikkor"),
    "sony": ("sony", "alpha", "cyber-shot", "playstation"),
})

PRODUCT_NOUNS = (
    "laptop", "phone", "headphones", "tablet", "camera", "gaming", "shirt", "dress",
    "shoes", "bag", "watch", "furniture", "kitchen", "appliance", "tv", "speaker",
    "book", "novel", "sports", "fitness", "gym", "running", "football", "basketball"
)

# Prefixes that form compound product nouns, e.g. "smartphone", "handbag"
COMPOUND_PREFIXES = ("smart", "hand", "text")

# Coarse gate for the conversational path. Includes every word that can make
# the analyzer flag a product query, plus looser purchase verbs.
SHOPPING_KEYWORDS = (
    "buy", "purchase", "shop", "find", "looking for", "need", "want",
    "laptop", "phone", "headphones", "camera", "shoes", "clothes",
    "gift", "present", "recommend", "suggestion",
    "under", "below", "less", "maximum", "up", "over", "above", "minimum", "from", "between",
    "rating", "star",
) + tuple(
    synonym for synonyms in CATEGORY_SYNONYMS.values() for synonym in synonyms
) + tuple(
    keyword for keywords in BRAND_KEYWORDS.values() for keyword in keywords
) + PRODUCT_NOUNS

# Narrower gate vocabulary for LLM replies: no price connectives or brand
# model lines, which are common words in ordinary prose.
REPLY_SHOPPING_KEYWORDS = (
    "buy", "purchase", "shop", "recommend", "gift",
) + tuple(
    synonym for synonyms in CATEGORY_SYNONYMS.values() for synonym in synonyms
) + tuple(BRAND_KEYWORDS) + PRODUCT_NOUNS

CURRENCY_PATTERN = r'(?:kenya\s*shillings?|ksh|kes|ks|sh)'
