"""Heuristic query rewriting for product questions.

Broad product questions get a keyword suffix so the backend's product search
returns drinkware instead of nothing. The rewrite only reaches the backend;
the transcript keeps the user's own wording.
"""

import re

import structlog

logger = structlog.get_logger(__name__)

PRODUCT_KEYWORDS_SUFFIX = " cup mug glass drinkware coffee"

# Evaluated in order, first match wins
_PRODUCT_QUERY_PATTERNS = [
    re.compile(r"what.*products", re.IGNORECASE),
    re.compile(r"show.*products", re.IGNORECASE),
    re.compile(r"list.*products", re.IGNORECASE),
    re.compile(r"what.*do you (have|sell|offer)", re.IGNORECASE),
    re.compile(r"what.*drinkware", re.IGNORECASE),
]

# Backend phrase for an empty product search
NO_PRODUCTS_PHRASE = "No products found"

_NO_PRODUCTS_TRIGGER = re.compile(r"what.*products", re.IGNORECASE)

DRINKWARE_SUGGESTION = (
    "We have a great selection of drinkware! Try asking about:\n\n"
    "• Glass coffee cups\n"
    "• Ceramic travel mugs\n"
    "• Stainless steel thermos\n"
    "• Eco-friendly bamboo cups\n"
    "• French press coffee makers\n\n"
    "What interests you?"
)


def match_product_query(text: str) -> re.Pattern | None:
    """Return the first product-query pattern matching text, if any."""
    for pattern in _PRODUCT_QUERY_PATTERNS:
        if pattern.search(text):
            return pattern
    return None


def enhance_query(text: str) -> str:
    """Append product keywords to broad product questions.

    Already-enhanced text is returned as is.
    """
    if text.endswith(PRODUCT_KEYWORDS_SUFFIX):
        return text

    pattern = match_product_query(text)
    if pattern is None:
        return text

    logger.debug("enhancer.applied", pattern=pattern.pattern)
    return text + PRODUCT_KEYWORDS_SUFFIX


def fix_up_response(response_text: str, user_text: str) -> str:
    """Replace an empty product search answer with drinkware suggestions.

    Args:
        response_text: Answer text from the backend.
        user_text: The user's message before enhancement.

    Returns:
        DRINKWARE_SUGGESTION when the backend found nothing for a
        "what ... products" question, otherwise response_text unchanged.
    """
    if NO_PRODUCTS_PHRASE in response_text and _NO_PRODUCTS_TRIGGER.search(user_text):
        logger.info("enhancer.no_products_fixup")
        return DRINKWARE_SUGGESTION
    return response_text
