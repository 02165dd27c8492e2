"""Search term generation and result scoring for external product search."""

import re

from rapidfuzz import fuzz

from mealagent.collaborators import SearchProduct
from mealagent.logging_config import get_logger

logger = get_logger(__name__)

# Recipe wording -> supermarket wording
INGREDIENT_SYNONYMS: dict[str, str] = {
    # Proteins
    "chicken breast fillet": "chicken breast",
    "chicken breast fillets": "chicken breast",
    "chicken thighs": "chicken thigh",
    "chicken drumsticks": "chicken drumstick",
    "minced beef": "beef mince",
    "ground beef": "beef mince",
    "minced pork": "pork mince",
    "lamb chops": "lamb chop",
    "bacon rashers": "bacon",
    "bacon strips": "bacon",
    # Seafood
    "salmon fillets": "salmon fillet",
    "white fish": "fish fillet",
    "white fish fillet": "fish fillet",
    "prawns": "prawn",
    "king prawns": "prawn",
    "shrimp": "prawn",
    # Dairy
    "grated cheese": "cheese shredded",
    "shredded cheese": "cheese shredded",
    "mozzarella cheese": "mozzarella",
    "parmesan cheese": "parmesan",
    "greek yoghurt": "greek yogurt",
    "natural yoghurt": "natural yogurt",
    "plain yogurt": "natural yogurt",
    "thickened cream": "cream",
    "heavy cream": "cream",
    "double cream": "cream",
    # Produce
    "brown onion": "onion",
    "yellow onion": "onion",
    "white onion": "onion",
    "green onion": "spring onion",
    "scallion": "spring onion",
    "cherry tomatoes": "cherry tomato",
    "roma tomato": "tomato",
    "roma tomatoes": "tomato",
    "grape tomatoes": "cherry tomato",
    "red capsicum": "capsicum",
    "green capsicum": "capsicum",
    "bell pepper": "capsicum",
    "red bell pepper": "capsicum",
    "romaine lettuce": "cos lettuce",
    "butter lettuce": "lettuce",
    "kumara": "sweet potato",
    # Pantry
    "long grain rice": "rice",
    "white rice": "rice",
    "penne": "penne pasta",
    "extra virgin olive oil": "olive oil extra virgin",
    "dark soy sauce": "soy sauce",
    "light soy sauce": "soy sauce",
    "tomato puree": "tomato paste",
    "crushed tomatoes": "tomatoes crushed",
    "diced tomatoes": "tomatoes diced",
    "chicken stock": "stock chicken",
    "beef stock": "stock beef",
    "vegetable stock": "stock vegetable",
    "chicken broth": "stock chicken",
    "beef broth": "stock beef",
    # Herbs and spices
    "fresh cilantro": "coriander",
    "cilantro": "coriander",
    "dried basil": "basil dried",
    "dried thyme": "thyme dried",
    "ground coriander": "coriander ground",
    "chili powder": "chilli powder",
    "smoked paprika": "paprika smoked",
    "black pepper": "pepper black",
    "white pepper": "pepper white",
    # Bakery
    "dinner rolls": "bread rolls",
    "white bread": "bread white",
    "wholemeal bread": "bread wholemeal",
    "sourdough bread": "sourdough",
    "flour tortilla": "tortilla",
}

DESCRIPTORS_TO_REMOVE = [
    # Preparation
    "chopped",
    "diced",
    "sliced",
    "minced",
    "grated",
    "shredded",
    "crushed",
    "ground",
    "whole",
    "halved",
    "quartered",
    "julienned",
    "cubed",
    "peeled",
    "deseeded",
    "trimmed",
    # Quality
    "fresh",
    "dried",
    "frozen",
    "canned",
    "tinned",
    "jarred",
    "organic",
    "free range",
    "grass fed",
    "raw",
    "cooked",
    "roasted",
    "unsalted",
    "salted",
    "plain",
    "natural",
    "premium",
    # Size
    "large",
    "small",
    "medium",
    "bunch",
    "handful",
    # Instructions
    "for serving",
    "to taste",
    "optional",
    "if needed",
    "approximately",
]

BRAND_NAMES = [
    "coles",
    "woolworths",
    "aldi",
    "iga",
    "masterfoods",
    "continental",
    "mckenzie",
    "heinz",
    "maggi",
    "knorr",
    "campbells",
]

COMPOUND_SIMPLIFICATIONS: dict[str, str] = {
    "salt and pepper": "salt",
    "herbs and spices": "mixed herbs",
    "oil and butter": "oil",
    "lemon juice and zest": "lemon",
    "lime juice and zest": "lime",
    "orange juice and zest": "orange",
    "mixed vegetables": "vegetables frozen mixed",
    "stir fry vegetables": "vegetables stir fry",
    "italian herbs": "herbs italian mixed",
    "mixed herbs": "herbs mixed",
    "taco seasoning": "taco seasoning",
}

CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "protein": ["meat"],
    "seafood": ["seafood"],
    "herbs": ["herb"],
    "spices": ["spice"],
}

_PARENTHETICAL = re.compile(r"\s*\(.*?\)\s*")
_WORD_PATTERNS = {
    word: re.compile(rf"\b{re.escape(word)}\b") for word in (*BRAND_NAMES, *DESCRIPTORS_TO_REMOVE)
}

MIN_MATCH_SCORE = 30.0


def generate_search_term(ingredient_name: str, category: str | None = None) -> str:
    """
    Turn a recipe ingredient name into a supermarket search query.

    Examples:
        "Brown onion (diced)" -> "onion"
        "Masterfoods ground cumin" -> "cumin"
        "salt and pepper" -> "salt"
    """
    term = ingredient_name.lower().strip()

    for compound, simplified in COMPOUND_SIMPLIFICATIONS.items():
        if compound in term:
            term = simplified
            break

    term = INGREDIENT_SYNONYMS.get(term, term)

    for word, pattern in _WORD_PATTERNS.items():
        term = pattern.sub("", term)

    term = _PARENTHETICAL.sub(" ", term)
    term = re.sub(r"\s+or\s+.*$", "", term)
    term = re.sub(r",.*$", "", term)
    term = re.sub(r"\d+(?:\.\d+)?", "", term)
    term = " ".join(term.split())

    term = INGREDIENT_SYNONYMS.get(term, term)

    if category and term and len(term.split()) == 1:
        keywords = CATEGORY_KEYWORDS.get(category.lower(), [])
        if keywords:
            term = f"{keywords[0]} {term}"

    return term or ingredient_name.strip()


def calculate_match_score(ingredient_name: str, product_name: str, product_brand: str = "") -> float:
    """
    Score how well a search result matches an ingredient, 0 to 100.

    An exact name scores 100. Containment of the whole ingredient name is
    worth 60, fuzzy word overlap up to 40, and the brand up to 10 more.
    Products with many extra words are penalized.
    """
    ingredient = " ".join(ingredient_name.lower().split())
    product = " ".join(product_name.lower().split())
    brand = (product_brand or "").lower().strip()

    if not ingredient or not product:
        return 0.0

    if product == ingredient:
        return 100.0

    score = 0.0

    if ingredient in product:
        score += 60

    score += fuzz.token_set_ratio(ingredient, product) * 0.4

    if brand and (brand in ingredient or ingredient in brand):
        score += 10

    extra_words = len(product.split()) - len(ingredient.split())
    if extra_words > 3:
        score -= 10

    return max(0.0, min(100.0, round(score, 1)))


def rank_search_results(
    ingredient_name: str,
    results: list[SearchProduct],
    min_score: float = MIN_MATCH_SCORE,
) -> list[SearchProduct]:
    """Order search results by match score, dropping weak matches. Ties keep search order."""
    scored = [
        (calculate_match_score(ingredient_name, result.product_name, result.brand), result) for result in results
    ]
    kept = [(score, result) for score, result in scored if score >= min_score]
    kept.sort(key=lambda item: item[0], reverse=True)

    if len(kept) < len(scored):
        logger.debug(f"Dropped {len(scored) - len(kept)} weak search matches for '{ingredient_name}'")

    return [result for _, result in kept]


def parse_price(price_str: str | None) -> float:
    """
    Parse a displayed price.

    Examples:
        "$7.50" -> 7.5
        "2 for $5" -> 2.0
        "" -> 0.0
    """
    if not price_str:
        return 0.0

    match = re.search(r"\d+(?:\.\d+)?", price_str)
    return float(match.group(0)) if match else 0.0
