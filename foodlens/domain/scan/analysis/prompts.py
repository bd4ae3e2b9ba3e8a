"""
Prompts for personalized product analysis.

Builders here are pure: same profile, product and mode always render a
byte-identical prompt. Nothing reads the clock or random state.

Catalog and vision prompts differ on purpose (structured data vs. label
reading), so the same product can be graded differently depending on
which path ran. Keep the shared blocks below in sync when editing either.
"""

from typing import List, Optional

from foodlens.domain.profile.models import HealthProfile
from foodlens.domain.scan.analysis.models import AnalysisMode
from foodlens.domain.scan.product.models import Nutriments, ProductRecord


NO_CONDITIONS = "no specific conditions"
NOT_AVAILABLE = "not available"


# ═══════════════════════════════════════════════════════════
# SHARED BLOCKS (identical in both modes)
# ═══════════════════════════════════════════════════════════

PLAIN_TEXT_RULES = """CRITICAL TEXT FORMATTING RULES:
- DO NOT use any markdown formatting (no *, **, _, __, `, ~~)
- Write in plain text only
- Use simple, clear language without special formatting
- Avoid bold, italic, code or any markdown syntax"""

OUTPUT_CONTRACT = """Return your response as a single JSON object with exactly these keys and nothing else:
- "nutriScore": one letter, A, B, C, D or E (A is the healthiest)
- "analysisPoints": array of 3 to 5 strings
- "citations": array of strings
- "productName": string
- "confidence": number between 0.0 and 1.0
- "ingredients": array of strings, one per ingredient

Example:
{{
    "nutriScore": "C",
    "analysisPoints": [
        "Point about specific ingredients or nutrients relevant to you",
        "Point about how this suits your medical conditions",
        "Point about processing level and what it means for your health",
        "Point about portion recommendations for you"
    ],
    "citations": [
        "American Heart Association guidelines on sodium intake",
        "WHO recommendations on processed foods"
    ],
    "productName": "{product_name}",
    "confidence": 0.85,
    "ingredients": [
        "Water - The base liquid for hydration",
        "Sugar - Provides quick energy but can cause blood sugar spikes",
        "Citric Acid - Natural preservative and flavor enhancer"
    ]
}}

REMEMBER: Use plain text only, no markdown formatting in any text field."""


# ═══════════════════════════════════════════════════════════
# MODE-SPECIFIC INSTRUCTIONS
# ═══════════════════════════════════════════════════════════

CATALOG_INTRO = (
    "You are a nutrition expert analyzing food products for a health-conscious "
    "consumer with specific medical conditions."
)

CATALOG_REQUIREMENTS = """IMPORTANT ANALYSIS REQUIREMENTS:
1. Consider BOTH nutrition facts AND the ingredients list for the health assessment
2. Pay special attention to processed ingredients, additives and preservatives
3. Consider ingredient quality, not just nutritional numbers
4. Look for concerning ingredients like high fructose corn syrup, trans fats, artificial colors, excessive sodium
5. Factor in the specific medical conditions above

Please analyze this product and provide:
1. A NutriScore (A, B, C, D or E), A being the healthiest, considering BOTH nutrition AND ingredients
2. 3-5 points explaining why this product is suitable or unsuitable for you, naming the ingredients or nutrients that concern or benefit you
3. 2-3 citations from reputable health sources
4. A list of ingredients with simple English explanations of what each ingredient is and its effect"""

VISION_INTRO = (
    "You are a nutrition expert analyzing food product images for a health-conscious "
    "consumer with specific medical conditions."
)

VISION_REQUIREMENTS = """CRITICAL INSTRUCTIONS FOR IMAGE ANALYSIS:
1. First, carefully read all text in the attached image, including:
   - the Nutrition Facts panel (energy, fats, sugars, sodium, etc.)
   - the INGREDIENTS LIST (read every ingredient)
   - product name and brand
   - allergen warnings, health claims or certifications
2. Only after extracting that data, assess the product:
   - base the NutriScore on BOTH nutritional content AND ingredient quality
   - look for artificial additives, preservatives, high fructose corn syrup, trans fats, excessive sodium
   - consider the processing level (ultra-processed vs minimally processed)
   - factor in the specific medical conditions above
3. If the nutrition facts or ingredients cannot be read clearly, say so in analysisPoints and lower confidence

Please analyze this product image and provide:
1. A NutriScore (A, B, C, D or E), A being the healthiest, considering BOTH nutrition AND ingredient quality
2. 3-5 points covering nutritional concerns or benefits for you, ingredient quality, fit with your medical conditions and processing level
3. 2-3 citations from reputable health sources
4. A list of ingredients extracted from the image with simple English explanations of each"""


# ═══════════════════════════════════════════════════════════
# BUILDERS
# ═══════════════════════════════════════════════════════════


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` for whole values.

    Example:
        >>> format_number(40.0), format_number(10.55)
        ('40', '10.55')
    """
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def conditions_clause(profile: HealthProfile) -> str:
    """Merge structured and custom conditions into one readable clause."""
    conditions = profile.all_conditions()
    if not conditions:
        return NO_CONDITIONS
    return ", ".join(conditions)


def render_profile(profile: HealthProfile) -> str:
    """Profile block shared by analysis prompts."""
    lines = [
        "Your User Profile:",
        f"- Age: {profile.age}",
        f"- Height: {format_number(profile.height_cm)}cm",
        f"- Weight: {format_number(profile.weight_kg)}kg",
        f"- Medical Conditions: {conditions_clause(profile)}",
    ]
    if profile.health_goals:
        lines.append(f"- Health Goals: {profile.health_goals}")
    if profile.additional_concerns:
        lines.append(f"- Additional Health Concerns: {profile.additional_concerns}")
    return "\n".join(lines)


def _nutrient_line(label: str, value: Optional[float], unit: str) -> str:
    if value is None:
        return f"- {label}: {NOT_AVAILABLE}"
    return f"- {label}: {format_number(value)}{unit}"


def render_nutrient_table(nutriments: Nutriments) -> str:
    """Per-100g nutrient section of the catalog prompt."""
    rows = [
        _nutrient_line("Energy", nutriments.energy_kcal, " kcal"),
        _nutrient_line("Fat", nutriments.fat, "g"),
        _nutrient_line("Saturated Fat", nutriments.saturated_fat, "g"),
        _nutrient_line("Carbohydrates", nutriments.carbohydrates, "g"),
        _nutrient_line("Sugars", nutriments.sugars, "g"),
        _nutrient_line("Fiber", nutriments.fiber, "g"),
        _nutrient_line("Proteins", nutriments.proteins, "g"),
        _nutrient_line("Salt", nutriments.salt, "g"),
        _nutrient_line("Sodium", nutriments.sodium, "g"),
    ]
    return "Nutrition per 100g:\n" + "\n".join(rows)


def render_product(product: Optional[ProductRecord], barcode: Optional[str]) -> str:
    """Product information block of the catalog prompt."""
    if product is None:
        lines: List[str] = []
        if barcode:
            lines.append(f"Barcode: {barcode}")
        lines.append("Product information not available from barcode database.")
        lines.append("Base the assessment on what you know about this barcode, and lower confidence.")
        return "\n".join(lines)

    ingredients = product.ingredient_texts()
    return "\n".join(
        [
            f"Barcode: {product.barcode}",
            f"Product Name: {product.name or 'Unknown'}",
            f"Brands: {product.brand or 'Unknown'}",
            "",
            f"INGREDIENTS: {', '.join(ingredients) if ingredients else NOT_AVAILABLE}",
            "",
            render_nutrient_table(product.nutriments),
        ]
    )


def build_analysis_prompt(
    profile: HealthProfile,
    product: Optional[ProductRecord],
    mode: AnalysisMode,
    barcode: Optional[str] = None,
) -> str:
    """Build the instruction document sent with one analysis.

    Args:
        profile: Consumer health profile
        product: Catalog data; None in vision mode or when lookup missed
        mode: CATALOG (text only) or VISION (image attached)
        barcode: Barcode identity, used when product is None

    Returns:
        Prompt text

    Raises:
        ValueError: If product data is supplied in vision mode

    Example:
        >>> prompt = build_analysis_prompt(profile, None, AnalysisMode.VISION)
        >>> assert "nutriScore" in prompt
    """
    if mode == AnalysisMode.VISION:
        if product is not None:
            raise ValueError("Vision prompts do not embed catalog data")
        sections = [
            VISION_INTRO,
            render_profile(profile),
            VISION_REQUIREMENTS,
            PLAIN_TEXT_RULES,
            OUTPUT_CONTRACT.format(product_name="Product name from image"),
        ]
    else:
        product_name = (product.name if product else None) or "Unknown Product"
        sections = [
            CATALOG_INTRO,
            render_profile(profile),
            "Product Information:\n" + render_product(product, barcode),
            CATALOG_REQUIREMENTS,
            PLAIN_TEXT_RULES,
            OUTPUT_CONTRACT.format(product_name=_json_safe(product_name)),
        ]
    return "\n\n".join(sections)


def build_catalog_prompt(
    profile: HealthProfile,
    product: Optional[ProductRecord],
    barcode: Optional[str] = None,
) -> str:
    """Catalog-mode shortcut for build_analysis_prompt."""
    return build_analysis_prompt(profile, product, AnalysisMode.CATALOG, barcode=barcode)


def build_vision_prompt(profile: HealthProfile) -> str:
    """Vision-mode shortcut for build_analysis_prompt."""
    return build_analysis_prompt(profile, None, AnalysisMode.VISION)


def _json_safe(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
