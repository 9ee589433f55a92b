"""
Static Ayurvedic compatibility tables used by the diet engine.

Everything here is plain data: enumerations, per-dosha taste guides,
tag-based rules consumed by the scorer, meal-slot tables and the note
templates attached to generated meals. The candidate foods themselves live
in `app/data/food_catalog.csv` (see `food_catalog.py`).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Literal, Optional, Tuple


Dosha = Literal["Vata", "Pitta", "Kapha", "Vata-Pitta", "Pitta-Kapha", "Vata-Kapha"]
Rasa = Literal["Sweet", "Sour", "Salty", "Pungent", "Bitter", "Astringent"]
Season = Literal["Summer", "Winter", "Monsoon", "Spring", "Autumn", "All-Season"]
Region = Literal["North", "South", "East", "West", "Pan-India"]
MealType = Literal["Breakfast", "Mid-Morning Snack", "Lunch", "Evening Snack", "Dinner"]
DietType = Literal["any", "veg", "vegan", "jain"]
Virya = Literal["Heating", "Cooling", "Neutral"]
Digestibility = Literal["Light", "Moderate", "Heavy"]

# Canonical order of the primaries: combined doshas are always joined in this order.
PRIMARY_DOSHAS: Tuple[str, ...] = ("Vata", "Pitta", "Kapha")
DOSHAS: Tuple[str, ...] = ("Vata", "Pitta", "Kapha", "Vata-Pitta", "Pitta-Kapha", "Vata-Kapha")
RASAS: Tuple[str, ...] = ("Sweet", "Sour", "Salty", "Pungent", "Bitter", "Astringent")
SEASONS: Tuple[str, ...] = ("Summer", "Winter", "Monsoon", "Spring", "Autumn", "All-Season")
REGIONS: Tuple[str, ...] = ("North", "South", "East", "West", "Pan-India")
DIET_TYPES: Tuple[str, ...] = ("any", "veg", "vegan", "jain")

MEAL_TYPES: Tuple[str, ...] = ("Breakfast", "Mid-Morning Snack", "Lunch", "Evening Snack", "Dinner")
FAST_MEAL_TYPES: Tuple[str, ...] = ("Breakfast", "Lunch", "Dinner")
WEEK_DAYS: Tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
FAST_DAYS: Tuple[str, ...] = ("Day 1", "Day 2", "Day 3")

ALL_SEASONS = "All-Season"
PAN_INDIA = "Pan-India"

SLOT_CODES: Dict[str, str] = {
    "B": "Breakfast",
    "M": "Mid-Morning Snack",
    "L": "Lunch",
    "E": "Evening Snack",
    "D": "Dinner",
}


# ---------------- Rasa guide ---------------- #

RASA_GUIDE: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "Vata": {"prefer": ("Sweet", "Sour", "Salty"), "avoid": ("Bitter", "Pungent", "Astringent")},
    "Pitta": {"prefer": ("Sweet", "Bitter", "Astringent"), "avoid": ("Sour", "Pungent", "Salty")},
    "Kapha": {"prefer": ("Pungent", "Bitter", "Astringent"), "avoid": ("Sweet", "Sour", "Salty")},
}


# ---------------- Meal slots ---------------- #

MEAL_CALORIE_SHARE: Dict[str, float] = {
    "Breakfast": 0.2,
    "Mid-Morning Snack": 0.1,
    "Lunch": 0.35,
    "Evening Snack": 0.1,
    "Dinner": 0.25,
}

ITEMS_PER_SLOT: Dict[str, int] = {
    "Breakfast": 1,
    "Mid-Morning Snack": 1,
    "Lunch": 2,
    "Evening Snack": 1,
    "Dinner": 2,
}

# Where to look when a slot has nothing left after filtering.
RELATED_SLOTS: Dict[str, Tuple[str, ...]] = {
    "Mid-Morning Snack": ("Breakfast", "Evening Snack"),
    "Evening Snack": ("Lunch", "Breakfast"),
    "Breakfast": ("Mid-Morning Snack", "Lunch"),
    "Lunch": ("Evening Snack",),
    "Dinner": ("Lunch",),
}

DEFAULT_SERVING: Dict[str, str] = {
    "Breakfast": "1 serving",
    "Mid-Morning Snack": "1 small serving",
    "Lunch": "1 generous serving",
    "Evening Snack": "1 small serving",
    "Dinner": "1 moderate serving",
}

DIET_COMPATIBILITY: Dict[str, Optional[str]] = {
    "any": None,
    "veg": "veg",
    "vegan": "vegan",
    "jain": "jain",
}


# ---------------- Scoring rules ---------------- #

@dataclass(frozen=True)
class Match:
    """Any-of matcher over a candidate's tags. Empty sets never match."""
    qualities: FrozenSet[str] = frozenset()
    categories: FrozenSet[str] = frozenset()
    ingredients: FrozenSet[str] = frozenset()
    tastes: FrozenSet[str] = frozenset()        # primary taste only
    virya: FrozenSet[str] = frozenset()
    digestibility: FrozenSet[str] = frozenset()


def _m(**kwargs) -> Match:
    return Match(**{k: frozenset(v) for k, v in kwargs.items()})


@dataclass(frozen=True)
class TieredRule:
    """First matching tier wins; the penalty is applied on top."""
    tiers: Tuple[Tuple[Match, int], ...] = ()
    penalty: Optional[Match] = None
    penalty_points: int = 0


DOSHA_RULES: Dict[str, TieredRule] = {
    "Vata": TieredRule(
        tiers=(
            (_m(ingredients={"ghee", "dates", "sweet potato", "oats"}, categories={"khichdi"}), 25),
            (_m(qualities={"warm", "oily", "cooked", "steamed"}, categories={"soup"}), 18),
            (_m(ingredients={"banana", "rice", "nuts"}), 12),
        ),
        penalty=_m(qualities={"raw", "cold", "dry"}, tastes={"Bitter"}),
        penalty_points=12,
    ),
    "Pitta": TieredRule(
        tiers=(
            (_m(ingredients={"cucumber", "coconut", "mint", "coriander"}, virya={"Cooling"}), 25),
            (_m(ingredients={"milk", "ghee", "rice", "melon", "grapes"}), 18),
            (_m(categories={"vegetable", "salad"}, tastes={"Bitter"}), 12),
        ),
        penalty=_m(qualities={"spicy", "fermented", "fried"}, virya={"Heating"}, tastes={"Sour"}),
        penalty_points=12,
    ),
    "Kapha": TieredRule(
        tiers=(
            (_m(ingredients={"ginger", "black pepper", "turmeric"}, qualities={"spicy"}), 25),
            (_m(qualities={"warm", "steamed"}, ingredients={"barley", "millet", "honey"}), 18),
            (_m(categories={"vegetable", "legume", "dal"}, tastes={"Astringent", "Bitter"}), 12),
        ),
        penalty=_m(qualities={"oily", "cold", "fried"}, digestibility={"Heavy"},
                   categories={"dairy"}, tastes={"Sweet"}),
        penalty_points=12,
    ),
}

ALL_SEASON_BONUS = 8

SEASON_RULES: Dict[str, TieredRule] = {
    "Summer": TieredRule(
        tiers=(
            (_m(virya={"Cooling"},
                ingredients={"cucumber", "watermelon", "coconut", "mint", "buttermilk", "curd"}), 25),
            (_m(qualities={"liquid"}, categories={"salad", "fruit"}), 18),
        ),
        penalty=_m(virya={"Heating"}, qualities={"spicy"}),
        penalty_points=8,
    ),
    "Winter": TieredRule(
        tiers=(
            (_m(virya={"Heating"}, ingredients={"ginger", "cinnamon", "ghee"}, categories={"soup"}), 25),
            (_m(qualities={"cooked", "steamed", "spicy"}, categories={"tea"}), 18),
        ),
        penalty=_m(virya={"Cooling"}, qualities={"cold", "raw"}),
        penalty_points=8,
    ),
    "Monsoon": TieredRule(
        tiers=(
            (_m(qualities={"steamed", "warm"}, ingredients={"ginger", "turmeric"}), 25),
            (_m(qualities={"cooked", "spicy"}, categories={"tea", "soup"}, digestibility={"Light"}), 18),
        ),
        penalty=_m(digestibility={"Heavy"}, qualities={"oily", "fried", "raw"}),
        penalty_points=10,
    ),
    "Spring": TieredRule(
        tiers=(
            (_m(qualities={"dry"}, ingredients={"honey", "barley", "ginger"}), 25),
            (_m(digestibility={"Light"}, qualities={"steamed"}), 18),
        ),
        penalty=_m(digestibility={"Heavy"}, qualities={"oily", "cold"}, categories={"dairy"}),
        penalty_points=8,
    ),
    "Autumn": TieredRule(
        tiers=(
            (_m(virya={"Cooling"}, ingredients={"ghee", "rice"}), 25),
            (_m(qualities={"cooked"}, tastes={"Sweet", "Bitter"}), 18),
        ),
        penalty=_m(virya={"Heating"}, qualities={"spicy", "fermented"}),
        penalty_points=8,
    ),
}
# Items tagged with the season but matching no tier still get the second tier.
SEASON_AFFINITY_BONUS = 18

PAN_INDIA_BONUS = 5
REGION_ROLE_BONUS: Dict[str, int] = {"specialty": 20, "staple": 15}
REGION_INGREDIENT_BONUS = 8

REGION_INGREDIENTS: Dict[str, FrozenSet[str]] = {
    "North": frozenset({"whole wheat", "mustard greens", "fenugreek", "paneer", "kidney beans", "chickpeas",
                        "maize", "carrot", "peas", "cauliflower", "potato", "garam masala"}),
    "South": frozenset({"rice", "coconut", "curry leaves", "tamarind", "urad dal", "drumstick",
                        "ash gourd", "raw banana", "yam", "mustard seeds", "buttermilk"}),
    "East": frozenset({"rice", "mustard oil", "poppy seeds", "panch phoron", "eggplant", "pumpkin",
                       "bitter gourd", "banana flower", "fish", "jaggery"}),
    "West": frozenset({"pearl millet", "sorghum", "gram flour", "kokum", "cluster beans", "okra",
                       "peanuts", "jaggery", "yam", "buttermilk"}),
}

MEAL_TIMING_RULES: Dict[str, TieredRule] = {
    "Breakfast": TieredRule(
        tiers=(
            (_m(categories={"fruit", "porridge"}, ingredients={"oats", "milk", "honey", "nuts"},
                qualities={"energizing"}), 15),
            (_m(digestibility={"Light"}, qualities={"warm"}), 10),
        ),
    ),
    "Lunch": TieredRule(
        tiers=(
            (_m(categories={"dal", "rice", "curry", "bread", "vegetable"}, qualities={"substantial"}), 15),
            (_m(qualities={"cooked"}), 10),
        ),
    ),
    "Dinner": TieredRule(
        tiers=(
            (_m(categories={"soup", "khichdi", "stew"}, qualities={"steamed"}), 15),
            (_m(qualities={"warm", "cooked"}), 10),
        ),
        penalty=_m(digestibility={"Heavy"}, qualities={"fried"}, ingredients={"cheese", "paneer", "curd"}),
        penalty_points=10,
    ),
}
SNACK_TIMING_RULE = TieredRule(
    tiers=(
        (_m(categories={"fruit", "nut", "seed", "tea"}, qualities={"nutrient_dense"}), 10),
        (_m(digestibility={"Light"}), 5),
    ),
)

PROTEIN_SOURCE = _m(categories={"legume", "dal"})
FIBER_SOURCE = _m(categories={"vegetable", "fruit", "salad"}, ingredients={"whole wheat", "millet"})
PROBIOTIC_SOURCE = _m(qualities={"fermented"}, ingredients={"curd", "buttermilk"})
HEALTHY_FAT_SOURCE = _m(ingredients={"ghee", "coconut", "nuts", "seeds", "sesame"})
PROTEIN_GRAMS_THRESHOLD = 8
FIBER_GRAMS_THRESHOLD = 4

SEASON_VIRYA: Dict[str, str] = {
    "Summer": "Cooling",
    "Autumn": "Cooling",
    "Winter": "Heating",
    "Spring": "Heating",
    "Monsoon": "Heating",
}
SPECIAL_INGREDIENTS: FrozenSet[str] = frozenset({"ginger", "turmeric", "ghee", "honey"})

TRADITIONAL_COMBINATIONS: Dict[Tuple[str, str], Tuple[FrozenSet[str], int]] = {
    ("Summer", "South"): (frozenset({"coconut", "curry leaves", "buttermilk"}), 5),
    ("Winter", "North"): (frozenset({"mustard greens", "maize", "jaggery"}), 5),
}
MONSOON_COMBINATION = (_m(ingredients={"ginger", "turmeric"}, qualities={"warm"}), 3)


# ---------------- Synthetic fallback ---------------- #

@dataclass(frozen=True)
class BaseIngredient:
    name: str
    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int
    allergens: FrozenSet[str] = field(default_factory=frozenset)
    diets: FrozenSet[str] = frozenset({"veg", "vegan", "jain"})


BASE_INGREDIENTS: Tuple[BaseIngredient, ...] = (
    BaseIngredient("Basmati rice", 130, 3, 28, 0, 1),
    BaseIngredient("Moong dal", 105, 7, 19, 0, 4),
    BaseIngredient("Seasonal vegetables", 60, 2, 12, 0, 4),
    BaseIngredient("Ghee", 45, 0, 0, 5, 0, frozenset({"dairy"}), frozenset({"veg", "jain"})),
    BaseIngredient("Whole wheat flour", 110, 4, 23, 1, 3, frozenset({"gluten"})),
    BaseIngredient("Millet", 120, 4, 23, 1, 3),
)


# ---------------- Notes ---------------- #

DOSHA_NOTES: Dict[str, Tuple[str, ...]] = {
    "Vata": ("Warm, cooked foods are recommended", "Include healthy fats like ghee"),
    "Pitta": ("Cooling foods and drinks", "Avoid spicy and sour foods"),
    "Kapha": ("Light, warm, and dry foods", "Include pungent spices"),
}

MEAL_NOTES: Dict[str, str] = {
    "Breakfast": "Start day gently; favor easy-to-digest foods",
    "Lunch": "Main meal of the day; digestion strongest",
    "Dinner": "Keep it lighter and earlier",
}

# (condition keyword, note) pairs, matched case-insensitively against condition strings.
CONDITION_NOTES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("diabet", ("Monitor carbohydrate intake", "Moderate sweet taste; focus on complex carbs and fiber")),
    ("digest", ("Include digestive spices like ginger and cumin",)),
    ("hypertension", ("Limit salty taste and pickles",)),
    ("blood pressure", ("Limit salty taste and pickles",)),
)
