import pandas as pd
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Tuple

from app.core.config import settings
from app.services.knowledge_base import ALL_SEASONS, DIET_COMPATIBILITY, SLOT_CODES
from app.services.logger import log_warning

FOOD_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "food_catalog.csv"

NUMERIC_COLUMNS = ["calories", "protein", "carbs", "fat", "fiber"]

# Common ways an allergy is written -> allergen tag used in the catalog.
ALLERGEN_ALIASES = {
    "milk": "dairy",
    "lactose": "dairy",
    "wheat": "gluten",
    "peanut": "nuts",
    "peanuts": "nuts",
    "tree nuts": "nuts",
    "nut": "nuts",
    "seafood": "fish",
}


@dataclass(frozen=True)
class FoodCandidate:
    name: str
    slots: FrozenSet[str]
    tastes: Tuple[str, ...]
    virya: str = "Neutral"
    digestibility: str = "Moderate"
    qualities: FrozenSet[str] = frozenset()
    categories: FrozenSet[str] = frozenset()
    ingredients: FrozenSet[str] = frozenset()
    allergens: FrozenSet[str] = frozenset()
    diets: FrozenSet[str] = frozenset()
    seasons: FrozenSet[str] = frozenset()
    regions: FrozenSet[str] = frozenset()
    region_role: str = ""
    quantity: str = ""
    calories: int = 0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0

    @property
    def primary_taste(self) -> str:
        return self.tastes[0] if self.tastes else ""

    @property
    def all_season(self) -> bool:
        return ALL_SEASONS in self.seasons


# ---------------- Helpers ---------------- #

def clean_number(value):
    if pd.isna(value):
        return 0.0
    match = re.findall(r"[\d\.]+", str(value))
    return float(match[0]) if match else 0.0


def parse_list(text: str, lower: bool = True):
    if not text or pd.isna(text):
        return []
    parts = re.split(r"[;,]", str(text))
    return [p.strip().lower() if lower else p.strip() for p in parts if p.strip()]


def _parse_slots(text: str, name: str) -> FrozenSet[str]:
    slots = set()
    for code in parse_list(text, lower=False):
        code = code.upper()
        if code not in SLOT_CODES:
            raise ValueError(f"Unknown meal slot code {code!r} for catalog item {name!r}")
        slots.add(SLOT_CODES[code])
    return frozenset(slots)


def _parse_seasons(text: str) -> FrozenSet[str]:
    seasons = parse_list(text, lower=False)
    if not seasons or any(s.lower() in ("all", "all-season") for s in seasons):
        return frozenset({ALL_SEASONS})
    return frozenset(s.title() for s in seasons)


def row_to_candidate(row: dict) -> FoodCandidate:
    name = str(row["name"]).strip()
    return FoodCandidate(
        name=name,
        slots=_parse_slots(row.get("slots", ""), name),
        tastes=tuple(t.title() for t in parse_list(row.get("tastes", ""))),
        virya=str(row.get("virya") or "Neutral").strip().title(),
        digestibility=str(row.get("digestibility") or "Moderate").strip().title(),
        qualities=frozenset(parse_list(row.get("qualities", ""))),
        categories=frozenset(parse_list(row.get("categories", ""))),
        ingredients=frozenset(parse_list(row.get("ingredients", ""))),
        allergens=frozenset(parse_list(row.get("allergens", ""))),
        diets=frozenset(parse_list(row.get("diets", ""))),
        seasons=_parse_seasons(row.get("seasons", "")),
        regions=frozenset(r.title() for r in parse_list(row.get("regions", ""))),
        region_role=str(row.get("region_role") or "").strip().lower(),
        quantity=str(row.get("quantity") or "").strip(),
        calories=int(round(clean_number(row.get("calories")))),
        protein=clean_number(row.get("protein")),
        carbs=clean_number(row.get("carbs")),
        fat=clean_number(row.get("fat")),
        fiber=clean_number(row.get("fiber")),
    )


# ---------------- Load catalog ---------------- #

@lru_cache(maxsize=4)
def load_food_catalog(path: Optional[str] = None) -> Tuple[FoodCandidate, ...]:
    csv_path = Path(path) if path else FOOD_CATALOG_PATH
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)

    for col in NUMERIC_COLUMNS:
        if col in df.columns:
            df[col] = df[col].apply(clean_number)

    df = df[df["name"].str.strip() != ""]
    dupes = df[df.duplicated(subset="name", keep="first")]["name"].tolist()
    if dupes:
        log_warning(f"Duplicate catalog entries ignored: {', '.join(dupes)}")
    df = df.drop_duplicates(subset="name", keep="first")

    return tuple(row_to_candidate(row) for row in df.to_dict(orient="records"))


def get_catalog() -> Tuple[FoodCandidate, ...]:
    return load_food_catalog(settings.FOOD_CATALOG_PATH or None)


# ---------------- Filters ---------------- #

def normalize_allergies(allergies: Iterable[str]) -> List[str]:
    terms = []
    for allergy in allergies or []:
        term = str(allergy).strip().lower()
        if term and term not in terms:
            terms.append(term)
    return terms


def is_allergenic(item: FoodCandidate, allergies: Iterable[str]) -> bool:
    """True when any exclusion term hits the item's allergen tags, ingredients or name."""
    name = item.name.lower()
    for term in normalize_allergies(allergies):
        tag = ALLERGEN_ALIASES.get(term, term)
        if tag in item.allergens or term in item.allergens:
            return True
        if term in name:
            return True
        if any(term in ingredient for ingredient in item.ingredients):
            return True
    return False


def matches_diet(item: FoodCandidate, diet_type: str = "any") -> bool:
    required = DIET_COMPATIBILITY.get(diet_type or "any")
    return required is None or required in item.diets


def items_for_slot(catalog: Iterable[FoodCandidate], meal_type: str) -> List[FoodCandidate]:
    return [item for item in catalog if meal_type in item.slots]
