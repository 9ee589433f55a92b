import random
from dataclasses import asdict, dataclass, field
from typing import Iterable, List, MutableSet, Optional, Sequence, Tuple

from app.core.config import settings
from app.services.dosha import rasa_guide
from app.services.food_catalog import (
    ALLERGEN_ALIASES,
    FoodCandidate,
    get_catalog,
    is_allergenic,
    items_for_slot,
    matches_diet,
    normalize_allergies,
)
from app.services.food_scorer import clamp_score, raw_score
from app.services.knowledge_base import (
    ALL_SEASONS,
    BASE_INGREDIENTS,
    DEFAULT_SERVING,
    DIET_COMPATIBILITY,
    PAN_INDIA,
    RELATED_SLOTS,
    BaseIngredient,
)
from app.services.logger import log_debug

BOWL_INGREDIENT_COUNT = 3


@dataclass
class FoodEntry:
    name: str
    quantity: str
    calories: int
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    notes: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ComposedMeal:
    foods: List[FoodEntry]
    notes: List[str] = field(default_factory=list)
    had_to_repeat: bool = False
    widened: bool = False

    @property
    def total_calories(self) -> int:
        return sum(f.calories for f in self.foods)


# ---------------- Helpers ---------------- #

def to_food_entry(item: FoodCandidate, meal_type: str) -> FoodEntry:
    tastes = ", ".join(item.tastes)
    note = f"{item.virya}, {item.digestibility.lower()} to digest"
    if tastes:
        note = f"{note}; {tastes}"
    return FoodEntry(
        name=item.name,
        quantity=item.quantity or DEFAULT_SERVING.get(meal_type, "1 serving"),
        calories=int(item.calories),
        protein=round(item.protein, 1),
        carbs=round(item.carbs, 1),
        fat=round(item.fat, 1),
        fiber=round(item.fiber, 1),
        notes=note,
    )


def build_pool(
    catalog: Iterable[FoodCandidate],
    dosha: str,
    season: str,
    region: str,
    meal_type: str,
    item_count: int = 1,
    diet_type: str = "any",
) -> List[FoodCandidate]:
    """
    Candidate pool for one slot: rasa-compatible items, season-tagged items,
    region-tagged items, and the remaining slot items only when the first
    three groups cannot fill the slot.
    """
    slot_items = [i for i in items_for_slot(catalog, meal_type) if matches_diet(i, diet_type)]
    prefer, avoid = rasa_guide(dosha)

    pool: List[FoodCandidate] = []
    seen = set()

    def _add(items):
        for item in items:
            if item.name not in seen:
                seen.add(item.name)
                pool.append(item)

    _add(i for i in slot_items if set(i.tastes) & set(prefer) or i.primary_taste not in avoid)
    if season != ALL_SEASONS:
        _add(i for i in slot_items if season in i.seasons)
    if region != PAN_INDIA:
        _add(i for i in slot_items if region in i.regions)
    if len(pool) < item_count:
        _add(slot_items)
    return pool


def _rank_key(entry):
    _, total, item = entry
    return -total, item.name


def rank_candidates(
    pool: Sequence[FoodCandidate],
    dosha: str,
    season: str,
    region: str,
    meal_type: str,
    allergies: Iterable[str],
) -> List[Tuple[int, int, FoodCandidate]]:
    """
    (score, unclamped total, item) triples, best first, allergen-vetoed items
    dropped. Ties at the score ceiling are ordered by the unclamped total.
    """
    scored = []
    for item in pool:
        if is_allergenic(item, allergies):
            continue
        total = raw_score(item, dosha, season, region, meal_type)
        scored.append((clamp_score(total), total, item))
    scored.sort(key=_rank_key)
    return scored


def top_band(ranked: Sequence, fraction: float = None, minimum: int = None) -> List:
    fraction = settings.TOP_BAND_FRACTION if fraction is None else fraction
    minimum = settings.TOP_BAND_MIN if minimum is None else minimum
    size = max(minimum, int(len(ranked) * fraction))
    return list(ranked[:min(size, len(ranked))])


def _base_allowed(base: BaseIngredient, allergies: List[str], diet_type: str) -> bool:
    required = DIET_COMPATIBILITY.get(diet_type or "any")
    if required is not None and required not in base.diets:
        return False
    name = base.name.lower()
    for term in allergies:
        if ALLERGEN_ALIASES.get(term, term) in base.allergens or term in base.allergens or term in name:
            return False
    return True


def synthesize_bowl(meal_type: str, allergies: Iterable[str], diet_type: str = "any") -> FoodEntry:
    """Generic '<MealType> Bowl' from up to three allowed base ingredients."""
    terms = normalize_allergies(allergies)
    bases = [b for b in BASE_INGREDIENTS if _base_allowed(b, terms, diet_type)][:BOWL_INGREDIENT_COUNT]
    return FoodEntry(
        name=f"{meal_type} Bowl",
        quantity=DEFAULT_SERVING.get(meal_type, "1 serving"),
        calories=sum(b.calories for b in bases),
        protein=float(sum(b.protein for b in bases)),
        carbs=float(sum(b.carbs for b in bases)),
        fat=float(sum(b.fat for b in bases)),
        fiber=float(sum(b.fiber for b in bases)),
        notes="Made from " + ", ".join(b.name for b in bases) if bases else "Simple seasonal preparation",
    )


# ---------------- Main API ---------------- #

def compose_meal(
    dosha: str,
    season: str,
    region: str,
    meal_type: str,
    allergies: Iterable[str],
    used_names: MutableSet[str],
    item_count: int,
    calorie_target: float,
    allow_repeats: bool = False,
    diet_type: str = "any",
    widen: bool = False,
    catalog: Optional[Sequence[FoodCandidate]] = None,
    rng: Optional[random.Random] = None,
) -> ComposedMeal:
    """
    Pick the foods for one meal slot.

    Candidates are ranked by score and `item_count` of them are sampled at
    random from the top band. Names in `used_names` are skipped unless
    `allow_repeats` is set. The meal is topped up with one extra item while
    it is short of the calorie target. Selected names are added to
    `used_names`.

    Related meal slots join the pool when `widen` is set or when the slot
    has no candidates of its own.

    Never raises for an empty pool: a synthetic bowl is returned instead.
    `had_to_repeat` is set when the slot could not be filled without
    reusing names from earlier in the week.
    """
    rng = rng or random.Random()
    catalog = get_catalog() if catalog is None else catalog
    allergies = normalize_allergies(allergies)
    item_count = max(1, item_count)

    ranked = rank_candidates(
        build_pool(catalog, dosha, season, region, meal_type, item_count, diet_type),
        dosha, season, region, meal_type, allergies,
    )

    widened = False
    if widen or not ranked:
        known = {item.name for _, _, item in ranked}
        for related in RELATED_SLOTS.get(meal_type, ()):
            extra = [
                entry for entry in rank_candidates(
                    build_pool(catalog, dosha, season, region, related, item_count, diet_type),
                    dosha, season, region, meal_type, allergies,
                )
                if entry[2].name not in known
            ]
            if extra:
                widened = True
                known.update(item.name for _, _, item in extra)
                ranked = sorted(ranked + extra, key=_rank_key)

    log_debug("slot_candidates", {
        "meal_type": meal_type,
        "pool_size": len(ranked),
        "top": [{"name": item.name, "score": s, "total": total} for s, total, item in ranked[:5]],
    })

    notes: List[str] = []
    if widened:
        notes.append("Includes options from related meal times")

    fresh = [item for _, _, item in ranked if item.name not in used_names]
    repeats = [item for _, _, item in ranked if item.name in used_names]
    eligible = fresh + repeats if allow_repeats else fresh

    if not eligible:
        bowl = synthesize_bowl(meal_type, allergies, diet_type)
        used_names.add(bowl.name)
        notes.append("No catalog item fits the current filters; generic bowl suggested")
        return ComposedMeal(foods=[bowl], notes=notes, had_to_repeat=bool(ranked), widened=widened)

    # Fresh items outrank repeats so a relaxed pick only reuses names when it must.
    band = top_band(fresh) if len(fresh) >= item_count else eligible[:max(item_count, len(fresh))]
    chosen = rng.sample(band, min(item_count, len(band)))

    shortfall = settings.CALORIE_SHORTFALL
    total = sum(item.calories for item in chosen)
    for item in fresh:
        if total >= calorie_target - shortfall or len(chosen) >= item_count + 1:
            break
        if item in chosen:
            continue
        chosen.append(item)
        total += item.calories

    had_to_repeat = len(fresh) < item_count
    if any(item.name in used_names for item in chosen):
        notes.append("Repeats a dish from earlier in the plan")

    for item in chosen:
        used_names.add(item.name)

    return ComposedMeal(
        foods=[to_food_entry(item, meal_type) for item in chosen],
        notes=notes,
        had_to_repeat=had_to_repeat,
        widened=widened,
    )
