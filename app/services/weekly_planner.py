"""
Weekly plan generation.

Walks days x meal slots, asks the composer for each slot with a bounded
retry (strict, strict with related slots, relaxed), attaches guidance notes
and computes the per-day rollups. A final pass over the finished plan is the
authoritative duplicate detector.
"""
import random
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from app.core.config import settings
from app.core.exceptions import PlanValidationError
from app.services.dosha import normalize_dosha, primaries
from app.services.food_catalog import FoodCandidate, get_catalog, normalize_allergies
from app.services.knowledge_base import (
    ALL_SEASONS,
    CONDITION_NOTES,
    DIET_TYPES,
    DOSHA_NOTES,
    FAST_DAYS,
    FAST_MEAL_TYPES,
    ITEMS_PER_SLOT,
    MEAL_CALORIE_SHARE,
    MEAL_NOTES,
    MEAL_TYPES,
    PAN_INDIA,
    REGIONS,
    SEASONS,
    WEEK_DAYS,
)
from app.services.logger import log_debug
from app.services.meal_composer import ComposedMeal, FoodEntry, compose_meal

MACROS = ("calories", "protein", "carbs", "fat")
DEFAULT_GOALS = ["Balance doshas"]


@dataclass
class Meal:
    day: str
    meal_type: str
    foods: List[FoodEntry]
    notes: List[str] = field(default_factory=list)

    @property
    def total_calories(self) -> int:
        return sum(f.calories for f in self.foods)

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "mealType": self.meal_type,
            "foods": [f.to_dict() for f in self.foods],
            "notes": list(self.notes),
            "totalCalories": self.total_calories,
        }


@dataclass
class WeeklyPlan:
    name: str = ""
    dosha: Optional[str] = None
    season: str = ALL_SEASONS
    region: str = PAN_INDIA
    duration: int = 7
    goals: List[str] = field(default_factory=list)
    restrictions: List[str] = field(default_factory=list)
    diet_type: str = "any"
    status: str = "Active"
    days: Dict[str, Dict[str, Meal]] = field(default_factory=OrderedDict)
    metadata: dict = field(default_factory=dict)

    @property
    def meals(self) -> List[Meal]:
        return [meal for slots in self.days.values() for meal in slots.values()]

    @property
    def is_empty(self) -> bool:
        return not any(meal.foods for meal in self.meals)

    def to_document(self) -> dict:
        return {
            "name": self.name,
            "dosha": self.dosha,
            "season": self.season,
            "region": self.region,
            "duration": self.duration,
            "goals": list(self.goals),
            "restrictions": list(self.restrictions),
            "dietType": self.diet_type,
            "meals": [meal.to_dict() for meal in self.meals],
            "status": self.status,
        }


# ---------------- Helpers ---------------- #

def plan_name(dosha: str, season: str, region: str, on: Optional[date] = None) -> str:
    parts = [dosha]
    if season != ALL_SEASONS:
        parts.append(season)
    if region != PAN_INDIA:
        parts.append(region)
    return f"{' '.join(parts)} Plan - {(on or date.today()).isoformat()}"


def resolve_targets(targets: Optional[Mapping]) -> Dict[str, float]:
    defaults = {
        "calories": settings.DEFAULT_CALORIES,
        "protein": settings.DEFAULT_PROTEIN,
        "carbs": settings.DEFAULT_CARBS,
        "fat": settings.DEFAULT_FAT,
    }
    resolved = {}
    for key, default in defaults.items():
        value = (targets or {}).get(key)
        if value is None:
            resolved[key] = float(default)
            continue
        try:
            resolved[key] = float(value)
        except (TypeError, ValueError) as exc:
            raise PlanValidationError(f"Target {key} must be numeric", {key: value}) from exc
        if resolved[key] < 0:
            raise PlanValidationError(f"Target {key} must not be negative", {key: value})
    return resolved


def meal_notes(dosha: str, meal_type: str, health_conditions: Sequence[str], allergies: Sequence[str]) -> List[str]:
    notes: List[str] = []
    for primary in primaries(dosha):
        notes.extend(DOSHA_NOTES[primary])
    if meal_type in MEAL_NOTES:
        notes.append(MEAL_NOTES[meal_type])

    conditions = [c.lower() for c in health_conditions]
    for keyword, condition_notes in CONDITION_NOTES:
        if any(keyword in c for c in conditions):
            notes.extend(condition_notes)
    if allergies:
        notes.append("Avoid: " + ", ".join(allergies))

    unique: List[str] = []
    for note in notes:
        if note not in unique:
            unique.append(note)
    return unique


def find_duplicate_names(meals: Iterable[Meal]) -> List[dict]:
    """Every food name that appears more than once in the plan, with where it appears."""
    locations: Dict[str, List[str]] = OrderedDict()
    for meal in meals:
        for food in meal.foods:
            locations.setdefault(food.name, []).append(f"{meal.day} {meal.meal_type}")
    return [
        {"name": name, "locations": where, "count": len(where)}
        for name, where in locations.items()
        if len(where) > 1
    ]


def daily_totals(plan: WeeklyPlan) -> Dict[str, Dict[str, float]]:
    totals = OrderedDict()
    for day, slots in plan.days.items():
        day_total = {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fat": 0.0, "fiber": 0.0}
        for meal in slots.values():
            for food in meal.foods:
                for key in day_total:
                    day_total[key] += getattr(food, key)
        totals[day] = {k: round(v, 1) for k, v in day_total.items()}
    return totals


def target_adherence(totals: Mapping[str, Mapping[str, float]], targets: Mapping[str, float]) -> dict:
    if not totals:
        return {"average": {}, "percent_of_target": {}}
    average = {
        key: round(sum(day[key] for day in totals.values()) / len(totals), 1)
        for key in MACROS
    }
    percent = {
        key: round(average[key] / targets[key] * 100, 1) if targets.get(key) else None
        for key in MACROS
    }
    return {"average": average, "percent_of_target": percent}


def _validate(season: str, region: str, diet_type: str):
    if season not in SEASONS:
        raise PlanValidationError(f"Unknown season: {season!r}", {"season": season})
    if region not in REGIONS:
        raise PlanValidationError(f"Unknown region: {region!r}", {"region": region})
    if diet_type not in DIET_TYPES:
        raise PlanValidationError(f"Unknown diet type: {diet_type!r}", {"diet_type": diet_type})


# ---------------- Slot state machine ---------------- #

def fill_slot(
    dosha: str,
    season: str,
    region: str,
    meal_type: str,
    allergies: List[str],
    used_names: set,
    calorie_target: float,
    diet_type: str = "any",
    catalog: Optional[Sequence[FoodCandidate]] = None,
    rng: Optional[random.Random] = None,
    max_attempts: Optional[int] = None,
):
    """
    select -> verify-unique -> accept | retry | relax-and-accept.

    Each attempt composes against a scratch copy of `used_names`; only the
    accepted attempt is committed. Returns (ComposedMeal, attempts used).
    """
    max_attempts = max(1, max_attempts or settings.MAX_SLOT_ATTEMPTS)
    item_count = ITEMS_PER_SLOT[meal_type]
    result: Optional[ComposedMeal] = None

    for attempt in range(1, max_attempts + 1):
        relaxed = attempt == max_attempts
        scratch = set(used_names)
        result = compose_meal(
            dosha, season, region, meal_type, allergies,
            used_names=scratch,
            item_count=item_count,
            calorie_target=calorie_target,
            allow_repeats=relaxed,
            diet_type=diet_type,
            widen=attempt > 1,
            catalog=catalog,
            rng=rng,
        )
        if not result.had_to_repeat or relaxed:
            used_names.update(scratch)
            return result, attempt

    return result, max_attempts


# ---------------- Main API ---------------- #

def generate_week(
    dosha: str,
    season: str = ALL_SEASONS,
    region: str = PAN_INDIA,
    allergies: Iterable[str] = (),
    health_conditions: Iterable[str] = (),
    targets: Optional[Mapping] = None,
    fast: bool = False,
    diet_type: str = "any",
    goals: Optional[Iterable[str]] = None,
    duration: int = 7,
    catalog: Optional[Sequence[FoodCandidate]] = None,
    rng: Optional[random.Random] = None,
    plan_date: Optional[date] = None,
) -> WeeklyPlan:
    """
    Build a full plan. An unrecognized dosha yields an empty plan instead of
    raising; check `plan.is_empty`. Bad season, region, diet type or targets
    raise PlanValidationError before anything is scored.
    """
    _validate(season, region, diet_type)
    resolved_targets = resolve_targets(targets)
    allergies = normalize_allergies(allergies)
    health_conditions = [str(c).strip() for c in health_conditions or [] if str(c).strip()]
    goals = list(goals) if goals else list(DEFAULT_GOALS)

    try:
        dosha = normalize_dosha(dosha)
    except PlanValidationError as exc:
        log_debug("plan_generation_summary", {"empty": True, "reason": exc.message})
        return WeeklyPlan(
            dosha=None, season=season, region=region, duration=0, goals=goals,
            restrictions=health_conditions, diet_type=diet_type,
            metadata={"empty": True, "reason": exc.message},
        )

    rng = rng or random.Random()
    catalog = get_catalog() if catalog is None else catalog
    days = FAST_DAYS if fast else WEEK_DAYS
    meal_types = FAST_MEAL_TYPES if fast else MEAL_TYPES

    plan = WeeklyPlan(
        name=plan_name(dosha, season, region, plan_date),
        dosha=dosha,
        season=season,
        region=region,
        duration=len(FAST_DAYS) if fast else duration,
        goals=goals,
        restrictions=health_conditions,
        diet_type=diet_type,
    )

    used_names: set = set()
    repeated_slots = []
    attempts_total = 0

    for day in days:
        plan.days[day] = OrderedDict()
        for meal_type in meal_types:
            calorie_target = round(resolved_targets["calories"] * MEAL_CALORIE_SHARE[meal_type])
            result, attempts = fill_slot(
                dosha, season, region, meal_type, allergies, used_names, calorie_target,
                diet_type=diet_type, catalog=catalog, rng=rng,
            )
            attempts_total += attempts
            if result.had_to_repeat:
                repeated_slots.append({"day": day, "mealType": meal_type, "attempts": attempts})
                log_debug("slot_relaxed", {"day": day, "meal_type": meal_type, "attempts": attempts})

            notes = meal_notes(dosha, meal_type, health_conditions, allergies) + result.notes
            plan.days[day][meal_type] = Meal(day=day, meal_type=meal_type, foods=result.foods, notes=notes)

    meals = plan.meals
    duplicates = find_duplicate_names(meals)
    totals = daily_totals(plan)

    plan.metadata = {
        "empty": plan.is_empty,
        "total_recipes_used": sum(len(m.foods) for m in meals),
        "unique_recipes_used": len({f.name for m in meals for f in m.foods}),
        "duplicates_detected": duplicates,
        "repeated_slots": repeated_slots,
        "slot_attempts": attempts_total,
        "daily_totals": totals,
        "targets": resolved_targets,
        "target_adherence": target_adherence(totals, resolved_targets),
    }

    log_debug("plan_generation_summary", {
        "dosha": dosha,
        "season": season,
        "region": region,
        "meals": len(meals),
        "total_recipes_used": plan.metadata["total_recipes_used"],
        "unique_recipes_used": plan.metadata["unique_recipes_used"],
        "duplicates": [d["name"] for d in duplicates],
    })

    return plan
