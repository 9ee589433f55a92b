"""
Desirability score of one catalog item for one meal slot.

The score is a ranking signal in [0, 100]. It is the sum of a base value and
eight tag-driven sub-scores, each clamped to its own range. An item that hits
any active allergy exclusion scores exactly 0, and every other item scores at
least 1, so the veto always dominates.
"""
from typing import Dict, Iterable

from app.services.dosha import primaries, rasa_guide
from app.services.food_catalog import FoodCandidate, is_allergenic
from app.services.knowledge_base import (
    ALL_SEASON_BONUS,
    ALL_SEASONS,
    DOSHA_RULES,
    FIBER_GRAMS_THRESHOLD,
    FIBER_SOURCE,
    HEALTHY_FAT_SOURCE,
    MEAL_TIMING_RULES,
    MONSOON_COMBINATION,
    PAN_INDIA,
    PAN_INDIA_BONUS,
    PROBIOTIC_SOURCE,
    PROTEIN_GRAMS_THRESHOLD,
    PROTEIN_SOURCE,
    REGION_INGREDIENT_BONUS,
    REGION_INGREDIENTS,
    REGION_ROLE_BONUS,
    SEASON_AFFINITY_BONUS,
    SEASON_RULES,
    SEASON_VIRYA,
    SNACK_TIMING_RULE,
    SPECIAL_INGREDIENTS,
    TRADITIONAL_COMBINATIONS,
    Match,
    TieredRule,
)

BASE_SCORE = 30
MIN_SCORE = 1
MAX_SCORE = 100


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def matches(item: FoodCandidate, match: Match) -> bool:
    return bool(
        item.qualities & match.qualities
        or item.categories & match.categories
        or item.ingredients & match.ingredients
        or item.primary_taste in match.tastes
        or item.virya in match.virya
        or item.digestibility in match.digestibility
    )


def apply_rule(item: FoodCandidate, rule: TieredRule) -> int:
    points = 0
    for match, tier_points in rule.tiers:
        if matches(item, match):
            points = tier_points
            break
    if rule.penalty is not None and matches(item, rule.penalty):
        points -= rule.penalty_points
    return points


# ---------------- Sub-scores ---------------- #

def dosha_score(item: FoodCandidate, dosha: str) -> int:
    # Combined constitutions add both primaries' results.
    total = sum(apply_rule(item, DOSHA_RULES[p]) for p in primaries(dosha))
    return _clamp(total, -15, 35)


def season_score(item: FoodCandidate, season: str) -> int:
    if season == ALL_SEASONS:
        return ALL_SEASON_BONUS

    rule = SEASON_RULES[season]
    points = 0
    for match, tier_points in rule.tiers:
        if matches(item, match):
            points = tier_points
            break
    if season in item.seasons:
        points = max(points, SEASON_AFFINITY_BONUS)
    if rule.penalty is not None and matches(item, rule.penalty):
        points -= rule.penalty_points
    return _clamp(points, -10, 25)


def region_score(item: FoodCandidate, region: str) -> int:
    if region == PAN_INDIA:
        return PAN_INDIA_BONUS
    if region in item.regions:
        return _clamp(REGION_ROLE_BONUS.get(item.region_role, REGION_ROLE_BONUS["staple"]), 0, 20)
    if item.ingredients & REGION_INGREDIENTS.get(region, frozenset()):
        return REGION_INGREDIENT_BONUS
    return 0


def timing_score(item: FoodCandidate, meal_type: str) -> int:
    rule = MEAL_TIMING_RULES.get(meal_type, SNACK_TIMING_RULE)
    return _clamp(apply_rule(item, rule), 0, 20)


def nutrition_score(item: FoodCandidate) -> int:
    points = 0
    if matches(item, PROTEIN_SOURCE) or item.protein >= PROTEIN_GRAMS_THRESHOLD:
        points += 3
    if matches(item, FIBER_SOURCE) or item.fiber >= FIBER_GRAMS_THRESHOLD:
        points += 3
    if matches(item, PROBIOTIC_SOURCE):
        points += 2
    if matches(item, HEALTHY_FAT_SOURCE):
        points += 2
    return min(points, 10)


def digestibility_score(item: FoodCandidate, dosha: str) -> int:
    doshas = primaries(dosha)
    points = {"Light": 8, "Moderate": 5}.get(item.digestibility, 0)

    if "Vata" in doshas and (item.qualities & {"warm", "oily"} or "ghee" in item.ingredients):
        points += 2
    if "Kapha" in doshas:
        if item.digestibility == "Light" or "spicy" in item.qualities or item.primary_taste == "Bitter":
            points += 2
        if item.digestibility == "Heavy" or "oily" in item.qualities or item.primary_taste == "Sweet":
            points -= 3
    return _clamp(points, -3, 10)


def ayurvedic_score(item: FoodCandidate, dosha: str, season: str) -> int:
    prefer, _ = rasa_guide(dosha)
    points = 0
    if set(item.tastes) & set(prefer):
        points += 5
    if season != ALL_SEASONS and SEASON_VIRYA.get(season) == item.virya:
        points += 5
    if item.ingredients & SPECIAL_INGREDIENTS:
        points += 5
    return min(points, 15)


def tradition_score(item: FoodCandidate, season: str, region: str) -> int:
    points = 0
    combination = TRADITIONAL_COMBINATIONS.get((season, region))
    if combination and item.ingredients & combination[0]:
        points += combination[1]
    if season == "Monsoon":
        match, bonus = MONSOON_COMBINATION
        if matches(item, match):
            points += bonus
    return min(points, 5)


# ---------------- Main API ---------------- #

def score_breakdown(
    item: FoodCandidate,
    dosha: str,
    season: str,
    region: str,
    meal_type: str,
) -> Dict[str, int]:
    return {
        "dosha": dosha_score(item, dosha),
        "season": season_score(item, season),
        "region": region_score(item, region),
        "timing": timing_score(item, meal_type),
        "nutrition": nutrition_score(item),
        "digestibility": digestibility_score(item, dosha),
        "ayurvedic": ayurvedic_score(item, dosha, season),
        "tradition": tradition_score(item, season, region),
    }


def raw_score(item: FoodCandidate, dosha: str, season: str, region: str, meal_type: str) -> int:
    """Base plus sub-scores before clamping; keeps ordering among items that hit the ceiling."""
    return BASE_SCORE + sum(score_breakdown(item, dosha, season, region, meal_type).values())


def clamp_score(total: int) -> int:
    return _clamp(int(round(total)), MIN_SCORE, MAX_SCORE)


def score(
    item: FoodCandidate,
    dosha: str,
    season: str,
    region: str,
    meal_type: str,
    allergies: Iterable[str] = (),
) -> int:
    if is_allergenic(item, allergies):
        return 0
    return clamp_score(raw_score(item, dosha, season, region, meal_type))
