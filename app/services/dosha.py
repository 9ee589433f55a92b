"""
Constitution helpers: canonical naming, pairwise combination, merged taste
guides and questionnaire-based prakriti inference.
"""
from typing import Dict, List, Mapping, Optional, Tuple

from app.core.exceptions import PlanValidationError
from app.services.knowledge_base import DOSHAS, PRIMARY_DOSHAS, RASA_GUIDE

# Questionnaire answers -> vote weight. Each answer names one primary dosha.
INTAKE_WEIGHTS: Dict[str, int] = {
    "body_frame": 2,
    "skin_type": 1,
    "hair_type": 1,
    "eye_type": 1,
    "appetite": 2,
    "sleep_pattern": 1,
    "climate_tolerance": 1,
    "thinking_style": 1,
    "emotional_tendencies": 1,
    "speech": 1,
    "physical_activity": 1,
    "adaptability": 1,
}

DUAL_DOSHA_RATIO = 0.8


def _primary(value: str) -> str:
    token = value.strip().title()
    if token not in PRIMARY_DOSHAS:
        raise PlanValidationError(f"Unknown dosha: {value!r}", {"dosha": value})
    return token


def combine(first: str, second: str) -> str:
    """Join two primaries in canonical Vata, Pitta, Kapha order."""
    a, b = _primary(first), _primary(second)
    if a == b:
        return a
    ordered = sorted((a, b), key=PRIMARY_DOSHAS.index)
    return "-".join(ordered)


def normalize_dosha(value: str) -> str:
    """
    Return the canonical spelling of a dosha string.

    Accepts any case and either order for pairs ("pitta-vata" -> "Vata-Pitta").
    Raises PlanValidationError for anything that is not one of the six values.
    """
    if not isinstance(value, str) or not value.strip():
        raise PlanValidationError("Dosha is required", {"dosha": value})

    parts = [p for p in value.replace(" ", "").split("-") if p]
    if len(parts) == 1:
        return _primary(parts[0])
    if len(parts) == 2:
        result = combine(parts[0], parts[1])
        if result in DOSHAS:
            return result
    raise PlanValidationError(f"Unknown dosha: {value!r}", {"dosha": value})


def primaries(dosha: str) -> Tuple[str, ...]:
    return tuple(normalize_dosha(dosha).split("-"))


def rasa_guide(dosha: str) -> Tuple[List[str], List[str]]:
    """Merged (prefer, avoid) taste lists; prefer wins over avoid."""
    prefer: List[str] = []
    avoid: List[str] = []
    for primary in primaries(dosha):
        guide = RASA_GUIDE[primary]
        prefer.extend(t for t in guide["prefer"] if t not in prefer)
        avoid.extend(t for t in guide["avoid"] if t not in avoid)
    avoid = [t for t in avoid if t not in prefer]
    return prefer, avoid


def score_intake(intake: Mapping[str, Optional[str]]) -> Dict[str, int]:
    scores = {d: 0 for d in PRIMARY_DOSHAS}
    for field_name, weight in INTAKE_WEIGHTS.items():
        answer = intake.get(field_name)
        if not answer:
            continue
        scores[_primary(answer)] += weight
    return scores


def infer_prakriti(intake: Mapping[str, Optional[str]]) -> str:
    """Dominant dosha from questionnaire answers; close runner-up gives a dual type."""
    scores = score_intake(intake)
    ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
    (top, top_score), (second, second_score) = ranked[0], ranked[1]

    if top_score == 0:
        return "Vata"

    if second_score == top_score or second_score >= top_score * DUAL_DOSHA_RATIO:
        return combine(top, second)

    return top
