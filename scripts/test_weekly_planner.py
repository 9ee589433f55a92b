import random
import unittest
from collections import Counter
from datetime import date

from app.core.exceptions import PlanValidationError
from app.services.food_catalog import FoodCandidate, load_food_catalog
from app.services.knowledge_base import FAST_DAYS, MEAL_TYPES, WEEK_DAYS
from app.services.weekly_planner import fill_slot, find_duplicate_names, generate_week, plan_name

TARGETS = {"calories": 1800, "protein": 80, "carbs": 220, "fat": 60}


def tiny_catalog(per_slot=2):
    codes = {"Breakfast": "B", "Mid-Morning Snack": "M", "Lunch": "L", "Evening Snack": "E", "Dinner": "D"}
    return [
        FoodCandidate(
            name=f"{code} dish {i}",
            slots=frozenset({meal_type}),
            tastes=("Sweet",),
            diets=frozenset({"veg", "vegan", "jain"}),
            seasons=frozenset({"All-Season"}),
            calories=250,
        )
        for meal_type, code in codes.items()
        for i in range(per_slot)
    ]


class TestGenerateWeek(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.catalog = load_food_catalog()
        cls.by_name = {item.name: item for item in cls.catalog}
        cls.pitta_plan = generate_week(
            "Pitta", "Summer", "South", [], [], TARGETS, rng=random.Random(11),
        )

    def test_full_week_shape(self):
        plan = self.pitta_plan
        self.assertEqual(list(plan.days), list(WEEK_DAYS))
        self.assertEqual(len(plan.meals), 35)
        for slots in plan.days.values():
            self.assertEqual(list(slots), list(MEAL_TYPES))

    def test_meal_totals_match_foods(self):
        for meal in self.pitta_plan.meals:
            self.assertTrue(meal.foods)
            self.assertEqual(meal.total_calories, sum(f.calories for f in meal.foods))
            self.assertEqual(meal.to_dict()["totalCalories"], meal.total_calories)

    def test_no_repeats_when_pool_is_large(self):
        plan = self.pitta_plan
        self.assertEqual(plan.metadata["duplicates_detected"], [])
        self.assertEqual(plan.metadata["total_recipes_used"], plan.metadata["unique_recipes_used"])

    def test_pitta_summer_south_favors_cooling_and_southern(self):
        main_meals = [m for m in self.pitta_plan.meals if m.meal_type in ("Lunch", "Dinner")]
        favored = 0
        for meal in main_meals:
            items = [self.by_name[f.name] for f in meal.foods if f.name in self.by_name]
            if any(i.virya == "Cooling" or "South" in i.regions for i in items):
                favored += 1
        self.assertGreater(favored, len(main_meals) / 2)

    def test_kapha_winter_north_without_dairy(self):
        plan = generate_week("Kapha", "Winter", "North", ["dairy"], [], TARGETS, rng=random.Random(3))
        dairy = {item.name for item in self.catalog if "dairy" in item.allergens}
        names = [f.name for m in plan.meals for f in m.foods]

        self.assertEqual(len(plan.meals), 35)
        self.assertFalse(dairy & set(names))
        self.assertFalse([n for n in names if "dairy" in n.lower()])

    def test_vegan_plan(self):
        plan = generate_week("Vata", allergies=["nuts"], diet_type="vegan", rng=random.Random(5))
        for meal in plan.meals:
            for entry in meal.foods:
                item = self.by_name.get(entry.name)
                if item is not None:
                    self.assertIn("vegan", item.diets)
                    self.assertNotIn("nuts", item.allergens)

    def test_condition_and_dosha_notes(self):
        plan = generate_week(
            "Vata-Pitta", health_conditions=["Type 2 Diabetes"], fast=True, rng=random.Random(2),
        )
        for meal in plan.meals:
            self.assertIn("Monitor carbohydrate intake", meal.notes)
            self.assertIn("Warm, cooked foods are recommended", meal.notes)
            self.assertIn("Cooling foods and drinks", meal.notes)
        self.assertEqual(plan.restrictions, ["Type 2 Diabetes"])

    def test_fast_mode(self):
        plan = generate_week("Kapha", fast=True, duration=14, rng=random.Random(4))
        self.assertEqual(list(plan.days), list(FAST_DAYS))
        self.assertEqual(len(plan.meals), 9)
        self.assertEqual(plan.duration, 3)

    def test_daily_totals(self):
        totals = self.pitta_plan.metadata["daily_totals"]
        for day, slots in self.pitta_plan.days.items():
            self.assertEqual(totals[day]["calories"], sum(m.total_calories for m in slots.values()))

    def test_document_shape(self):
        doc = self.pitta_plan.to_document()
        self.assertEqual(doc["dosha"], "Pitta")
        self.assertEqual(doc["status"], "Active")
        self.assertEqual(doc["goals"], ["Balance doshas"])
        self.assertEqual(len(doc["meals"]), 35)
        self.assertEqual(set(doc["meals"][0]), {"day", "mealType", "foods", "notes", "totalCalories"})
        self.assertEqual(
            set(doc["meals"][0]["foods"][0]),
            {"name", "quantity", "calories", "protein", "carbs", "fat", "fiber", "notes"},
        )


class TestDegradedPlans(unittest.TestCase):
    def test_duplicates_reported_exactly(self):
        plan = generate_week("Vata", catalog=tiny_catalog(), rng=random.Random(8))

        counts = Counter(f.name for m in plan.meals for f in m.foods)
        repeated = {name for name, n in counts.items() if n > 1}
        reported = {d["name"] for d in plan.metadata["duplicates_detected"]}

        self.assertTrue(repeated)
        self.assertEqual(reported, repeated)
        for entry in plan.metadata["duplicates_detected"]:
            self.assertEqual(entry["count"], counts[entry["name"]])
            self.assertEqual(len(entry["locations"]), entry["count"])
        self.assertTrue(plan.metadata["repeated_slots"])

    def test_unknown_dosha_gives_empty_plan(self):
        plan = generate_week("Fire")
        self.assertTrue(plan.is_empty)
        self.assertEqual(plan.meals, [])
        self.assertTrue(plan.metadata["empty"])

    def test_invalid_inputs_raise(self):
        with self.assertRaises(PlanValidationError):
            generate_week("Vata", season="Rainy")
        with self.assertRaises(PlanValidationError):
            generate_week("Vata", region="Central")
        with self.assertRaises(PlanValidationError):
            generate_week("Vata", targets={"calories": "lots"})

    def test_find_duplicate_names_on_clean_plan(self):
        plan = generate_week("Vata", catalog=tiny_catalog(per_slot=20), fast=True, rng=random.Random(1))
        self.assertEqual(find_duplicate_names(plan.meals), [])


class TestFillSlot(unittest.TestCase):
    def test_accepts_first_attempt_when_unique(self):
        used = set()
        result, attempts = fill_slot(
            "Vata", "All-Season", "Pan-India", "Lunch", [], used, 630,
            catalog=tiny_catalog(per_slot=6), rng=random.Random(1),
        )
        self.assertEqual(attempts, 1)
        self.assertFalse(result.had_to_repeat)
        self.assertEqual(used, {f.name for f in result.foods})

    def test_second_attempt_uses_related_slots(self):
        used = {"M dish 0"}
        result, attempts = fill_slot(
            "Vata", "All-Season", "Pan-India", "Mid-Morning Snack", [], used, 180,
            catalog=tiny_catalog(per_slot=1), rng=random.Random(1),
        )
        self.assertEqual(attempts, 2)
        self.assertFalse(result.had_to_repeat)
        self.assertTrue(result.widened)
        self.assertIn(result.foods[0].name, {"B dish 0", "E dish 0"})
        self.assertNotIn("M dish 0", [f.name for f in result.foods])

    def test_relaxes_on_last_attempt(self):
        catalog = tiny_catalog(per_slot=1)
        used = {"L dish 0"}
        result, attempts = fill_slot(
            "Vata", "All-Season", "Pan-India", "Lunch", [], used, 630,
            catalog=catalog, rng=random.Random(1), max_attempts=3,
        )
        self.assertEqual(attempts, 3)
        self.assertTrue(result.had_to_repeat)
        self.assertIn("L dish 0", [f.name for f in result.foods])


class TestPlanName(unittest.TestCase):
    def test_omits_defaults(self):
        on = date(2024, 1, 5)
        self.assertEqual(plan_name("Pitta", "Summer", "South", on), "Pitta Summer South Plan - 2024-01-05")
        self.assertEqual(plan_name("Vata", "All-Season", "Pan-India", on), "Vata Plan - 2024-01-05")


if __name__ == '__main__':
    unittest.main()
