import random
import unittest

from app.services.food_catalog import FoodCandidate, items_for_slot, load_food_catalog
from app.services.food_scorer import score
from app.services.meal_composer import compose_meal, rank_candidates, synthesize_bowl, top_band


def food(name, slot="Lunch", calories=300, **overrides):
    fields = dict(
        name=name,
        slots=frozenset({slot}),
        tastes=("Sweet",),
        virya="Neutral",
        digestibility="Light",
        qualities=frozenset({"cooked"}),
        diets=frozenset({"veg", "vegan", "jain"}),
        seasons=frozenset({"All-Season"}),
        calories=calories,
    )
    for key, value in overrides.items():
        fields[key] = frozenset(value) if isinstance(value, (set, list)) else value
    return FoodCandidate(**fields)


def compose(catalog, meal_type="Lunch", used=None, item_count=1, target=0, seed=1, **kwargs):
    kwargs.setdefault("dosha", "Vata")
    kwargs.setdefault("season", "All-Season")
    kwargs.setdefault("region", "Pan-India")
    kwargs.setdefault("allergies", [])
    return compose_meal(
        kwargs.pop("dosha"), kwargs.pop("season"), kwargs.pop("region"), meal_type,
        kwargs.pop("allergies"),
        used_names=set() if used is None else used,
        item_count=item_count,
        calorie_target=target,
        catalog=catalog,
        rng=random.Random(seed),
        **kwargs,
    )


class TestComposeMeal(unittest.TestCase):
    def test_picks_item_count_distinct_items(self):
        catalog = [food(f"Dish {i}") for i in range(12)]
        used = set()
        meal = compose(catalog, used=used, item_count=2, target=630)

        names = [f.name for f in meal.foods]
        self.assertEqual(len(names), 2)
        self.assertEqual(len(set(names)), 2)
        self.assertEqual(used, set(names))
        self.assertFalse(meal.had_to_repeat)
        self.assertEqual(meal.total_calories, 600)
        self.assertEqual(meal.foods[0].quantity, "1 generous serving")

    def test_extends_towards_calorie_target(self):
        catalog = [food(f"Light dish {i}", calories=100) for i in range(12)]
        meal = compose(catalog, item_count=2, target=630)

        # capped at item_count + 1
        self.assertEqual(len(meal.foods), 3)
        self.assertEqual(meal.total_calories, sum(f.calories for f in meal.foods))

    def test_skips_names_used_this_week(self):
        catalog = [food("Avial"), food("Kootu"), food("Thoran")]
        meal = compose(catalog, used={"Avial", "Kootu"})

        self.assertEqual([f.name for f in meal.foods], ["Thoran"])
        self.assertFalse(meal.had_to_repeat)

    def test_strict_mode_flags_exhausted_pool(self):
        catalog = [food("Avial"), food("Kootu")]
        meal = compose(catalog, used={"Avial", "Kootu"})

        self.assertTrue(meal.had_to_repeat)
        self.assertEqual([f.name for f in meal.foods], ["Lunch Bowl"])

    def test_relaxed_mode_reuses_names(self):
        catalog = [food("Avial"), food("Kootu")]
        meal = compose(catalog, used={"Avial", "Kootu"}, allow_repeats=True)

        self.assertTrue(meal.had_to_repeat)
        self.assertIn(meal.foods[0].name, {"Avial", "Kootu"})
        self.assertIn("Repeats a dish from earlier in the plan", meal.notes)

    def test_allergens_never_selected(self):
        catalog = [food(f"Paneer dish {i}", allergens={"dairy"}) for i in range(5)]
        catalog.append(food("Plain millet roti"))
        meal = compose(catalog, allergies=["Dairy"])

        self.assertEqual([f.name for f in meal.foods], ["Plain millet roti"])

    def test_diet_type_filter(self):
        catalog = [food("Paneer tikka", diets={"veg"}), food("Chana salad", diets={"veg", "vegan"})]
        meal = compose(catalog, diet_type="vegan")

        self.assertEqual([f.name for f in meal.foods], ["Chana salad"])

    def test_widens_to_related_slots(self):
        catalog = [food(f"Breakfast dish {i}", slot="Breakfast") for i in range(3)]
        meal = compose(catalog, meal_type="Mid-Morning Snack")

        self.assertTrue(meal.widened)
        self.assertTrue(meal.foods[0].name.startswith("Breakfast dish"))
        self.assertIn("Includes options from related meal times", meal.notes)

    def test_exhausted_slot_widens_only_on_request(self):
        catalog = [food("Upma", slot="Breakfast"), food("Sprouts chaat", slot="Mid-Morning Snack")]

        strict = compose(catalog, meal_type="Mid-Morning Snack", used={"Sprouts chaat"})
        self.assertFalse(strict.widened)
        self.assertTrue(strict.had_to_repeat)

        widened = compose(catalog, meal_type="Mid-Morning Snack", used={"Sprouts chaat"}, widen=True)
        self.assertTrue(widened.widened)
        self.assertFalse(widened.had_to_repeat)
        self.assertEqual([f.name for f in widened.foods], ["Upma"])

    def test_empty_pool_gives_bowl(self):
        meal = compose([], meal_type="Dinner", item_count=2, target=450)

        self.assertEqual(len(meal.foods), 1)
        self.assertEqual(meal.foods[0].name, "Dinner Bowl")
        self.assertEqual(meal.foods[0].calories, 295)
        self.assertFalse(meal.had_to_repeat)

    def test_bowl_respects_allergies(self):
        bowl = synthesize_bowl("Lunch", ["rice", "dairy"])

        self.assertEqual(bowl.calories, 105 + 60 + 110)
        self.assertNotIn("Basmati rice", bowl.notes)
        self.assertNotIn("Ghee", bowl.notes)

    def test_sampling_stays_in_top_band(self):
        good = [food(f"Cooling dish {i}", virya="Cooling", ingredients={"coconut"}) for i in range(10)]
        poor = [food(f"Fried dish {i}", virya="Heating", qualities={"fried", "spicy"}) for i in range(10)]
        good_names = {f.name for f in good}

        for seed in range(20):
            meal = compose(good + poor, seed=seed, dosha="Pitta", season="Summer")
            self.assertIn(meal.foods[0].name, good_names)

    def test_seeded_rng_is_reproducible(self):
        catalog = [food(f"Dish {i}") for i in range(20)]
        first = compose(catalog, item_count=2, target=630, seed=42)
        second = compose(catalog, item_count=2, target=630, seed=42)

        self.assertEqual([f.name for f in first.foods], [f.name for f in second.foods])


class TestRankCandidates(unittest.TestCase):
    def test_capped_scores_keep_their_order(self):
        args = ("Vata-Pitta", "Autumn", "South", "Lunch")
        ranked = rank_candidates(items_for_slot(load_food_catalog(), "Lunch"), *args, [])

        totals = [total for _, total, _ in ranked]
        self.assertEqual(totals, sorted(totals, reverse=True))

        capped = [total for s, total, _ in ranked if s == 100]
        self.assertGreater(len(capped), 1)
        self.assertGreater(len(set(capped)), 1)

        for s, _, item in ranked:
            self.assertEqual(s, score(item, *args))

    def test_vetoed_items_dropped(self):
        catalog = [food("Paneer curry", allergens={"dairy"}), food("Dal tadka")]
        ranked = rank_candidates(catalog, "Vata", "All-Season", "Pan-India", "Lunch", ["dairy"])
        self.assertEqual([item.name for _, _, item in ranked], ["Dal tadka"])


class TestTopBand(unittest.TestCase):
    def test_half_with_minimum(self):
        self.assertEqual(top_band(list(range(30)), 0.5, 10), list(range(15)))
        self.assertEqual(top_band(list(range(12)), 0.5, 10), list(range(10)))
        self.assertEqual(top_band(list(range(8)), 0.5, 10), list(range(8)))


if __name__ == '__main__':
    unittest.main()
