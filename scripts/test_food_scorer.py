import unittest

from app.services.food_catalog import FoodCandidate, load_food_catalog
from app.services.food_scorer import (
    dosha_score,
    region_score,
    score,
    season_score,
)


def make_item(name="Test dish", **overrides):
    fields = dict(
        name=name,
        slots=frozenset({"Lunch"}),
        tastes=("Sweet",),
        virya="Neutral",
        digestibility="Moderate",
        diets=frozenset({"veg", "vegan", "jain"}),
        seasons=frozenset({"All-Season"}),
        calories=200,
    )
    for key, value in overrides.items():
        if isinstance(value, (set, list)):
            value = frozenset(value)
        fields[key] = value
    return FoodCandidate(**fields)


class TestAllergenVeto(unittest.TestCase):
    def test_allergen_tag_forces_zero(self):
        item = make_item("Paneer curry", allergens={"dairy"})
        self.assertEqual(score(item, "Vata", "All-Season", "Pan-India", "Lunch", ["dairy"]), 0)
        self.assertGreater(score(item, "Vata", "All-Season", "Pan-India", "Lunch", []), 0)

    def test_name_and_ingredient_match(self):
        chikki = make_item("Peanut chikki")
        kurma = make_item("Vegetable kurma", ingredients={"cashews", "coconut"})
        self.assertEqual(score(chikki, "Pitta", "Summer", "South", "Lunch", ["PEANUT"]), 0)
        self.assertEqual(score(kurma, "Pitta", "Summer", "South", "Lunch", ["cashew"]), 0)

    def test_alias(self):
        lassi = make_item("Sweet lassi", allergens={"dairy"})
        self.assertEqual(score(lassi, "Kapha", "Winter", "North", "Lunch", ["milk"]), 0)

    def test_veto_dominates_best_possible_item(self):
        item = make_item(
            "Ginger tea", tastes=("Pungent",), virya="Heating", digestibility="Light",
            qualities={"warm", "spicy"}, ingredients={"ginger", "honey"}, allergens={"honey"},
        )
        self.assertEqual(score(item, "Kapha", "Winter", "North", "Breakfast", ["honey"]), 0)

    def test_non_allergenic_items_never_zero(self):
        worst = make_item(
            "Fried chili fritter", tastes=("Sour",), virya="Heating", digestibility="Heavy",
            qualities={"fried", "spicy", "oily"},
        )
        self.assertGreaterEqual(score(worst, "Pitta", "Summer", "North", "Dinner"), 1)


class TestSubScores(unittest.TestCase):
    def test_combined_dosha_sums_primaries(self):
        rice = make_item("Plain rice", ingredients={"rice"})
        self.assertEqual(dosha_score(rice, "Vata"), 12)
        self.assertEqual(dosha_score(rice, "Pitta"), 18)
        self.assertEqual(dosha_score(rice, "Vata-Pitta"), 30)

    def test_all_season_is_flat(self):
        cooling = make_item(virya="Cooling", ingredients={"cucumber"})
        heating = make_item(virya="Heating", qualities={"spicy"})
        self.assertEqual(season_score(cooling, "All-Season"), season_score(heating, "All-Season"))

    def test_summer_rewards_cooling(self):
        cooling = make_item(virya="Cooling")
        heating = make_item(virya="Heating")
        self.assertEqual(season_score(cooling, "Summer"), 25)
        self.assertLess(season_score(heating, "Summer"), 0)
        self.assertGreater(
            score(cooling, "Pitta", "Summer", "Pan-India", "Lunch"),
            score(heating, "Pitta", "Summer", "Pan-India", "Lunch"),
        )

    def test_region_tiers(self):
        specialty = make_item(regions={"South"}, region_role="specialty")
        staple = make_item(regions={"South"}, region_role="staple")
        overlap = make_item(ingredients={"curry leaves"})
        generic = make_item(ingredients={"quinoa"})
        self.assertEqual(region_score(specialty, "South"), 20)
        self.assertEqual(region_score(staple, "South"), 15)
        self.assertEqual(region_score(overlap, "South"), 8)
        self.assertEqual(region_score(generic, "South"), 0)
        self.assertEqual(region_score(generic, "Pan-India"), region_score(specialty, "Pan-India"))


class TestCatalogScores(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.catalog = load_food_catalog()
        cls.by_name = {item.name: item for item in cls.catalog}

    def test_scores_in_range(self):
        for dosha, season, region in [("Vata", "All-Season", "Pan-India"),
                                      ("Pitta-Kapha", "Summer", "South"),
                                      ("Kapha", "Monsoon", "East")]:
            for item in self.catalog:
                s = score(item, dosha, season, region, "Dinner")
                self.assertGreaterEqual(s, 1)
                self.assertLessEqual(s, 100)

    def test_kapha_winter_prefers_warming(self):
        tea = self.by_name["Ginger tulsi tea"]
        cooler = self.by_name["Cucumber mint cooler"]
        args = ("Kapha", "Winter", "North", "Evening Snack", ["dairy"])
        self.assertGreater(score(tea, *args), score(cooler, *args))

        dinner = ("Kapha", "Winter", "North", "Dinner")
        heating = [score(i, *dinner) for i in self.catalog if i.virya == "Heating"]
        cooling = [score(i, *dinner) for i in self.catalog if i.virya == "Cooling"]
        self.assertGreater(sum(heating) / len(heating), sum(cooling) / len(cooling))


if __name__ == '__main__':
    unittest.main()
