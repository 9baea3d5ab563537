import os
import tempfile
import unittest

from liftplan.catalog import (
    ExerciseCatalog,
    calculate_overall_percentile,
    load_catalog,
    load_default_catalog,
    strength_level_name,
)
from liftplan.errors import CatalogError
from liftplan.models import CatalogEntry


class CatalogTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.catalog = load_default_catalog()

    def test_default_catalog_resolves_primary_lifts(self):
        for exercise_id in ["squat", "bench-press", "deadlift", "overhead-press"]:
            self.assertIn(exercise_id, self.catalog)
        self.assertEqual(self.catalog.get_by_id("squat").name, "Back Squat")
        self.assertIsNone(self.catalog.get_by_id("mystery-move"))

    def test_percentile_gates_tiers(self):
        ids_at_40 = {e.id for e in self.catalog.list_by_percentile(40)}
        self.assertIn("front-squat", ids_at_40)
        self.assertNotIn("deficit-deadlift", ids_at_40)

        ids_at_50 = {e.id for e in self.catalog.list_by_percentile(50)}
        self.assertIn("deficit-deadlift", ids_at_50)

    def test_elite_tier_opens_at_75(self):
        self.assertNotIn("handstand-push-up", {e.id for e in self.catalog.list_by_percentile(74)})
        self.assertIn("handstand-push-up", {e.id for e in self.catalog.list_by_percentile(75)})
        self.assertNotIn("muscle-up", {e.id for e in self.catalog.list_by_percentile(89)})

    def test_equipment_and_muscle_filter_keep_catalog_order(self):
        entries = self.catalog.list_by_percentile_and_equipment(100, ["barbell"], ["legs"])
        self.assertEqual([e.id for e in entries[:3]], ["squat", "deadlift", "front-squat"])
        for entry in entries:
            self.assertIn("barbell", entry.equipment)
            self.assertIn("legs", entry.primary_muscles)

    def test_empty_equipment_matches_nothing(self):
        self.assertEqual(self.catalog.list_by_percentile_and_equipment(100, []), [])

    def test_overall_percentile_defaults_to_50(self):
        self.assertEqual(calculate_overall_percentile([]), 50)
        self.assertEqual(calculate_overall_percentile([0, 0]), 50)
        self.assertEqual(calculate_overall_percentile(None), 50)

    def test_overall_percentile_averages_positive_rankings(self):
        self.assertEqual(calculate_overall_percentile([40, 0, 61]), 51)
        self.assertEqual(calculate_overall_percentile([30]), 30)

    def test_strength_level_names(self):
        self.assertEqual(strength_level_name(95), "God")
        self.assertEqual(strength_level_name(75), "Elite")
        self.assertEqual(strength_level_name(50), "Advanced")
        self.assertEqual(strength_level_name(40), "Intermediate")
        self.assertEqual(strength_level_name(10), "Beginner")
        self.assertEqual(strength_level_name(5), "Untrained")

    def test_custom_exercises_resolve_in_merged_catalog_only(self):
        custom = CatalogEntry(
            id="sled-push",
            name="Sled Push",
            category="compound",
            primary_muscles=["legs"],
            equipment=["machine"],
            is_custom=True,
        )
        merged = self.catalog.with_custom_exercises([custom])
        self.assertIn("sled-push", merged)
        self.assertNotIn("sled-push", self.catalog)
        self.assertIs(self.catalog.with_custom_exercises([]), self.catalog)

    def test_duplicate_ids_keep_first_entry(self):
        first = CatalogEntry(id="row", name="First", category="compound", primary_muscles=["back"])
        second = CatalogEntry(id="row", name="Second", category="compound", primary_muscles=["back"])
        catalog = ExerciseCatalog([first, second])
        self.assertEqual(catalog.get_by_id("row").name, "First")


class LoadCatalogTests(unittest.TestCase):
    def test_missing_file_raises(self):
        with self.assertRaises(CatalogError):
            load_catalog("/nonexistent/exercises.yaml")

    def test_invalid_yaml_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "exercises.yaml")
            with open(path, "w") as f:
                f.write("exercises: [unclosed\n")
            with self.assertRaises(CatalogError):
                load_catalog(path)

    def test_entry_without_id_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "exercises.yaml")
            with open(path, "w") as f:
                f.write("exercises:\n  - name: Nameless\n")
            with self.assertRaises(CatalogError):
                load_catalog(path)

    def test_loads_camel_case_fields(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "exercises.yaml")
            with open(path, "w") as f:
                f.write(
                    "exercises:\n"
                    "  - id: sled-push\n"
                    "    name: Sled Push\n"
                    "    category: compound\n"
                    "    primaryMuscles: [legs]\n"
                    "    equipment: [machine]\n"
                    "    themeLevel: intermediate\n"
                )
            catalog = load_catalog(path)
            entry = catalog.get_by_id("sled-push")
            self.assertEqual(entry.primary_muscles, ["legs"])
            self.assertEqual(entry.tier, "intermediate")


if __name__ == "__main__":
    unittest.main()
