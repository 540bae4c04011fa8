import json
import unittest
from unittest import mock

import numpy as np

from survey_pipeline import (
    SECTIONS,
    SectionResult,
    SubmissionError,
    SurveyConfig,
    evaluate_section,
    evaluate_submission,
    parse_submission,
    results_to_dict,
    round_half_up,
)


def rec(left, right, ratio):
    return {"left": left, "right": right, "ahp_ratio_aij": ratio}


SAMPLE = {
    "meta": {"name": "Chen", "org": "NTU", "field": "ESG", "years": 12},
    "comparisons": {
        "dimensions": [rec("A", "B", 2), rec("A", "C", 4), rec("B", "C", 2)],
        "A": [rec("A1", "A2", 3)],
        "B": [rec("B1", "B2", 9), rec("B2", "B3", 9), rec("B3", "B1", 9)],
        "C": [],
    },
}


class TestEvaluateSection(unittest.TestCase):
    def test_consistent_three_items(self):
        res = evaluate_section("dimensions", SAMPLE["comparisons"]["dimensions"])
        self.assertEqual(res.n, 3)
        self.assertEqual(res.weights, {"A": 0.5714, "B": 0.2857, "C": 0.1429})
        self.assertEqual(res.lambda_max, 3.0)
        self.assertEqual(res.ci, 0.0)
        self.assertEqual(res.cr, 0.0)
        self.assertTrue(res.consistent)

    def test_two_items(self):
        res = evaluate_section("A", [rec("A", "B", 3)])
        self.assertEqual(res.weights, {"A": 0.75, "B": 0.25})
        self.assertEqual(res.cr, 0.0)
        self.assertTrue(res.consistent)

    def test_four_items_consistent(self):
        records = [
            rec("A", "B", 2), rec("A", "C", 4), rec("A", "D", 8),
            rec("B", "C", 2), rec("B", "D", 4), rec("C", "D", 2),
        ]
        res = evaluate_section("dimensions", records)
        self.assertEqual(res.weights, {"A": 0.5333, "B": 0.2667, "C": 0.1333, "D": 0.0667})
        self.assertEqual(res.lambda_max, 4.0)
        self.assertTrue(res.consistent)

    def test_zero_ratio_defaults_cell(self):
        res = evaluate_section("A", [rec("A", "B", 0)])
        self.assertEqual(res.n, 2)
        self.assertEqual(res.weights, {"A": 0.5, "B": 0.5})

    def test_inconsistent(self):
        res = evaluate_section("B", SAMPLE["comparisons"]["B"])
        self.assertEqual(res.weights, {"B1": 0.3333, "B2": 0.3333, "B3": 0.3333})
        self.assertEqual(res.lambda_max, 10.1111)
        self.assertEqual(res.ci, 3.5556)
        self.assertEqual(res.cr, 6.1303)
        self.assertFalse(res.consistent)

    def test_order_independent(self):
        records = [rec("A", "B", 3), rec("C", "A", 2), rec("B", "D", 5), rec("D", "C", 1 / 3)]
        self.assertEqual(evaluate_section("A", records), evaluate_section("A", list(reversed(records))))

    def test_empty_section(self):
        self.assertIsNone(evaluate_section("A", []))
        self.assertIsNone(evaluate_section("A", None))

    def test_rounding_respects_config(self):
        res = evaluate_section("dimensions", SAMPLE["comparisons"]["dimensions"], SurveyConfig(decimals=2))
        self.assertEqual(res.weights, {"A": 0.57, "B": 0.29, "C": 0.14})

    def test_to_dict(self):
        res = evaluate_section("A", [rec("A", "B", 3)])
        d = res.to_dict()
        self.assertEqual(
            d,
            {"n": 2, "weights": {"A": 0.75, "B": 0.25}, "lambdaMax": 2.0, "CI": 0.0, "CR": 0.0, "consistent": True},
        )
        self.assertIs(type(d["weights"]), dict)

    def test_subnormal_ratio_discarded(self):
        res = evaluate_section("A", [rec("A", "B", 1e-320)])
        self.assertEqual(res.weights, {"A": 0.5, "B": 0.5})
        self.assertTrue(res.consistent)

    def test_ties_round_half_up(self):
        with mock.patch("survey_pipeline.ahp_weights", return_value=np.array([31 / 32, 1 / 32])):
            res = evaluate_section("A", [rec("A", "B", 31)])
        self.assertEqual(res.weights, {"A": 0.9688, "B": 0.0313})

    def test_round_half_up(self):
        self.assertEqual(round_half_up(0.03125, 4), 0.0313)
        self.assertEqual(round_half_up(0.09375, 4), 0.0938)
        self.assertEqual(round_half_up(0.125, 2), 0.13)
        self.assertEqual(round_half_up(2.5, 0), 3.0)
        self.assertEqual(round_half_up(-2.5, 0), -2.0)
        self.assertEqual(round_half_up(0.57142857, 4), 0.5714)

    def test_result_is_read_only(self):
        res = evaluate_section("A", [rec("A", "B", 3)])
        with self.assertRaises(TypeError):
            res.weights["A"] = 1.0
        sub = parse_submission(SAMPLE)
        with self.assertRaises(TypeError):
            sub.meta["name"] = "other"
        with self.assertRaises(TypeError):
            sub.comparisons["E"] = []


class TestEvaluateSubmission(unittest.TestCase):
    def test_sections_present_only(self):
        results = evaluate_submission(SAMPLE)
        self.assertEqual(list(results), ["dimensions", "A", "B"])
        for res in results.values():
            self.assertIsInstance(res, SectionResult)

    def test_idempotent(self):
        self.assertEqual(evaluate_submission(SAMPLE), evaluate_submission(SAMPLE))

    def test_json_input(self):
        self.assertEqual(evaluate_submission(json.dumps(SAMPLE)), evaluate_submission(SAMPLE))

    def test_unknown_sections_ignored(self):
        data = {"comparisons": {"E": [rec("E1", "E2", 2)], "A": [rec("A1", "A2", 2)]}}
        self.assertEqual(list(evaluate_submission(data)), ["A"])

    def test_configured_sections(self):
        data = {"comparisons": {"E": [rec("E1", "E2", 2)], "A": [rec("A1", "A2", 2)]}}
        results = evaluate_submission(data, SurveyConfig(sections=("E",)))
        self.assertEqual(list(results), ["E"])

    def test_section_not_a_list_is_skipped(self):
        data = {"comparisons": {"dimensions": {"left": "A"}, "A": [rec("A1", "A2", 2)]}}
        with self.assertLogs("survey_pipeline", level="WARNING"):
            results = evaluate_submission(data)
        self.assertEqual(list(results), ["A"])

    def test_missing_comparisons_is_fatal(self):
        with self.assertRaises(SubmissionError):
            evaluate_submission({"meta": {"name": "x"}})

    def test_malformed_inputs(self):
        for bad in ("{not json", "[1, 2]", [1, 2], {"comparisons": [1]}, {"comparisons": {}, "meta": "x"}):
            with self.assertRaises(SubmissionError):
                evaluate_submission(bad)

    def test_submission_error_is_value_error(self):
        self.assertTrue(issubclass(SubmissionError, ValueError))

    def test_parse_submission_defaults_meta(self):
        sub = parse_submission({"comparisons": {}})
        self.assertEqual(sub.meta, {})
        self.assertEqual(evaluate_submission(sub), {})

    def test_results_to_dict(self):
        d = results_to_dict(evaluate_submission(SAMPLE))
        self.assertEqual(set(d), {"dimensions", "A", "B"})
        self.assertEqual(d["A"]["weights"], {"A1": 0.75, "A2": 0.25})
        json.dumps(d)

    def test_default_sections(self):
        self.assertEqual(SECTIONS, ("dimensions", "A", "B", "C", "D"))


if __name__ == "__main__":
    unittest.main()
