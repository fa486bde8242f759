from __future__ import annotations

import datetime as dt
import unittest
from decimal import Decimal

import numpy as np

from chartcraft.errors import ChartEngineError
from chartcraft.rows import coerce_number, column, normalize_rows, numeric_values, parse_date, pd, to_epoch_ms


class NormalizeRowsTests(unittest.TestCase):
    def test_rows_share_the_union_of_fields(self) -> None:
        rows = normalize_rows([{"a": 1}, {"b": 2, "a": 3}])
        self.assertEqual(rows, ({"a": 1, "b": None}, {"a": 3, "b": 2}))
        self.assertEqual(list(rows[0]), ["a", "b"])

    def test_non_sequence_input_is_rejected(self) -> None:
        for bad in ({"a": 1}, "rows", 42, [{"a": 1}, "b"]):
            with self.subTest(bad=bad):
                with self.assertRaises(ChartEngineError):
                    normalize_rows(bad)

    def test_empty_input_is_allowed(self) -> None:
        self.assertEqual(normalize_rows([]), ())

    @unittest.skipIf(pd is None, "pandas not installed")
    def test_dataframe_missing_values_become_none(self) -> None:
        frame = pd.DataFrame({"k": ["a", "b"], "v": [1.5, float("nan")]})
        rows = normalize_rows(frame)
        self.assertEqual(rows, ({"k": "a", "v": 1.5}, {"k": "b", "v": None}))
        self.assertIsInstance(rows[0]["v"], float)


class CoercionTests(unittest.TestCase):
    def test_numbers_and_numeric_strings_coerce(self) -> None:
        self.assertEqual(coerce_number(3), 3.0)
        self.assertEqual(coerce_number(" 2.5 "), 2.5)
        self.assertEqual(coerce_number(Decimal("1.25")), 1.25)
        self.assertEqual(coerce_number(np.int64(7)), 7.0)

    def test_non_numeric_values_coerce_to_none(self) -> None:
        for value in (None, True, "", "abc", float("nan"), float("inf"), [1]):
            with self.subTest(value=value):
                self.assertIsNone(coerce_number(value))

    def test_numeric_values_drops_the_rest(self) -> None:
        arr = numeric_values([1, "x", None, "3"])
        self.assertEqual(arr.tolist(), [1.0, 3.0])
        self.assertEqual(column([{"a": 1}, {}], "a"), [1, None])


class DateParsingTests(unittest.TestCase):
    def test_naive_values_are_treated_as_utc(self) -> None:
        self.assertEqual(parse_date("2020-03-01T12:00:00"), dt.datetime(2020, 3, 1, 12, tzinfo=dt.timezone.utc))
        self.assertEqual(parse_date(dt.date(2020, 3, 1)), dt.datetime(2020, 3, 1, tzinfo=dt.timezone.utc))

    def test_aware_values_keep_their_offset(self) -> None:
        parsed = parse_date("2020-03-01T12:00:00+02:00")
        self.assertEqual(to_epoch_ms(parsed), to_epoch_ms("2020-03-01T10:00:00"))

    def test_unparseable_values_give_none(self) -> None:
        for value in (None, False, "", "March", [2020], float("nan")):
            with self.subTest(value=value):
                self.assertIsNone(parse_date(value))


if __name__ == "__main__":
    unittest.main()
