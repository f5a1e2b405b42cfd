import unittest
from dataclasses import dataclass
from datetime import date, datetime

from utils.textnorm import filter_records, flatten, matches, normalize_text, searchable_text


@dataclass
class Row:
    name: str
    address: str
    cod: float


class NormalizeTestCase(unittest.TestCase):
    SAMPLES = [
        "Muhammad  Ali\tKhan",
        "مُحَمَّد عَلی",
        "يك كتاب",
        "‏لاہور‎ ١٢٣",
        "گلی نمبر ۴۵، کراچی",
        "ـــسلامـــ",
        "ＡＢＣ １２",
        "",
        "e\u200d\u0301",
        "\u0627\u200c\u0653",
        "\ufe70\u0627",
        "\u0130stanbul",
    ]

    def test_idempotent(self):
        for text in self.SAMPLES:
            once = normalize_text(text)
            self.assertEqual(normalize_text(once), once, text)

    def test_arabic_letter_variants_match_urdu(self):
        self.assertEqual(normalize_text("يك"), normalize_text("یک"))
        self.assertEqual(normalize_text("ى"), normalize_text("ی"))

    def test_digit_sets_match_ascii(self):
        self.assertEqual(normalize_text("١٢٣"), normalize_text("123"))
        self.assertEqual(normalize_text("۱۲۳"), "123")

    def test_strips_marks_tatweel_and_bidi_controls(self):
        self.assertEqual(normalize_text("مُحَمَّد"), "محمد")
        self.assertEqual(normalize_text("\u0633\u0644\u0640\u0640\u0640\u0627\u0645"), "\u0633\u0644\u0627\u0645")
        self.assertEqual(normalize_text("\u202b\u0639\u0644\u06cc\u202c\u200c"), "\u0639\u0644\u06cc")

    def test_removed_control_lets_letter_and_mark_compose(self):
        self.assertEqual(normalize_text("e\u200d\u0301"), "\u00e9")
        self.assertEqual(normalize_text("\u0627\u200c\u0653"), "\u0627")

    def test_collapses_whitespace_and_lowercases(self):
        self.assertEqual(normalize_text("  Model\n X-200  "), "model x-200")
        self.assertEqual(normalize_text("ＡＢＣ"), "abc")


class FlattenTestCase(unittest.TestCase):
    def test_nested_values(self):
        value = {
            "name": "Ali",
            "tags": ["vip", None, 3],
            "when": date(2026, 10, 1),
            "at": datetime(2026, 10, 1, 9, 30),
            "nested": {"amount": 250.0, "ratio": 0.5},
        }
        self.assertEqual(
            flatten(value),
            ["Ali", "vip", "3", "2026-10-01", "2026-10-01T09:30:00", "250", "0.5"],
        )

    def test_keys_are_ignored(self):
        self.assertFalse(matches("address", {"address": "Lahore"}))
        self.assertTrue(matches("lahore", {"address": "Lahore"}))

    def test_dataclass_fields(self):
        self.assertEqual(searchable_text(Row("Ali", "Multan", 1500.0)), "ali multan 1500")


class FilterTestCase(unittest.TestCase):
    def setUp(self):
        self.rows = [
            Row("محمد یوسف", "گلی ۱۲ لاہور", 1200.0),
            Row("Ali Raza", "Karachi", 900.0),
            Row("علی", "ملتان", 300.0),
            Row("Yousaf Ali", "Lahore 12", 450.0),
        ]

    def test_empty_query_keeps_everything_in_order(self):
        self.assertEqual(filter_records(self.rows, "   "), self.rows)

    def test_arabic_keyboard_finds_urdu_record(self):
        # Arabic yeh and kaf typed for Urdu letters
        self.assertEqual(filter_records(self.rows, "يوسف"), [self.rows[0]])

    def test_digits_in_either_script_match_and_order_is_stable(self):
        self.assertEqual(filter_records(self.rows, "12"), [self.rows[0], self.rows[3]])
        self.assertEqual(filter_records(self.rows, "١٢"), [self.rows[0], self.rows[3]])

    def test_case_insensitive_substring(self):
        self.assertEqual(filter_records(self.rows, "ALI"), [self.rows[1], self.rows[3]])


if __name__ == "__main__":
    unittest.main()
