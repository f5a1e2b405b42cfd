import unittest

from utils.pure import format_money, generate_markdown_table, paginate, parse_number, percent_label


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        table = generate_markdown_table(["Name", "Address"], [["Ali", "House 4 | Block B"], ["Sara", None]], ["l", "r"])
        self.assertEqual(
            table.splitlines(),
            [
                "| Name | Address |",
                "| :--- | ---: |",
                "| Ali | House 4 \\| Block B |",
                "| Sara | - |",
            ],
        )

    def test_markdown_table_first_row_as_header(self):
        table = generate_markdown_table(None, [["A", "B"], [1, 2]])
        self.assertTrue(table.startswith("| A | B |\n| :---: | :---: |"))
        self.assertEqual(generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [[1, 2]], ["l"])

    def test_format_money(self):
        self.assertEqual(format_money(1234.5), "Rs. 1,234.50")
        self.assertEqual(format_money(None), "Rs. 0.00")

    def test_percent_label(self):
        self.assertEqual(percent_label(1, 3), "33.3%")
        self.assertEqual(percent_label(50, 200), "25.0%")
        self.assertEqual(percent_label(10, 0), "0.0%")

    def test_paginate(self):
        items = list(range(23))
        self.assertEqual(paginate(items, 1, 10), (list(range(10)), 3))
        self.assertEqual(paginate(items, 3, 10), ([20, 21, 22], 3))
        # out of range pages are clamped
        self.assertEqual(paginate(items, 9, 10)[0], [20, 21, 22])
        self.assertEqual(paginate([], 1, 10), ([], 1))

    def test_parse_number(self):
        self.assertEqual(parse_number(" 1,500 "), 1500.0)
        self.assertIsNone(parse_number("abc"))
        self.assertEqual(parse_number("", 0), 0)


if __name__ == "__main__":
    unittest.main()
