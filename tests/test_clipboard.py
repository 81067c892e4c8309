import unittest
from decimal import Decimal

from querygrid.clipboard import copy_cells, display_text, parse_clipboard_text, plan_paste


class DisplayTextTests(unittest.TestCase):
    def test_values(self):
        self.assertEqual(display_text(None), "")
        self.assertEqual(display_text(True), "true")
        self.assertEqual(display_text(2.0), "2")
        self.assertEqual(display_text(Decimal("1.50")), "1.50")
        self.assertEqual(display_text(float("nan")), "")
        self.assertEqual(display_text({"a": 1}), '{"a": 1}')
        self.assertEqual(display_text("x"), "x")


class CopyTests(unittest.TestCase):
    def test_rectangle_as_tsv(self):
        grid = [[1, "a", None], [2, "b", "c"]]
        text = copy_cells([(1, 2), (0, 0), (0, 1), (1, 0), (1, 1), (0, 2)], lambda r, c: grid[r][c])
        self.assertEqual(text, "1\ta\t\n2\tb\tc")

    def test_sparse_selection_leaves_holes(self):
        grid = [[1, "a"], [2, "b"]]
        text = copy_cells([(0, 0), (1, 1)], lambda r, c: grid[r][c])
        self.assertEqual(text, "1\t\n\tb")

    def test_empty(self):
        self.assertEqual(copy_cells([], lambda r, c: None), "")


class PasteTests(unittest.TestCase):
    def test_parse_prefers_tabs_then_commas(self):
        self.assertEqual(
            parse_clipboard_text("a\tb, c\r\n\nx, y\nsolo\n"),
            [["a", "b, c"], ["x", "y"], ["solo"]],
        )

    def test_single_value_fills_selection(self):
        selected = [(0, 0), (0, 1), (3, 2)]
        self.assertEqual(plan_paste([["v"]], selected), {cell: "v" for cell in selected})

    def test_single_blank_value_means_null(self):
        self.assertEqual(plan_paste([[" "]], [(0, 0)]), {(0, 0): None})

    def test_grid_maps_from_top_left_of_selection(self):
        selected = [(2, 1), (2, 2), (3, 1), (3, 2), (4, 1)]
        grid = [["a", "b"], ["c", ""]]
        self.assertEqual(
            plan_paste(grid, selected),
            {(2, 1): "a", (2, 2): "b", (3, 1): "c"},
        )

    def test_nothing_to_paste(self):
        self.assertEqual(plan_paste([], [(0, 0)]), {})
        self.assertEqual(plan_paste([["a"]], []), {})


if __name__ == "__main__":
    unittest.main()
