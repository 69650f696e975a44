"""Unit tests for app.services.pagination."""

import unittest

from app.services.pagination import page_offset, paginate


class TestPaginate(unittest.TestCase):
    """Page counts, clamping and neighbours."""

    def test_empty_has_one_page(self) -> None:
        p = paginate(0, 10, 1)
        self.assertEqual(p.total_pages, 1)
        self.assertEqual(p.current_page, 1)
        self.assertIsNone(p.previous_page)
        self.assertIsNone(p.next_page)

    def test_middle_page(self) -> None:
        p = paginate(25, 10, 2)
        self.assertEqual(p.total_pages, 3)
        self.assertEqual(p.previous_page, 1)
        self.assertEqual(p.next_page, 3)
        self.assertEqual(page_offset(p), 10)

    def test_last_page(self) -> None:
        p = paginate(25, 10, 3)
        self.assertEqual(p.previous_page, 2)
        self.assertIsNone(p.next_page)

    def test_clamps_out_of_range(self) -> None:
        self.assertEqual(paginate(25, 10, 99).current_page, 3)
        self.assertEqual(paginate(25, 10, 0).current_page, 1)
        self.assertEqual(paginate(25, 10, -4).current_page, 1)

    def test_exact_multiple(self) -> None:
        self.assertEqual(paginate(20, 10, 1).total_pages, 2)

    def test_items_per_page_at_least_one(self) -> None:
        p = paginate(5, 0, 1)
        self.assertEqual(p.items_per_page, 1)
        self.assertEqual(p.total_pages, 5)


if __name__ == "__main__":
    unittest.main()
