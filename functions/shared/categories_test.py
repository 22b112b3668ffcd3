# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import unittest

from shared.categories import build_category_rules, determine_category


class CategoriesTest(unittest.TestCase):

    def setUp(self):
        self.categories = [
            ("portfolio/", "cat-portfolio"),
            ("misc/", "cat-misc"),
            ("portfolio/bedrooms/", "cat-bedrooms"),
            ("hero/", "cat-hero"),
        ]

    def test_longest_folder_wins(self):
        rules = build_category_rules(self.categories)
        self.assertEqual(
            determine_category("portfolio/bedrooms/ANU ROOM 1.jpg", rules),
            "cat-bedrooms",
        )
        self.assertEqual(
            determine_category("portfolio/kitchen.jpg", rules), "cat-portfolio"
        )

    def test_matching_is_case_insensitive(self):
        rules = build_category_rules(self.categories)
        self.assertEqual(determine_category("HERO/Banner.png", rules), "cat-hero")

    def test_input_order_does_not_matter(self):
        forward = build_category_rules(self.categories)
        backward = build_category_rules(list(reversed(self.categories)))
        self.assertEqual(forward, backward)

    def test_falls_back_to_misc(self):
        rules = build_category_rules(self.categories)
        self.assertEqual(determine_category("random/photo.jpg", rules), "cat-misc")

    def test_no_fallback_returns_none(self):
        rules = build_category_rules([("hero/", "cat-hero")])
        self.assertIsNone(determine_category("random/photo.jpg", rules))
        self.assertIsNone(determine_category("x.jpg", build_category_rules([])))


if __name__ == "__main__":
    unittest.main()
