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

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

MISC_FOLDER_PATH = "misc/"


@dataclass(frozen=True)
class CategoryRule:
    """Maps keys containing ``needle`` (lower-case) to ``category_id``."""

    needle: str
    category_id: str


@dataclass(frozen=True)
class CategoryRules:
    rules: Tuple[CategoryRule, ...]
    fallback_id: Optional[str] = None


def _needle(folder_path: str) -> str:
    return folder_path.strip().strip("/").lower()


def build_category_rules(
    categories: Iterable[Tuple[str, str]],
) -> CategoryRules:
    """
    Builds the ordered rule list for one sync run.

    Args:
        categories: (folder_path, category_id) pairs for active categories,
            in any order.

    Returns:
        CategoryRules: Longest needle first, ties alphabetical, so the same
            categories always produce the same mapping. The ``misc/``
            category, if present, becomes the fallback.
    """
    rules = []
    fallback_id = None
    for folder_path, category_id in categories:
        if folder_path == MISC_FOLDER_PATH and fallback_id is None:
            fallback_id = category_id
        needle = _needle(folder_path)
        if needle:
            rules.append(CategoryRule(needle=needle, category_id=category_id))
    rules.sort(key=lambda rule: (-len(rule.needle), rule.needle, rule.category_id))
    return CategoryRules(rules=tuple(rules), fallback_id=fallback_id)


def determine_category(key: str, rules: CategoryRules) -> Optional[str]:
    """Returns the category id for a storage key, or the fallback."""
    lowered = key.lower()
    for rule in rules.rules:
        if rule.needle in lowered:
            return rule.category_id
    return rules.fallback_id
