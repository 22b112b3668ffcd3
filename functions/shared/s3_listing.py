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

import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple
from xml.sax.saxutils import unescape

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")

# Tag scans rather than a real XML parser: truncated or malformed bodies
# still give back every complete element.
_KEY_RE = re.compile(r"<Key>([^<]*)</Key>")
_CONTENTS_RE = re.compile(r"<Contents>(.*?)</Contents>", re.DOTALL)
_SIZE_RE = re.compile(r"<Size>\s*(\d+)\s*</Size>")
_TRUNCATED_RE = re.compile(r"<IsTruncated>\s*true\s*</IsTruncated>")
_TOKEN_RE = re.compile(r"<NextContinuationToken>([^<]*)</NextContinuationToken>")

_ENTITIES = {"&quot;": '"', "&apos;": "'"}


@dataclass
class StorageObject:
    """One image object from a bucket listing."""

    key: str
    size: Optional[int] = None

    @property
    def original_name(self) -> str:
        return self.key.rsplit("/", 1)[-1] or self.key


@dataclass
class ListingPage:
    """Image objects from one ListObjectsV2 response plus paging state."""

    objects: List[StorageObject] = field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None


def is_image_key(key: str) -> bool:
    """Case-sensitive suffix check, so ``photo.PNG`` is not an image."""
    return bool(key) and key.endswith(IMAGE_EXTENSIONS)


def _image_key_matches(xml: str) -> Iterator[Tuple[re.Match, str]]:
    for match in _KEY_RE.finditer(xml):
        key = unescape(match.group(1), _ENTITIES)
        if is_image_key(key):
            yield match, key


def parse_keys_from_xml(xml: str) -> List[str]:
    """
    Extracts image keys from a bucket listing body.

    Args:
        xml (str): The raw response body. May be empty or truncated.

    Returns:
        List[str]: Image keys in document order. Never raises on bad input.
    """
    if not xml:
        return []
    return [key for _, key in _image_key_matches(xml)]


def parse_listing(xml: str) -> ListingPage:
    """
    Extracts image objects with sizes and the continuation token.

    Every complete ``<Key>`` pair becomes an object, the same as
    ``parse_keys_from_xml``. ``size`` is only filled in when the key sits
    inside a closed ``<Contents>`` block.

    Args:
        xml (str): The raw ListObjectsV2 response body.

    Returns:
        ListingPage: Image objects in document order plus paging state.
    """
    page = ListingPage()
    if not xml:
        return page

    blocks = [(m.start(), m.end(), m.group(1)) for m in _CONTENTS_RE.finditer(xml)]
    block_index = 0
    for match, key in _image_key_matches(xml):
        while block_index < len(blocks) and blocks[block_index][1] <= match.start():
            block_index += 1
        size = None
        if block_index < len(blocks):
            start, end, body = blocks[block_index]
            if start <= match.start() and match.end() <= end:
                size_match = _SIZE_RE.search(body)
                if size_match:
                    size = int(size_match.group(1))
        page.objects.append(StorageObject(key=key, size=size))

    page.is_truncated = bool(_TRUNCATED_RE.search(xml))
    token_match = _TOKEN_RE.search(xml)
    if page.is_truncated and token_match:
        page.next_continuation_token = unescape(token_match.group(1), _ENTITIES)
    return page
