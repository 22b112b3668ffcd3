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

from shared.s3_listing import is_image_key, parse_keys_from_xml, parse_listing

LISTING = """<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>remap-images</Name>
  <KeyCount>4</KeyCount>
  <IsTruncated>true</IsTruncated>
  <NextContinuationToken>1ueGcxLPRx1Tr/XYExHnhbYLgveDs2J/wm36Hy4vbOwM=</NextContinuationToken>
  <Contents>
    <Key>portfolio/bedrooms/ANU ROOM 1.jpg</Key>
    <LastModified>2024-01-10T08:00:00.000Z</LastModified>
    <Size>204800</Size>
  </Contents>
  <Contents>
    <Key>portfolio/notes.txt</Key>
    <Size>12</Size>
  </Contents>
  <Contents>
    <Key>hero/R&amp;D.webp</Key>
    <Size>4096</Size>
  </Contents>
  <Contents>
    <Key>hero/banner.png</Key>
  </Contents>
</ListBucketResult>
"""


class ParseKeysFromXmlTest(unittest.TestCase):

    def test_filters_by_case_sensitive_extension(self):
        xml = "<Key>a.jpg</Key><Key>b.txt</Key><Key>c.PNG</Key>"
        self.assertEqual(parse_keys_from_xml(xml), ["a.jpg"])

    def test_truncated_input_returns_empty(self):
        self.assertEqual(parse_keys_from_xml("<Key>a.jpg<"), [])

    def test_empty_input_returns_empty(self):
        self.assertEqual(parse_keys_from_xml(""), [])

    def test_keeps_complete_pairs_before_truncation(self):
        xml = "<Key>one.jpeg</Key><Key>two.webp</Key><Key>three.png</K"
        self.assertEqual(parse_keys_from_xml(xml), ["one.jpeg", "two.webp"])

    def test_document_order_and_entities(self):
        self.assertEqual(
            parse_keys_from_xml(LISTING),
            ["portfolio/bedrooms/ANU ROOM 1.jpg", "hero/R&D.webp", "hero/banner.png"],
        )

    def test_not_xml_at_all(self):
        self.assertEqual(parse_keys_from_xml("Access Denied"), [])


class ParseListingTest(unittest.TestCase):

    def test_objects_sizes_and_token(self):
        page = parse_listing(LISTING)
        self.assertEqual(
            [(o.key, o.size) for o in page.objects],
            [
                ("portfolio/bedrooms/ANU ROOM 1.jpg", 204800),
                ("hero/R&D.webp", 4096),
                ("hero/banner.png", None),
            ],
        )
        self.assertTrue(page.is_truncated)
        self.assertEqual(
            page.next_continuation_token,
            "1ueGcxLPRx1Tr/XYExHnhbYLgveDs2J/wm36Hy4vbOwM=",
        )
        self.assertEqual(page.objects[0].original_name, "ANU ROOM 1.jpg")

    def test_last_page_has_no_token(self):
        xml = (
            "<ListBucketResult><IsTruncated>false</IsTruncated>"
            "<Contents><Key>a.png</Key><Size>1</Size></Contents>"
            "</ListBucketResult>"
        )
        page = parse_listing(xml)
        self.assertFalse(page.is_truncated)
        self.assertIsNone(page.next_continuation_token)
        self.assertEqual([o.key for o in page.objects], ["a.png"])

    def test_truncated_body_keeps_trailing_complete_key(self):
        xml = (
            "<ListBucketResult><Contents><Key>a.jpg</Key><Size>1</Size></Contents>"
            "<Contents><Key>b.jpg</Key><Size>2"
        )
        page = parse_listing(xml)
        self.assertEqual(
            [(o.key, o.size) for o in page.objects], [("a.jpg", 1), ("b.jpg", None)]
        )
        self.assertEqual([o.key for o in page.objects], parse_keys_from_xml(xml))

    def test_size_is_not_borrowed_from_a_neighbouring_block(self):
        xml = (
            "<Contents><Key>notes.txt</Key><Size>7</Size></Contents>"
            "<Contents><Key>a.png</Key></Contents>"
            "<Contents><Key>b.png</Key><Size>9</Size></Contents>"
        )
        self.assertEqual(
            [(o.key, o.size) for o in parse_listing(xml).objects],
            [("a.png", None), ("b.png", 9)],
        )

    def test_empty_body(self):
        page = parse_listing("")
        self.assertEqual(page.objects, [])
        self.assertFalse(page.is_truncated)

    def test_is_image_key(self):
        self.assertTrue(is_image_key("x/y.jpeg"))
        self.assertFalse(is_image_key("x/y.JPG"))
        self.assertFalse(is_image_key(""))


if __name__ == "__main__":
    unittest.main()
