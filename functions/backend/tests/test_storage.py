import os
import unittest
from datetime import datetime, timezone
from unittest import mock
from urllib.parse import parse_qs, urlsplit

import requests

from backend.config import Settings, StorageConfig
from backend.storage import (
    InMemoryStorageClient,
    S3ListingClient,
    StorageRequestError,
)
from shared.s3_listing import StorageObject, parse_keys_from_xml
from shared.signing import InvalidConfiguration
from shared.types import SyncSource

FIXED_NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)

PAGE_ONE = """<?xml version="1.0" encoding="UTF-8"?>
<ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
  <Name>remap-images</Name>
  <IsTruncated>true</IsTruncated>
  <Contents><Key>portfolio/bedrooms/a.jpg</Key><Size>100</Size></Contents>
  <Contents><Key>notes.txt</Key><Size>5</Size></Contents>
  <NextContinuationToken>1ueGcxLPRx1Tr/XYExHnhbYLgveDs2J/wm36Hy4vbOwM=</NextContinuationToken>
</ListBucketResult>"""

PAGE_TWO = """<ListBucketResult>
  <IsTruncated>false</IsTruncated>
  <Contents><Key>hero/banner.webp</Key><Size>200</Size></Contents>
</ListBucketResult>"""


def _response(status_code=200, text="", reason="OK"):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    response.reason = reason
    return response


def _config(**overrides) -> StorageConfig:
    values = dict(
        access_key_id="AKIDEXAMPLE",
        secret_access_key="test-secret",
        region="ap-south-1",
        bucket_name="remap-images",
    )
    values.update(overrides)
    return StorageConfig(**values)


class S3ListingClientTests(unittest.TestCase):
    def setUp(self):
        self.session = mock.Mock()
        self.client = S3ListingClient(
            _config(access_point_alias="remap-ap-abc123-s3alias"),
            session=self.session,
            clock=lambda: FIXED_NOW,
        )

    def test_signed_request_shape(self):
        self.session.get.return_value = _response(text=PAGE_TWO)
        objects = self.client.list_objects()

        self.assertEqual([o.key for o in objects], ["hero/banner.webp"])
        url = self.session.get.call_args.args[0]
        headers = self.session.get.call_args.kwargs["headers"]
        self.assertEqual(
            url, "https://remap-images.s3.ap-south-1.amazonaws.com/?list-type=2"
        )
        self.assertEqual(headers["Host"], "remap-images.s3.ap-south-1.amazonaws.com")
        self.assertEqual(headers["X-Amz-Date"], "20240115T103000Z")
        self.assertEqual(headers["x-amz-content-sha256"], "UNSIGNED-PAYLOAD")
        self.assertTrue(
            headers["Authorization"].startswith(
                "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20240115/ap-south-1/s3/"
                "aws4_request, SignedHeaders=host;x-amz-content-sha256;x-amz-date, "
            )
        )
        self.assertNotIn("test-secret", str(headers))

    def test_follows_continuation_tokens(self):
        self.session.get.side_effect = [
            _response(text=PAGE_ONE),
            _response(text=PAGE_TWO),
        ]
        objects = self.client.list_objects()

        self.assertEqual(
            [(o.key, o.size) for o in objects],
            [("portfolio/bedrooms/a.jpg", 100), ("hero/banner.webp", 200)],
        )
        self.assertEqual(self.session.get.call_count, 2)
        second_url = self.session.get.call_args_list[1].args[0]
        query = parse_qs(urlsplit(second_url).query)
        self.assertEqual(
            query["continuation-token"],
            ["1ueGcxLPRx1Tr/XYExHnhbYLgveDs2J/wm36Hy4vbOwM="],
        )
        self.assertIn("%2F", second_url)

    def test_access_point_host(self):
        self.session.get.return_value = _response(text=PAGE_TWO)
        self.client.list_objects(SyncSource.ACCESS_POINT)
        url = self.session.get.call_args.args[0]
        self.assertTrue(
            url.startswith(
                "https://remap-ap-abc123-s3alias.s3-accesspoint.ap-south-1.amazonaws.com/"
            )
        )

    def test_access_point_requires_alias(self):
        client = S3ListingClient(_config(), session=self.session)
        with self.assertRaises(InvalidConfiguration) as ctx:
            client.list_objects(SyncSource.ACCESS_POINT)
        self.assertIn("AWS_S3_ACCESS_POINT_ALIAS", str(ctx.exception))
        self.session.get.assert_not_called()

    def test_rejection_raises_with_status(self):
        body = "<Error><Code>SignatureDoesNotMatch</Code></Error>"
        self.session.get.return_value = _response(403, body, "Forbidden")
        with self.assertLogs("backend.storage", level="ERROR") as logs:
            with self.assertRaises(StorageRequestError) as ctx:
                self.client.list_objects()
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.body, body)
        self.assertIn("SignatureDoesNotMatch", "\n".join(logs.output))

    def test_transport_error(self):
        self.session.get.side_effect = requests.ConnectionError("no route")
        with self.assertRaises(StorageRequestError) as ctx:
            self.client.list_objects()
        self.assertIsNone(ctx.exception.status_code)

    def test_truncated_body_keeps_every_complete_key(self):
        body = (
            "<ListBucketResult><Contents><Key>a.jpg</Key><Size>1</Size></Contents>"
            "<Contents><Key>b.jpg</Key><Size>2"
        )
        self.session.get.return_value = _response(text=body)
        objects = self.client.list_objects()
        self.assertEqual([o.key for o in objects], parse_keys_from_xml(body))
        self.assertEqual(
            [(o.key, o.size) for o in objects], [("a.jpg", 1), ("b.jpg", None)]
        )

    def test_unreadable_body_is_empty_listing(self):
        self.session.get.return_value = _response(text="not xml at all")
        with self.assertLogs("backend.storage", level="WARNING"):
            self.assertEqual(self.client.list_objects(), [])


class InMemoryStorageClientTests(unittest.TestCase):
    def test_instances_do_not_share_objects(self):
        first = InMemoryStorageClient()
        second = InMemoryStorageClient()
        self.assertEqual(first.objects, {})
        first.objects[SyncSource.BUCKET] = [StorageObject(key="a.jpg")]
        self.assertEqual(second.list_objects(), [])
        self.assertEqual([o.key for o in first.list_objects()], ["a.jpg"])


class StorageConfigTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.dict(os.environ, {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_from_settings_names_missing_variables(self):
        settings = Settings(
            aws_access_key_id="AKID", aws_region="us-east-1", _env_file=None
        )
        with self.assertRaises(InvalidConfiguration) as ctx:
            StorageConfig.from_settings(settings)
        message = str(ctx.exception)
        self.assertIn("AWS_SECRET_ACCESS_KEY", message)
        self.assertIn("AWS_S3_BUCKET_NAME", message)
        self.assertNotIn("AWS_REGION", message)

    def test_from_settings(self):
        settings = Settings(
            aws_access_key_id="AKID",
            aws_secret_access_key="very-secret",
            aws_region="eu-west-1",
            aws_s3_bucket_name="remap-images",
            aws_s3_access_point_alias="",
            _env_file=None,
        )
        config = StorageConfig.from_settings(settings)
        self.assertEqual(config.bucket_host, "remap-images.s3.eu-west-1.amazonaws.com")
        self.assertIsNone(config.access_point_host)
        self.assertEqual(config.service_name, "s3")
        self.assertNotIn("very-secret", repr(config))


if __name__ == "__main__":
    unittest.main()
