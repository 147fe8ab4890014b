import contextlib
import hashlib
import io
import re
import urllib.error
from datetime import datetime, timedelta, timezone

import pytest

from rmeapi.s3 import (
    S3Client,
    S3Error,
    delete_file_from_s3,
    generate_s3_key,
    init_s3_client,
    upload_file_to_s3,
)

FIXED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class RecordingOpener:
    def __init__(self, error=None):
        self.requests = []
        self.error = error

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return contextlib.nullcontext(io.BytesIO(b""))


def make_client(opener, **overrides):
    options = dict(
        access_key_id="placeholder",
        secret_access_key="secret",
        region="idn",
        endpoint="https://storage.example.com",
        force_path_style=True,
        opener=opener,
        clock=lambda: FIXED,
    )
    options.update(overrides)
    return S3Client(**options)


def test_from_env_defaults():
    client = init_s3_client({})
    assert client.region == "idn"
    assert client.endpoint is None
    assert client.force_path_style is False
    assert client.access_key_id == ""


def test_path_style_requires_endpoint():
    client = S3Client.from_env({"AWS_USE_PATH_STYLE_ENDPOINT": "true"})
    assert client.force_path_style is False
    with_endpoint = S3Client.from_env(
        {"AWS_ENDPOINT": "https://storage.example.com", "AWS_USE_PATH_STYLE_ENDPOINT": "true"}
    )
    assert with_endpoint.force_path_style is True


def test_object_url_without_endpoint_uses_bucket_env():
    client = S3Client.from_env({"AWS_BUCKET": "media"})
    assert client.object_url("media", "files/a.png") == "https://media.s3.amazonaws.com/media/files/a.png"


def test_upload_returns_url_and_sends_put():
    opener = RecordingOpener()
    client = make_client(opener)
    url = upload_file_to_s3(client, "bucket", "files/a.txt", b"hello")
    assert url == client.object_url("bucket", "files/a.txt")
    request = opener.requests[0]
    assert request.get_method() == "PUT"
    assert request.data == b"hello"
    assert request.full_url.endswith("/bucket/files/a.txt")
    assert request.get_header("X-amz-content-sha256") == hashlib.sha256(b"hello").hexdigest()


def test_virtual_host_style_puts_bucket_in_host():
    opener = RecordingOpener()
    client = make_client(opener, force_path_style=False)
    client.put_object("bucket", "k.txt", b"x")
    assert opener.requests[0].host.startswith("bucket.")


def test_authorization_header_shape():
    opener = RecordingOpener()
    make_client(opener).put_object("bucket", "k", b"data")
    auth = opener.requests[0].get_header("Authorization")
    assert auth.startswith("AWS4-HMAC-SHA256 Credential=placeholder/20240102/idn/s3/aws4_request")
    assert re.search(r"Signature=[0-9a-f]{64}$", auth)


def test_signature_is_deterministic_and_depends_on_secret():
    first, second, other = RecordingOpener(), RecordingOpener(), RecordingOpener()
    make_client(first).put_object("b", "k", b"data")
    make_client(second).put_object("b", "k", b"data")
    make_client(other, secret_access_key="placeholder").put_object("b", "k", b"data")
    auth = first.requests[0].get_header("Authorization")
    assert auth == second.requests[0].get_header("Authorization")
    assert auth != other.requests[0].get_header("Authorization")


def test_delete_sends_delete():
    opener = RecordingOpener()
    delete_file_from_s3(make_client(opener), "bucket", "files/a.txt")
    assert opener.requests[0].get_method() == "DELETE"
    assert opener.requests[0].data is None


def test_upload_failure_raises():
    opener = RecordingOpener(error=urllib.error.URLError("down"))
    with pytest.raises(S3Error, match="^Failed to upload to S3"):
        upload_file_to_s3(make_client(opener), "bucket", "k", b"x")


def test_delete_failure_raises():
    opener = RecordingOpener(error=urllib.error.URLError("down"))
    with pytest.raises(S3Error, match="^Failed to delete from S3"):
        delete_file_from_s3(make_client(opener), "bucket", "k")


def test_generate_s3_key_format():
    before = datetime.now().replace(microsecond=0)
    key = generate_s3_key("report.pdf")
    after = datetime.now()
    prefix, suffix = "files/", "_report.pdf"
    assert key[: len(prefix)] == prefix
    assert key[-len(suffix):] == suffix
    stamp = key[len(prefix): -len(suffix)]
    assert len(stamp) == 15
    parsed = datetime.strptime(stamp, "%Y%m%d_%H%M%S")
    assert before - timedelta(seconds=1) <= parsed <= after + timedelta(seconds=1)