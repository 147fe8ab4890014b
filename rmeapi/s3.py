"""Minimal S3-compatible object storage client signed with AWS Signature Version 4."""

from __future__ import annotations

import hashlib
import hmac
import os
import urllib.request
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from urllib.parse import quote, urlsplit

DEFAULT_REGION = "idn"
_ALGORITHM = "AWS4-HMAC-SHA256"
_SERVICE = "s3"


class S3Error(Exception):
    """Raised when an object storage request fails."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


@dataclass
class S3Client:
    """Client for putting and deleting objects on S3 or an S3-compatible service."""

    access_key_id: str = ""
    secret_access_key: str = ""
    region: str = DEFAULT_REGION
    endpoint: str | None = None
    force_path_style: bool = False
    default_bucket: str = ""
    timeout: float = 30.0
    opener: Callable[..., Any] = field(default=urllib.request.urlopen, repr=False)
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "S3Client":
        """Configure a client from the AWS_* environment variables."""
        env = os.environ if environ is None else environ
        endpoint = env.get("AWS_ENDPOINT")
        return cls(
            access_key_id=env.get("AWS_ACCESS_KEY_ID", ""),
            secret_access_key=env.get("AWS_SECRET_ACCESS_KEY", ""),
            region=env.get("AWS_DEFAULT_REGION", DEFAULT_REGION),
            endpoint=endpoint,
            force_path_style=endpoint is not None
            and env.get("AWS_USE_PATH_STYLE_ENDPOINT") == "true",
            default_bucket=env.get("AWS_BUCKET", ""),
        )

    def object_url(self, bucket: str, key: str) -> str:
        """Public URL under which an uploaded object is reported."""
        base = self.endpoint or f"https://{self.default_bucket}.s3.amazonaws.com"
        return f"{base}/{bucket}/{key}"

    def put_object(self, bucket: str, key: str, body: bytes) -> None:
        try:
            self._send("PUT", bucket, key, bytes(body))
        except OSError as exc:
            raise S3Error(f"Failed to upload to S3: {exc}") from exc

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._send("DELETE", bucket, key, b"")
        except OSError as exc:
            raise S3Error(f"Failed to delete from S3: {exc}") from exc

    def _target(self, bucket: str, key: str) -> tuple[str, str, str]:
        encoded_key = quote(key, safe="/-_.~")
        if self.endpoint:
            parts = urlsplit(self.endpoint)
            scheme, host = parts.scheme or "https", parts.netloc
            base_path = parts.path.rstrip("/")
        else:
            scheme, host, base_path = "https", f"s3.{self.region}.amazonaws.com", ""
        if self.force_path_style:
            path = f"{base_path}/{quote(bucket, safe='')}/{encoded_key}"
        else:
            host = f"{bucket}.{host}"
            path = f"{base_path}/{encoded_key}"
        return scheme, host, path

    def _signed_headers(
        self, method: str, host: str, path: str, payload: bytes
    ) -> dict[str, str]:
        now = self.clock().astimezone(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")
        payload_hash = hashlib.sha256(payload).hexdigest()

        headers = {
            "host": host,
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
        }
        signed = ";".join(sorted(headers))
        canonical_headers = "".join(f"{name}:{headers[name]}\n" for name in sorted(headers))
        canonical_request = "\n".join(
            [method, path, "", canonical_headers, signed, payload_hash]
        )
        scope = f"{date_stamp}/{self.region}/{_SERVICE}/aws4_request"
        string_to_sign = "\n".join(
            [
                _ALGORITHM,
                amz_date,
                scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            ]
        )

        signing_key = ("AWS4" + self.secret_access_key).encode("utf-8")
        for part in (date_stamp, self.region, _SERVICE, "aws4_request"):
            signing_key = _hmac(signing_key, part)
        signature = hmac.new(
            signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
        ).hexdigest()

        return {
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
            "Authorization": (
                f"{_ALGORITHM} Credential={self.access_key_id}/{scope}, "
                f"SignedHeaders={signed}, Signature={signature}"
            ),
        }

    def _send(self, method: str, bucket: str, key: str, payload: bytes) -> None:
        scheme, host, path = self._target(bucket, key)
        request = urllib.request.Request(
            f"{scheme}://{host}{path}",
            data=payload if method == "PUT" else None,
            method=method,
            headers=self._signed_headers(method, host, path, payload),
        )
        with self.opener(request, timeout=self.timeout) as response:
            response.read()


def init_s3_client(environ: Mapping[str, str] | None = None) -> S3Client:
    """Create a client configured from the environment."""
    return S3Client.from_env(environ)


def upload_file_to_s3(client: S3Client, bucket: str, key: str, body: bytes) -> str:
    """Upload ``body`` and return the object's URL."""
    client.put_object(bucket, key, body)
    return client.object_url(bucket, key)


def delete_file_from_s3(client: S3Client, bucket: str, key: str) -> None:
    client.delete_object(bucket, key)


def generate_s3_key(filename: str) -> str:
    """Build a timestamped object key under ``files/``."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"files/{stamp}_{filename}"