# tests/test_request_signer.py

"""Tests for AWS Signature V4 request signing."""

import hashlib
import re
import unittest
from datetime import datetime, timezone

from src.feeds.request_signer import (
    RequestSigner,
    build_canonical_request,
    canonical_headers,
    derive_signing_key,
)
from src.models.errors import ConfigError

FIXED_TIME = datetime(2024, 3, 5, 7, 8, 9, tzinfo=timezone.utc)
EMPTY_SHA256 = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)


def _signer(**overrides: str) -> RequestSigner:
    params = {
        "access_key": "AKIDEXAMPLE",
        "secret_key": "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
        "region": "us-east-1",
        "service": "ProductAdvertisingAPI",
        "host": "webservices.amazon.com",
    }
    params.update(overrides)
    return RequestSigner(clock=lambda: FIXED_TIME, **params)


class TestSigningKey(unittest.TestCase):
    """HMAC key derivation chain."""

    def test_matches_published_example(self) -> None:
        """Derived key equals the AWS documentation example."""
        key = derive_signing_key(
            "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
            "20120215",
            "us-east-1",
            "iam",
        )
        self.assertEqual(
            key.hex(),
            "f4780e2d9f65fa895f9c67b32ce1baf0"
            "b0d8a43505a000a1a9e090d414db404d",
        )

    def test_key_depends_on_region(self) -> None:
        """A different region yields a different signing key."""
        a = derive_signing_key("secret", "20240305", "us-east-1", "svc")
        b = derive_signing_key("secret", "20240305", "eu-west-1", "svc")
        self.assertNotEqual(a, b)


class TestCanonicalRequest(unittest.TestCase):
    """Canonical request construction."""

    def test_headers_sorted_case_insensitively(self) -> None:
        """Header names are lower-cased and sorted before joining."""
        block, names = canonical_headers(
            {"X-Amz-Target": "T", "Host": "h.example", "content-type": "a/b"}
        )
        self.assertEqual(names, "content-type;host;x-amz-target")
        self.assertEqual(
            block, "content-type:a/b\nhost:h.example\nx-amz-target:T\n"
        )

    def test_header_values_trimmed(self) -> None:
        """Leading, trailing and repeated spaces are collapsed."""
        block, _ = canonical_headers({"X-Custom": "  a   b  "})
        self.assertEqual(block, "x-custom:a b\n")

    def test_exact_canonical_request(self) -> None:
        """Blank query line and the header block's trailing newline."""
        canonical, names = build_canonical_request(
            "post",
            "/paapi5/searchitems",
            {"host": "webservices.amazon.com", "x-amz-date": "20240305T070809Z"},
            b"",
        )
        expected = (
            "POST\n"
            "/paapi5/searchitems\n"
            "\n"
            "host:webservices.amazon.com\n"
            "x-amz-date:20240305T070809Z\n"
            "\n"
            "host;x-amz-date\n"
            f"{EMPTY_SHA256}"
        )
        self.assertEqual(canonical, expected)
        self.assertEqual(names, "host;x-amz-date")

    def test_body_hash_is_last_line(self) -> None:
        """The final line is the hex SHA-256 of the payload."""
        body = b'{"Keywords":"silk"}'
        canonical, _ = build_canonical_request("POST", "/", {"host": "h"}, body)
        self.assertEqual(
            canonical.rsplit("\n", 1)[1],
            hashlib.sha256(body).hexdigest(),
        )

    def test_query_parameters_sorted_and_encoded(self) -> None:
        """Query parameters are sorted by name and percent-encoded."""
        canonical, _ = build_canonical_request(
            "GET", "/", {"host": "h"}, b"", query={"b": "x y", "a": "1"}
        )
        self.assertEqual(canonical.split("\n")[2], "a=1&b=x%20y")


class TestRequestSigner(unittest.TestCase):
    """RequestSigner.sign behaviour."""

    def test_adds_required_headers(self) -> None:
        """host, content-type, x-amz-date and Authorization are set."""
        headers = _signer().sign({}, "{}", path="/paapi5/searchitems")
        self.assertEqual(headers["host"], "webservices.amazon.com")
        self.assertEqual(
            headers["content-type"], "application/json; charset=UTF-8"
        )
        self.assertEqual(headers["x-amz-date"], "20240305T070809Z")
        self.assertIn("Authorization", headers)

    def test_existing_content_type_kept(self) -> None:
        """A caller-provided content type is not overwritten."""
        headers = _signer().sign({"Content-Type": "text/plain"}, "x")
        self.assertEqual(headers["content-type"], "text/plain")

    def test_authorization_format(self) -> None:
        """Authorization header follows the documented layout."""
        headers = _signer().sign(
            {"x-amz-target": "Target"}, "{}", path="/paapi5/searchitems"
        )
        pattern = (
            r"^AWS4-HMAC-SHA256 "
            r"Credential=AKIDEXAMPLE/20240305/us-east-1/"
            r"ProductAdvertisingAPI/aws4_request, "
            r"SignedHeaders=content-type;host;x-amz-date;x-amz-target, "
            r"Signature=[0-9a-f]{64}$"
        )
        self.assertRegex(headers["Authorization"], pattern)

    def test_deterministic_for_fixed_clock(self) -> None:
        """Repeated signing produces a byte-identical header."""
        first = _signer().sign({"x-amz-target": "T"}, '{"Keywords":"a"}')
        second = _signer().sign({"x-amz-target": "T"}, '{"Keywords":"a"}')
        self.assertEqual(first["Authorization"], second["Authorization"])

    def test_signature_bound_to_body(self) -> None:
        """Changing one byte of the payload changes the signature."""
        a = _signer().sign({}, '{"Keywords":"a"}')["Authorization"]
        b = _signer().sign({}, '{"Keywords":"b"}')["Authorization"]
        self.assertNotEqual(a, b)

    def test_signature_bound_to_timestamp(self) -> None:
        """A different clock reading produces a different signature."""
        later = RequestSigner(
            "AKIDEXAMPLE",
            "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
            "us-east-1",
            "ProductAdvertisingAPI",
            "webservices.amazon.com",
            clock=lambda: datetime(2024, 3, 5, 7, 8, 10, tzinfo=timezone.utc),
        )
        a = _signer().sign({}, "{}")["Authorization"]
        b = later.sign({}, "{}")["Authorization"]
        self.assertNotEqual(
            re.search(r"Signature=(\w+)", a).group(1),  # type: ignore[union-attr]
            re.search(r"Signature=(\w+)", b).group(1),  # type: ignore[union-attr]
        )

    def test_input_headers_not_mutated(self) -> None:
        """The caller's header dict is left as it was."""
        original = {"x-amz-target": "T"}
        _signer().sign(original, "{}")
        self.assertEqual(original, {"x-amz-target": "T"})

    def test_missing_secret_is_config_error(self) -> None:
        """Missing credentials fail before any signing happens."""
        with self.assertRaises(ConfigError) as ctx:
            _signer(secret_key="").sign({}, "{}")
        self.assertIn("secret_key", ctx.exception.message)

    def test_missing_access_key_is_config_error(self) -> None:
        """An empty access key is a configuration error."""
        with self.assertRaises(ConfigError):
            _signer(access_key="").sign({}, "{}")


class TestPublishedSuiteVectors(unittest.TestCase):
    """Known answers from the AWS Signature V4 test suite.

    Credentials ``AKIDEXAMPLE``, region ``us-east-1``, service
    ``service`` and host ``example.amazonaws.com`` at
    2015-08-30T12:36:00Z, with an empty body.
    """

    SUITE_TIME = datetime(2015, 8, 30, 12, 36, 0, tzinfo=timezone.utc)
    SCOPE = "AKIDEXAMPLE/20150830/us-east-1/service/aws4_request"

    def _suite_signer(self) -> RequestSigner:
        return RequestSigner(
            "AKIDEXAMPLE",
            "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
            "us-east-1",
            "service",
            "example.amazonaws.com",
            clock=lambda: self.SUITE_TIME,
        )

    def test_get_vanilla_canonical_request_hash(self) -> None:
        canonical, _ = build_canonical_request(
            "GET",
            "/",
            {
                "host": "example.amazonaws.com",
                "x-amz-date": "20150830T123600Z",
            },
            b"",
        )
        self.assertEqual(
            hashlib.sha256(canonical.encode("utf-8")).hexdigest(),
            "bb579772317eb040ac9ed261061d46c1"
            "f17a8133879d6129b6e1c25292927e63",
        )

    def test_get_vanilla_authorization(self) -> None:
        headers = self._suite_signer().sign({}, b"", method="GET", path="/")
        self.assertNotIn("content-type", headers)
        self.assertEqual(
            headers["Authorization"],
            f"AWS4-HMAC-SHA256 Credential={self.SCOPE}, "
            "SignedHeaders=host;x-amz-date, "
            "Signature=5fa00fa31553b73ebf1942676e86291e"
            "8372ff2a2260956d9b8aae1d763fbf31",
        )

    def test_post_vanilla_canonical_request_hash(self) -> None:
        canonical, _ = build_canonical_request(
            "POST",
            "/",
            {
                "host": "example.amazonaws.com",
                "x-amz-date": "20150830T123600Z",
            },
            b"",
        )
        self.assertEqual(
            hashlib.sha256(canonical.encode("utf-8")).hexdigest(),
            "553f88c9e4d10fc9e109e2aeb65f0308"
            "01b70c2f6468faca261d401ae622fc87",
        )

    def test_post_vanilla_authorization(self) -> None:
        headers = self._suite_signer().sign({}, "", method="POST", path="/")
        self.assertEqual(
            headers["Authorization"],
            f"AWS4-HMAC-SHA256 Credential={self.SCOPE}, "
            "SignedHeaders=host;x-amz-date, "
            "Signature=5da7c1a2acd57cee7505fc6676e4e544"
            "621c30862966e37dddb68e92efbe5d6b",
        )


if __name__ == "__main__":
    unittest.main()
