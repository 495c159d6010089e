import pytest

from imgsync.digests import digest_image, image_digest, image_has_digest, manifest_key_digest


@pytest.mark.parametrize(
    "image",
    [
        "gcr.io/proj/img@sha256:abc123",
        "gcr.io/proj/img:sha256:abc123",
        "gcr.io/proj/img@sha256:ABC123",
    ],
)
def test_image_digest_normalizes_digest_forms(image):
    assert image_digest(image) == "abc123"


def test_image_digest_legacy_tag_and_registry_port():
    assert image_digest("gcr.io/proj/img:v2.1") == "v2.1"
    assert image_digest("localhost:5000/img") is None
    assert image_digest("localhost:5000/img:stable") == "stable"
    assert image_digest("") is None
    assert image_digest(None) is None


def test_manifest_key_split_on_first_colon():
    assert manifest_key_digest("sha256:abc123") == "abc123"
    assert manifest_key_digest("sha256:ABC:x") == "abc:x"


def test_digest_image_is_canonical_digest_form():
    assert digest_image("gcr.io/p/img", "BBB") == "gcr.io/p/img@sha256:bbb"


def test_image_has_digest_case_insensitive():
    assert image_has_digest("gcr.io/p/img@sha256:ABCDEF", "abcdef")
    assert not image_has_digest("gcr.io/p/img@sha256:abcdef", "")
    assert not image_has_digest(None, "abc")
