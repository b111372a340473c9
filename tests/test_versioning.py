import pytest

from traffic_light.errors import MalformedTagError
from traffic_light.models import ApprovalTags, Bump
from traffic_light.versioning import Version, next_version, parse_version, select_latest_tag


@pytest.mark.parametrize(
    "latest, bump, expected",
    [
        ("v1.2.3", Bump.MINOR, "1.3.0"),
        (None, Bump.MAJOR, "1.0.0"),
        ("v1.9.9", Bump.PATCH, "1.9.10"),
        ("v1.2.3", Bump.MAJOR, "2.0.0"),
        (None, Bump.PATCH, "0.0.1"),
        ("2.0.9", Bump.MINOR, "2.1.0"),
    ],
)
def test_next_version(latest, bump, expected):
    assert next_version(latest, ApprovalTags(approved=True, bump=bump)) == expected


def test_missing_approval_bumps_patch():
    assert next_version("v0.4.1") == "0.4.2"


def test_empty_latest_tag_counts_as_no_tag():
    assert next_version("", ApprovalTags(bump=Bump.MINOR)) == "0.1.0"


@pytest.mark.parametrize("tag", ["v1.2", "vX.Y.Z", "v1.2.3-rc1", "release-1.2.3", "v1.2.3.4", "  "])
def test_malformed_tags_are_fatal(tag):
    with pytest.raises(MalformedTagError) as exc:
        parse_version(tag)
    assert exc.value.tag == tag


def test_next_version_raises_on_malformed_tag():
    with pytest.raises(MalformedTagError):
        next_version("v1.x.0", ApprovalTags(bump=Bump.MINOR))


def test_versions_compare_numerically():
    assert parse_version("v10.0.0") > parse_version("v9.0.0")
    assert parse_version("v1.10.0") > parse_version("v1.9.9")
    assert str(Version(1, 2, 3)) == "1.2.3"


def test_select_latest_tag_is_numeric_not_lexicographic():
    tags = ["v9.0.0", "v10.0.0", "v2.11.0", "v2.9.0"]

    assert select_latest_tag(tags) == "v10.0.0"
    assert sorted(tags)[-1] == "v9.0.0"


def test_select_latest_tag_skips_invalid_tags():
    assert select_latest_tag(["v1.0.0", "v2.0.0-rc1", "latest", "", "v1.1.0"]) == "v1.1.0"


def test_select_latest_tag_without_valid_tags():
    assert select_latest_tag([]) is None
    assert select_latest_tag(["nightly"]) is None
