"""Tests for visibility classification."""

from types import SimpleNamespace

import pytest

from domain.entities.visibility import SharedVisibility, Visibility, classify_visibility


class TestClassifyVisibility:
    """Tests for classify_visibility."""

    def test_public_literal(self):
        assert classify_visibility("public") is Visibility.PUBLIC

    def test_private_literal(self):
        assert classify_visibility("private") is Visibility.PRIVATE

    def test_shared_mapping(self):
        assert classify_visibility({"users": ["a"], "groups": []}) is Visibility.SHARED

    def test_shared_with_only_groups(self):
        """An empty users list still makes the descriptor shared."""
        assert classify_visibility({"users": [], "groups": ["g"]}) is Visibility.SHARED

    def test_shared_dataclass(self):
        assert classify_visibility(SharedVisibility(users=["marge"])) is Visibility.SHARED

    def test_shared_attribute_object(self):
        descriptor = SimpleNamespace(users=[], groups=["family"])
        assert classify_visibility(descriptor) is Visibility.SHARED

    @pytest.mark.parametrize(
        "descriptor",
        [
            "Public",
            "shared",
            "everyone",
            "",
            None,
            42,
            [],
            {},
            {"users": ["a"]},
            {"groups": ["g"]},
            {"users": None, "groups": []},
            SimpleNamespace(users=["a"]),
        ],
    )
    def test_unrecognized_forms(self, descriptor):
        assert classify_visibility(descriptor) is None


class TestSharedVisibility:
    """Tests for the SharedVisibility descriptor."""

    def test_empty(self):
        assert SharedVisibility().is_empty()

    def test_not_empty(self):
        assert not SharedVisibility(groups=["family"]).is_empty()
