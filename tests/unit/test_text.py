"""Tests for text utilities."""

import pytest

from rolegate.core.utils.text import (
    class_basename,
    humanize,
    is_ulid,
    is_uuid,
    is_uuid_or_ulid,
    pluralize,
    snake_case,
)


pytestmark = pytest.mark.unit


class TestSnakeCase:
    """Tests for snake_case."""

    def test_lowercase_is_unchanged(self):
        assert snake_case("posts") == "posts"

    def test_camel_case(self):
        assert snake_case("createPosts") == "create_posts"

    def test_studly_case(self):
        assert snake_case("BlogPost") == "blog_post"

    def test_custom_delimiter(self):
        assert snake_case("BlogPost", "-") == "blog-post"


class TestHumanize:
    """Tests for humanize."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("ban-users", "Ban users"),
            ("edit_site", "Edit site"),
            ("superAdmin", "Super admin"),
            ("edit Post #5", "Edit post #5"),
            ("admin", "Admin"),
        ],
    )
    def test_humanize(self, value: str, expected: str):
        assert humanize(value) == expected


class TestPluralize:
    """Tests for pluralize."""

    def test_regular(self):
        assert pluralize("Post") == "Posts"

    def test_consonant_y(self):
        assert pluralize("Category") == "Categories"

    def test_vowel_y(self):
        assert pluralize("Survey") == "Surveys"

    def test_sibilant(self):
        assert pluralize("Box") == "Boxes"

    def test_irregular_keeps_capital(self):
        assert pluralize("Person") == "People"
        assert pluralize("child") == "children"

    def test_empty(self):
        assert pluralize("") == ""


class TestIdShapes:
    """Tests for UUID / ULID detection."""

    def test_uuid(self):
        assert is_uuid("0b5d4e0c-8f5e-4d7a-9d43-0a1c0b2d3e4f")
        assert not is_uuid("admin")

    def test_ulid(self):
        assert is_ulid("01ARZ3NDEKTSV4RRFFQ69G5FAV")
        assert not is_ulid("01ARZ3NDEK")

    def test_names_are_not_ids(self):
        assert not is_uuid_or_ulid("editor")

    def test_class_basename(self):
        assert class_basename("App\\Models\\Post") == "Post"
        assert class_basename("app.models.Post") == "Post"
        assert class_basename("Post") == "Post"
