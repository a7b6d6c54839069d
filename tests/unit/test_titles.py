"""Tests for derived role and ability titles."""

from types import SimpleNamespace

import pytest

from rolegate.modules.identity.titles import ability_title, role_title


pytestmark = pytest.mark.unit


def make_ability(name, subject_type=None, subject_id=None, only_owned=False):
    return SimpleNamespace(
        name=name,
        subject_type=subject_type,
        subject_id=subject_id,
        only_owned=only_owned,
    )


class TestRoleTitle:
    def test_dashed_name(self):
        assert role_title(SimpleNamespace(name="site-admin")) == "Site admin"

    def test_camel_name(self):
        assert role_title(SimpleNamespace(name="superAdmin")) == "Super admin"


class TestAbilityTitle:
    """Tests for ability_title."""

    def test_everything(self):
        assert ability_title(make_ability("*", "*")) == "All abilities"

    def test_everything_owned(self):
        assert ability_title(make_ability("*", "*", only_owned=True)) == "Manage everything owned"

    def test_all_simple_abilities(self):
        assert ability_title(make_ability("*")) == "All simple abilities"

    def test_simple_ability(self):
        assert ability_title(make_ability("ban-users")) == "Ban users"

    def test_manage_class(self):
        assert ability_title(make_ability("*", "Post")) == "Manage posts"

    def test_ability_on_class(self):
        assert ability_title(make_ability("edit", "Post")) == "Edit posts"

    def test_ability_on_instance(self):
        assert ability_title(make_ability("edit", "Post", "5")) == "Edit post #5"

    def test_ability_on_everything(self):
        assert ability_title(make_ability("delete", "*")) == "Delete everything"

    def test_ability_on_everything_owned(self):
        assert ability_title(make_ability("delete", "*", only_owned=True)) == "Delete everything owned"
