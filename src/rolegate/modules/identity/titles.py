"""Human-readable titles derived from role and ability attributes."""

from typing import Any

from rolegate.core.constants import WILDCARD
from rolegate.core.utils.text import class_basename, humanize, pluralize


def role_title(role: Any) -> str:
    """Derive a role title from its name.

    Examples:
        "site-admin" -> "Site admin", "superAdmin" -> "Super admin"
    """
    return humanize(role.name)


def ability_title(ability: Any) -> str | None:
    """Derive an ability title from its name, subject and ownership flag.

    Args:
        ability: An Ability (or any object with the same attributes)

    Returns:
        The title, e.g. "All abilities", "Edit posts" or "Delete post #5"
    """
    name = ability.name
    subject_type = ability.subject_type
    subject_id = ability.subject_id
    only_owned = bool(ability.only_owned)

    if name == WILDCARD and subject_type == WILDCARD:
        return "Manage everything owned" if only_owned else "All abilities"

    if name == WILDCARD and subject_type is None:
        return "All simple abilities"

    if subject_type is None:
        return humanize(name)

    if subject_type == WILDCARD:
        # Any named ability across every subject type
        suffix = "everything owned" if only_owned else "everything"
        return humanize(f"{name} {suffix}")

    if subject_id is None:
        action = "manage" if name == WILDCARD else name
        return humanize(f"{action} {pluralize(class_basename(subject_type))}")

    action = "manage" if name == WILDCARD else name
    return humanize(f"{action} {class_basename(subject_type)} #{subject_id}")
