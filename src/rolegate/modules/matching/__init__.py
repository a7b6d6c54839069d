"""Ability matching rules."""

from rolegate.modules.matching.matcher import (
    AbilityRequest,
    Subject,
    SubjectKind,
    build_request,
    find_matching_ability,
    matches,
    normalize_ability_name,
    resolve_subject,
    subject_matches,
)


__all__ = [
    "AbilityRequest",
    "Subject",
    "SubjectKind",
    "build_request",
    "find_matching_ability",
    "matches",
    "normalize_ability_name",
    "resolve_subject",
    "subject_matches",
]
