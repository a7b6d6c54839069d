"""Conductors - the write side of the authorization engine."""

from rolegate.modules.conductors.abilities import (
    AbilityConductor,
    ForbidsAbilities,
    GivesAbilities,
    RemovesAbilities,
    UnforbidsAbilities,
)
from rolegate.modules.conductors.checks import ChecksRoles
from rolegate.modules.conductors.context import ConductorContext
from rolegate.modules.conductors.lookups import AbilityLookup
from rolegate.modules.conductors.roles import AssignsRoles, RemovesRoles
from rolegate.modules.conductors.sync import SyncsRolesAndAbilities


__all__ = [
    "AbilityConductor",
    "AbilityLookup",
    "AssignsRoles",
    "ChecksRoles",
    "ConductorContext",
    "ForbidsAbilities",
    "GivesAbilities",
    "RemovesAbilities",
    "RemovesRoles",
    "SyncsRolesAndAbilities",
    "UnforbidsAbilities",
]
