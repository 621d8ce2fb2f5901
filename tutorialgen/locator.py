"""Identifiers for artifacts that can be resolved for a given platform."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tutorialgen.resolver import Resolver


@dataclass(frozen=True)
class OSArch:
    """An operating system and architecture pair."""

    os: str = ""
    arch: str = ""


@dataclass(frozen=True)
class Locator:
    """Group, product and version that identify an artifact."""

    group: str = ""
    product: str = ""
    version: str = ""

    def __str__(self) -> str:
        return f"{self.group_and_product_string()}:{self.version}"

    def group_and_product_string(self) -> str:
        return f"{self.group}:{self.product}"


@dataclass(frozen=True, eq=True)
class LocatorParam(Locator):
    """A locator together with the expected checksum of the artifact per platform."""

    checksums: Mapping[OSArch, str] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True)
class LocatorWithResolverParam:
    """A locator with checksums and an optional resolver that overrides the defaults."""

    locator_with_checksums: LocatorParam
    resolver: Resolver | None = None