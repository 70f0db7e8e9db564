"""
Canonical contract names.

The flatten transform encodes directory structure in dot-separated
filenames:

    contracts/Governance/Leader/LeaderGov.sol  ->  Governance.Leader.LeaderGov.sol

The flattened filename is the canonical name that ties every content
variant and every tool output to one contract.
"""

from dataclasses import dataclass
from typing import Iterable

from .errors import MalformedIdentityError, SlugCollisionError


SEPARATOR = "."
SOURCE_EXTENSION = ".sol"

# Truffle's bookkeeping contract, never part of a report
MIGRATIONS_CONTRACT = "Migrations.sol"


def nested_path(canonical_name: str) -> list[str]:
    """Map a flattened filename back to the nested path it came from.

    Args:
        canonical_name: Flattened filename, e.g. "Governance.Leader.LeaderGov.sol"

    Returns:
        Path segments, e.g. ["Governance", "Leader", "LeaderGov.sol"]

    Raises:
        MalformedIdentityError: If the name has fewer than two segments
    """
    segments = canonical_name.split(SEPARATOR)
    if len(segments) < 2:
        raise MalformedIdentityError(
            f"'{canonical_name}' is not a flattened contract name"
        )

    # last segment is the extension marker
    *directories, filename, _ = segments
    return [*directories, f"{filename}{SOURCE_EXTENSION}"]


def slug_for(canonical_name: str) -> str:
    """HTML-safe identifier for a canonical name."""
    stem = canonical_name
    if stem.endswith(SOURCE_EXTENSION):
        stem = stem[: -len(SOURCE_EXTENSION)]
    return stem.replace(SEPARATOR, "-").lower()


@dataclass(frozen=True)
class ContractIdentity:
    """One contract from the flattened listing."""

    canonical_name: str
    slug: str
    nested_path: tuple[str, ...]

    @classmethod
    def from_canonical_name(cls, canonical_name: str) -> "ContractIdentity":
        return cls(
            canonical_name=canonical_name,
            slug=slug_for(canonical_name),
            nested_path=tuple(nested_path(canonical_name)),
        )


def build_identities(canonical_names: Iterable[str]) -> list[ContractIdentity]:
    """Create identities for a listing, in the order given.

    The migrations contract is skipped and duplicate names are collapsed.

    Raises:
        SlugCollisionError: If two distinct names share a slug
        MalformedIdentityError: If a name cannot be normalized
    """
    identities = []
    by_slug: dict[str, str] = {}

    for name in canonical_names:
        if name == MIGRATIONS_CONTRACT:
            continue

        identity = ContractIdentity.from_canonical_name(name)
        existing = by_slug.get(identity.slug)
        if existing == name:
            continue
        if existing is not None:
            raise SlugCollisionError(identity.slug, existing, name)

        by_slug[identity.slug] = name
        identities.append(identity)

    return identities
