"""Merchant alias table: canonical merchants and the text variants banks use for them."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from billmatch.errors import ConfigurationError


class MerchantAliasEntry(BaseModel):
    """A canonical merchant and its known aliases."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    canonical_name: str = Field(alias="canonicalName", min_length=1)
    aliases: tuple[str, ...] = ()
    category: str | None = None
    type: str | None = None  # subscription, bill, bank


class AliasSnapshot(BaseModel):
    """Wire shape of a stored alias table: ``{"merchants": {id: entry}}``."""

    merchants: dict[str, MerchantAliasEntry] = Field(default_factory=dict)


def generate_aliases(name: str | None) -> list[str]:
    """Default alias set for a name with no curated aliases.

    Lowercase form, whitespace-stripped form and, for multi-word names, the
    initials acronym when longer than one character.
    """
    if not name or not name.strip():
        return []

    lowered = name.strip().lower()
    aliases = [lowered]

    no_spaces = "".join(lowered.split())
    if no_spaces not in aliases:
        aliases.append(no_spaces)

    words = lowered.split()
    if len(words) > 1:
        acronym = "".join(w[0] for w in words)
        if len(acronym) > 1 and acronym not in aliases:
            aliases.append(acronym)

    return aliases


class MerchantAliasTable:
    """Read-mostly lookup from any alias (case-insensitive) to its merchant entry."""

    def __init__(self, entries: Mapping[str, MerchantAliasEntry] | None = None):
        self._entries: dict[str, MerchantAliasEntry] = dict(entries or {})
        self._index: dict[str, str] = {}
        for merchant_id, entry in self._entries.items():
            for text in (entry.canonical_name, *entry.aliases):
                key = text.strip().lower()
                # First entry to claim an alias keeps it
                if key and key not in self._index:
                    self._index[key] = merchant_id

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def entries(self) -> Iterable[tuple[str, MerchantAliasEntry]]:
        return self._entries.items()

    def get(self, merchant_id: str) -> MerchantAliasEntry | None:
        return self._entries.get(merchant_id)

    def lookup(self, name: str | None) -> MerchantAliasEntry | None:
        """Find the entry whose canonical name or alias equals ``name``."""
        merchant_id = self._index.get((name or "").strip().lower())
        return self._entries[merchant_id] if merchant_id else None

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any] | None) -> MerchantAliasTable:
        """Build a table from a stored snapshot.

        Raises:
            ConfigurationError: The snapshot is malformed.
        """
        if data is None:
            return cls()
        try:
            snapshot = AliasSnapshot.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                "Malformed merchant alias snapshot",
                context={"errors": e.error_count()},
                original_error=e,
            ) from e
        return cls(snapshot.merchants)

    @classmethod
    def default(cls) -> MerchantAliasTable:
        return cls.from_snapshot({"merchants": DEFAULT_MERCHANT_ALIASES})


def _entry(canonical: str, aliases: list[str], category: str, kind: str) -> dict[str, Any]:
    return {"canonicalName": canonical, "aliases": aliases, "category": category, "type": kind}


# Curated seed table for common US billers and subscriptions
DEFAULT_MERCHANT_ALIASES: dict[str, dict[str, Any]] = {
    "siriusxm": _entry(
        "SiriusXM",
        ["siriusxm", "sirrius", "sirius", "sirius xm", "sxm", "sirius satellite", "xm radio"],
        "Entertainment",
        "subscription",
    ),
    "disney": _entry(
        "Disney+",
        ["disney+", "disney plus", "disneyplus", "walt disney", "disney bundle"],
        "Entertainment",
        "subscription",
    ),
    "netflix": _entry(
        "Netflix", ["netflix", "netflix.com", "netflix inc"], "Entertainment", "subscription"
    ),
    "spotify": _entry(
        "Spotify", ["spotify", "spotify usa", "spotify premium"], "Entertainment", "subscription"
    ),
    "hulu": _entry("Hulu", ["hulu", "hulu llc", "hulu plus"], "Entertainment", "subscription"),
    "amazon_prime": _entry(
        "Amazon Prime",
        ["amazon prime", "prime video", "amzn prime", "amazon digital"],
        "Entertainment",
        "subscription",
    ),
    "nv_energy": _entry(
        "NV Energy",
        ["nv energy", "nevada energy", "nvpower", "nevada power", "nvenergy"],
        "Utilities",
        "bill",
    ),
    "cox": _entry(
        "Cox Communications",
        ["cox", "cox communications", "cox cable", "cox internet", "cox comm"],
        "Utilities",
        "bill",
    ),
    "tmobile": _entry("T-Mobile", ["t-mobile", "tmobile", "t mobile", "tmo"], "Utilities", "bill"),
    "verizon": _entry(
        "Verizon", ["verizon", "verizon wireless", "vzw", "verizon fios"], "Utilities", "bill"
    ),
    "att": _entry(
        "AT&T", ["at&t", "att", "at and t", "att wireless", "at&t wireless"], "Utilities", "bill"
    ),
    "geico": _entry("GEICO", ["geico", "geico insurance", "geico auto"], "Insurance", "bill"),
    "progressive": _entry(
        "Progressive",
        ["progressive", "progressive insurance", "progressive auto"],
        "Insurance",
        "bill",
    ),
    "state_farm": _entry(
        "State Farm", ["state farm", "statefarm", "state farm insurance"], "Insurance", "bill"
    ),
    "planet_fitness": _entry(
        "Planet Fitness",
        ["planet fitness", "planetfitness", "planet fit"],
        "Health & Fitness",
        "subscription",
    ),
    "apple": _entry(
        "Apple",
        ["apple", "apple.com", "apple inc", "itunes", "apple music", "icloud"],
        "Technology",
        "subscription",
    ),
    "google": _entry(
        "Google",
        ["google", "google llc", "google cloud", "google one", "youtube premium"],
        "Technology",
        "subscription",
    ),
    "microsoft": _entry(
        "Microsoft",
        ["microsoft", "msft", "xbox", "microsoft 365", "office 365"],
        "Technology",
        "subscription",
    ),
    "adobe": _entry(
        "Adobe",
        ["adobe", "adobe inc", "adobe creative", "creative cloud"],
        "Technology",
        "subscription",
    ),
    "chase": _entry(
        "Chase", ["chase", "chase bank", "jp morgan chase", "jpmorgan"], "Financial", "bank"
    ),
    "wells_fargo": _entry(
        "Wells Fargo", ["wells fargo", "wellsfargo", "wf bank"], "Financial", "bank"
    ),
    "bank_of_america": _entry(
        "Bank of America",
        ["bank of america", "boa", "bofa", "bankofamerica"],
        "Financial",
        "bank",
    ),
}
