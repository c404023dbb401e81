"""Catalog item domain model.

An :class:`ItemRecord` is the canonical metadata for one game, keyed by its
numeric ``item_id``. Records are built from the loosely typed store payload
(:meth:`ItemRecord.from_store_payload`) and round-trip through the document
store as plain dictionaries (:meth:`ItemRecord.to_document` /
:meth:`ItemRecord.from_document`).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

REFERENCE_CURRENCY = "USD"

_CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}


def format_minor_units(amount: int, currency: str) -> str:
    """Render an amount in minor units the way the store displays it."""
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    if symbol:
        return f"{symbol}{amount / 100:.2f}"
    return f"{amount / 100:.2f} {currency.upper()}"


def _as_int(value: Any, default: int | None = None) -> int | None:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _str_list(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [str(v) for v in values if v is not None and str(v).strip()]


def _descriptions(values: Any) -> list[str]:
    """Extract ``description`` from ``[{"id": .., "description": ..}]`` lists."""
    if not isinstance(values, list):
        return []
    result: list[str] = []
    for entry in values:
        if isinstance(entry, Mapping):
            text = _as_str(entry.get("description"))
            if text:
                result.append(text)
    return result


def _requirements(value: Any) -> dict[str, str] | None:
    # The store sends an empty list instead of an object when there is nothing
    # to report.
    if not isinstance(value, Mapping):
        return None
    cleaned = {
        key: str(value[key])
        for key in ("minimum", "recommended")
        if value.get(key)
    }
    return cleaned or None


@dataclass
class PriceQuote:
    """A price in integer minor units of one currency."""

    currency: str
    initial: int
    final: int
    discount_percent: int = 0
    initial_formatted: str = ""
    final_formatted: str = ""

    @classmethod
    def from_payload(cls, data: Any) -> "PriceQuote | None":
        if not isinstance(data, Mapping):
            return None
        currency = _as_str(data.get("currency"))
        if currency is None:
            return None
        final = _as_int(data.get("final"), 0) or 0
        initial = _as_int(data.get("initial"), final) or 0
        return cls(
            currency=currency.upper(),
            initial=initial,
            final=final,
            discount_percent=_as_int(data.get("discount_percent"), 0) or 0,
            initial_formatted=_as_str(data.get("initial_formatted")) or "",
            final_formatted=_as_str(data.get("final_formatted")) or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "initial": self.initial,
            "final": self.final,
            "discount_percent": self.discount_percent,
            "initial_formatted": self.initial_formatted,
            "final_formatted": self.final_formatted,
        }

    def convert(self, rate: float, currency: str) -> None:
        """Rewrite amounts, currency and display strings in place."""
        self.initial = int(round(self.initial * rate))
        self.final = int(round(self.final * rate))
        self.currency = currency.upper()
        self.initial_formatted = format_minor_units(self.initial, self.currency)
        self.final_formatted = format_minor_units(self.final, self.currency)


@dataclass
class Platforms:
    windows: bool = False
    mac: bool = False
    linux: bool = False

    @classmethod
    def from_payload(cls, data: Any) -> "Platforms":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            windows=bool(_as_bool(data.get("windows"))),
            mac=bool(_as_bool(data.get("mac"))),
            linux=bool(_as_bool(data.get("linux"))),
        )

    def to_dict(self) -> dict[str, bool]:
        return {"windows": self.windows, "mac": self.mac, "linux": self.linux}


@dataclass
class Ownership:
    """Owner identities per provider namespace (``steam``, ``epic``...)."""

    owners: dict[str, set[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Ownership":
        if not isinstance(data, Mapping):
            return cls()
        owners: dict[str, set[str]] = {}
        for provider, values in data.items():
            if isinstance(values, list):
                owners[str(provider)] = {str(v) for v in values if v is not None}
        return cls(owners=owners)

    def to_dict(self) -> dict[str, list[str]]:
        return {provider: sorted(ids) for provider, ids in sorted(self.owners.items())}

    def owners_for(self, provider: str) -> set[str]:
        return set(self.owners.get(provider, set()))

    def merge(self, provider: str, owner_ids: Iterable[str]) -> bool:
        """Add owners without removing any. Returns True if the set grew."""
        current = self.owners.setdefault(provider, set())
        before = len(current)
        current.update(str(owner_id) for owner_id in owner_ids)
        return len(current) != before

    def replace(self, provider: str, owner_ids: Iterable[str]) -> None:
        self.owners[provider] = {str(owner_id) for owner_id in owner_ids}

    def copy(self) -> "Ownership":
        return Ownership(owners={p: set(ids) for p, ids in self.owners.items()})


@dataclass
class ItemRecord:
    """Canonical metadata for one catalog item."""

    item_id: int
    name: str | None = None
    item_type: str | None = None
    is_free: bool | None = None
    short_description: str | None = None
    detailed_description: str | None = None
    header_image: str | None = None
    capsule_image: str | None = None
    background: str | None = None
    website: str | None = None
    developers: list[str] = field(default_factory=list)
    publishers: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    screenshots: list[str] = field(default_factory=list)
    movies: list[str] = field(default_factory=list)
    release_date: str | None = None
    coming_soon: bool | None = None
    metacritic_score: int | None = None
    pc_requirements: dict[str, str] | None = None
    mac_requirements: dict[str, str] | None = None
    linux_requirements: dict[str, str] | None = None
    platforms: Platforms = field(default_factory=Platforms)
    price: PriceQuote | None = None
    last_modified: str | None = None
    ownership: Ownership = field(default_factory=Ownership)

    @classmethod
    def from_store_payload(cls, data: Mapping[str, Any]) -> "ItemRecord":
        """Build a record from the ``data`` object of a catalog detail response.

        Unknown keys are ignored and every optional key may be missing. Raises
        ``ValueError`` only when the payload carries no usable identifier.
        """
        item_id = _as_int(data.get("steam_appid"))
        if item_id is None:
            raise ValueError("catalog payload has no steam_appid")

        release = data.get("release_date")
        release = release if isinstance(release, Mapping) else {}
        metacritic = data.get("metacritic")
        metacritic = metacritic if isinstance(metacritic, Mapping) else {}

        screenshots = []
        for shot in _as_list(data.get("screenshots")):
            if isinstance(shot, Mapping) and shot.get("path_full"):
                screenshots.append(str(shot["path_full"]))

        movies = []
        for movie in _as_list(data.get("movies")):
            if not isinstance(movie, Mapping):
                continue
            mp4 = movie.get("mp4")
            if isinstance(mp4, Mapping) and mp4.get("max"):
                movies.append(str(mp4["max"]))

        return cls(
            item_id=item_id,
            name=_as_str(data.get("name")),
            item_type=_as_str(data.get("type")),
            is_free=_as_bool(data.get("is_free")),
            short_description=_as_str(data.get("short_description")),
            detailed_description=_as_str(data.get("detailed_description")),
            header_image=_as_str(data.get("header_image")),
            capsule_image=_as_str(data.get("capsule_image")),
            background=_as_str(data.get("background")),
            website=_as_str(data.get("website")),
            developers=_str_list(data.get("developers")),
            publishers=_str_list(data.get("publishers")),
            genres=_descriptions(data.get("genres")),
            categories=_descriptions(data.get("categories")),
            screenshots=screenshots,
            movies=movies,
            release_date=_as_str(release.get("date")),
            coming_soon=_as_bool(release.get("coming_soon")),
            metacritic_score=_as_int(metacritic.get("score")),
            pc_requirements=_requirements(data.get("pc_requirements")),
            mac_requirements=_requirements(data.get("mac_requirements")),
            linux_requirements=_requirements(data.get("linux_requirements")),
            platforms=Platforms.from_payload(data.get("platforms")),
            price=PriceQuote.from_payload(data.get("price_overview")),
        )

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ItemRecord":
        """Rebuild a record from a stored document."""
        item_id = _as_int(document.get("item_id"))
        if item_id is None:
            raise ValueError("stored document has no item_id")
        return cls(
            item_id=item_id,
            name=document.get("name"),
            item_type=document.get("item_type"),
            is_free=document.get("is_free"),
            short_description=document.get("short_description"),
            detailed_description=document.get("detailed_description"),
            header_image=document.get("header_image"),
            capsule_image=document.get("capsule_image"),
            background=document.get("background"),
            website=document.get("website"),
            developers=list(document.get("developers") or []),
            publishers=list(document.get("publishers") or []),
            genres=list(document.get("genres") or []),
            categories=list(document.get("categories") or []),
            screenshots=list(document.get("screenshots") or []),
            movies=list(document.get("movies") or []),
            release_date=document.get("release_date"),
            coming_soon=document.get("coming_soon"),
            metacritic_score=document.get("metacritic_score"),
            pc_requirements=document.get("pc_requirements"),
            mac_requirements=document.get("mac_requirements"),
            linux_requirements=document.get("linux_requirements"),
            platforms=Platforms.from_payload(document.get("platforms")),
            price=PriceQuote.from_payload(document.get("price_overview")),
            last_modified=document.get("last_modified"),
            ownership=Ownership.from_dict(document.get("owned_by")),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "item_type": self.item_type,
            "is_free": self.is_free,
            "short_description": self.short_description,
            "detailed_description": self.detailed_description,
            "header_image": self.header_image,
            "capsule_image": self.capsule_image,
            "background": self.background,
            "website": self.website,
            "developers": list(self.developers),
            "publishers": list(self.publishers),
            "genres": list(self.genres),
            "categories": list(self.categories),
            "screenshots": list(self.screenshots),
            "movies": list(self.movies),
            "release_date": self.release_date,
            "coming_soon": self.coming_soon,
            "metacritic_score": self.metacritic_score,
            "pc_requirements": self.pc_requirements,
            "mac_requirements": self.mac_requirements,
            "linux_requirements": self.linux_requirements,
            "platforms": self.platforms.to_dict(),
            "price_overview": self.price.to_dict() if self.price else None,
            "last_modified": self.last_modified,
            "owned_by": self.ownership.to_dict(),
        }
