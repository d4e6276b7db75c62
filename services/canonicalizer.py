"""
services/canonicalizer.py

Maps free-text ledger fields onto canonical keys:
- country names (alias table, otherwise trimmed + title-cased)
- territories / states (federated countries such as the UAE get their own
  state alias table; country names never come back as a state)
- classes of business (alias table, otherwise trimmed + title-cased)
- region / hub derived from a business-partner scope code or the country

Every function is total: empty input gives "" (or None for territories),
nothing raises. Canonicalization is case-insensitive and idempotent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple


# =====================================================
# Configuration
# =====================================================

@dataclass(frozen=True)
class MatchConfig:
    """
    Controls fuzzy containment matching.
    Containment is only attempted when the shorter operand has at least
    `min_containment_length` characters after normalization.
    """
    min_containment_length: int = 3


# =====================================================
# Built-in tables (config/mappings.yaml may extend them)
# =====================================================

DEFAULT_COUNTRY_ALIASES: Dict[str, str] = {
    # Middle East
    "ksa": "Saudi Arabia",
    "saudi": "Saudi Arabia",
    "saudi arabia": "Saudi Arabia",
    "kingdom of saudi arabia": "Saudi Arabia",
    "uae": "United Arab Emirates",
    "u.a.e": "United Arab Emirates",
    "united arab emirates": "United Arab Emirates",
    "kurdistan": "Iraq",
    "state of qatar": "Qatar",
    # Americas
    "usa": "United States of America",
    "u.s.a": "United States of America",
    "us": "United States of America",
    "u.s": "United States of America",
    "united states": "United States of America",
    "united states of america": "United States of America",
    "america": "United States of America",
    # Europe
    "uk": "United Kingdom",
    "u.k": "United Kingdom",
    "united kingdom": "United Kingdom",
    "england": "United Kingdom",
    # Other shorthands
    "ivory coast": "Côte d'Ivoire",
    "cote divoire": "Côte d'Ivoire",
    "cote d ivoire": "Côte d'Ivoire",
    "drc": "Democratic Republic of the Congo",
    "congo": "Republic of the Congo",
    "south korea": "South Korea",
    "korea republic of": "South Korea",
    "north korea": "North Korea",
    "peoples republic of china": "China",
    "hongkong": "Hong Kong",
    "hk": "Hong Kong",
    "burma": "Myanmar",
}

# Countries whose territories are states / emirates with their own aliases
DEFAULT_FEDERATED_STATES: Dict[str, Dict[str, str]] = {
    "United Arab Emirates": {
        "dubai": "Dubai",
        "abu dhabi": "Abu Dhabi",
        "abudhabi": "Abu Dhabi",
        "abu-dhabi": "Abu Dhabi",
        "sharjah": "Sharjah",
        "ajman": "Ajman",
        "ras al khaimah": "Ras Al Khaimah",
        "ras al-khaimah": "Ras Al Khaimah",
        "ras alkhaimah": "Ras Al Khaimah",
        "rasal khaimah": "Ras Al Khaimah",
        "ras al kheimah": "Ras Al Khaimah",
        "ras al-kheimah": "Ras Al Khaimah",
        "ras alkheimah": "Ras Al Khaimah",
        "rasal kheimah": "Ras Al Khaimah",
        "ras al khaymah": "Ras Al Khaimah",
        "ras al-khaymah": "Ras Al Khaimah",
        "ras alkhaymah": "Ras Al Khaimah",
        "rasal khaymah": "Ras Al Khaimah",
        "rak": "Ras Al Khaimah",
        "r.a.k": "Ras Al Khaimah",
        "r a k": "Ras Al Khaimah",
        "fujairah": "Fujairah",
        "umm al quwain": "Umm Al Quwain",
        "umm al-quwain": "Umm Al Quwain",
        "umm alquwain": "Umm Al Quwain",
        "uaq": "Umm Al Quwain",
    },
}

# Names that must never be reported as a state / territory
DEFAULT_COUNTRY_NAMES: List[str] = [
    # Middle East & Gulf
    "bahrain", "kuwait", "lebanon", "qatar", "singapore", "oman", "jordan",
    "egypt", "iraq", "syria", "yemen",
    # Asia
    "india", "pakistan", "bangladesh", "sri lanka", "nepal", "afghanistan",
    "china", "japan", "thailand", "malaysia", "indonesia", "philippines",
    "vietnam", "myanmar", "cambodia", "laos",
    # Americas
    "canada", "mexico", "brazil", "argentina",
    # Europe
    "france", "germany", "italy", "spain", "portugal", "netherlands", "belgium",
    "switzerland", "austria", "sweden", "norway", "denmark", "finland", "poland",
    "russia", "turkey", "greece",
    # Other
    "israel", "iran", "australia", "new zealand", "south africa", "nigeria",
    "kenya", "morocco", "algeria", "tunisia", "libya",
]

DEFAULT_CLASS_ALIASES: Dict[str, str] = {
    "fi": "Fire",
    "fire": "Fire",
    "property": "Fire",
    "fi property": "Fire",
    "fire and property": "Fire",
    "eg": "Energy",
    "energy": "Energy",
    "eg energy": "Energy",
    "ca": "Cargo",
    "cargo": "Cargo",
    "ca cargo": "Cargo",
    "marine cargo": "Cargo",
    "hu": "Hull",
    "hull": "Hull",
    "hu hull": "Hull",
    "marine hull": "Hull",
    "marine": "Marine",
    "ac": "Casualty",
    "casualty": "Casualty",
    "ac casualty": "Casualty",
    "en": "Engineering",
    "engineering": "Engineering",
    "en engineering": "Engineering",
    "li": "Life",
    "life": "Life",
    "li life": "Life",
}

UNKNOWN_REGION = "Unknown"

# (substring in bp scope, region)
_BP_SCOPE_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("gcc", "1-"), "GCC"),
    (("world", "11-"), "World-Wide"),
    (("14", "arab"), "Arab"),
    (("13",), "Middle East"),
    (("3-", "north"), "North Africa"),
    (("8-", "cee"), "CEE Region"),
]

# (substring in country, region)
_COUNTRY_REGION_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("kuwait", "saudi arabia", "uae", "united arab emirates", "qatar", "bahrain", "oman"), "GCC"),
    (("jordan", "lebanon", "syria", "iraq", "yemen"), "Middle East"),
    (("algeria", "egypt", "morocco", "tunisia", "libya"), "North Africa"),
    (("turkey", "czech", "poland", "germany", "france", "united kingdom", "spain", "italy"), "Europe"),
    (("china", "india", "japan", "singapore", "malaysia", "thailand", "indonesia"), "Asia"),
]


# =====================================================
# String helpers
# =====================================================

_PUNCT = re.compile(r"[().,']")
_SPACES = re.compile(r"\s+")
_MATCH_STRIP = re.compile(r"[-\s,;]")


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:
        return ""
    return str(value)


def clean_key(value) -> str:
    """Lookup key: lower-cased, punctuation dropped, whitespace collapsed."""
    text = _text(value).strip().lower()
    text = _PUNCT.sub("", text)
    return _SPACES.sub(" ", text).strip()


def title_case(value) -> str:
    words = _text(value).strip().lower().split()
    return " ".join(w.capitalize() for w in words)


def contains_either(a: str, b: str, min_length: int = 3) -> bool:
    """Symmetric containment, refused when the shorter side is too short."""
    if not a or not b:
        return False
    if min(len(a), len(b)) < min_length:
        return False
    return a in b or b in a


# =====================================================
# Canonicalizer
# =====================================================

class Canonicalizer:
    """
    Holds the alias tables and exposes the canonicalization operations.
    Instances are immutable after construction and safe to share.
    """

    def __init__(
        self,
        country_aliases: Optional[Dict[str, str]] = None,
        federated_states: Optional[Dict[str, Dict[str, str]]] = None,
        country_names: Optional[Iterable[str]] = None,
        class_aliases: Optional[Dict[str, str]] = None,
        config: MatchConfig = MatchConfig(),
    ) -> None:
        self.config = config

        aliases = dict(DEFAULT_COUNTRY_ALIASES if country_aliases is None else country_aliases)
        self._countries: Dict[str, str] = {}
        for alias, canonical in aliases.items():
            self._countries[clean_key(alias)] = canonical
        # canonical values map to themselves
        for canonical in set(aliases.values()):
            self._countries.setdefault(clean_key(canonical), canonical)

        names = set(clean_key(n) for n in (DEFAULT_COUNTRY_NAMES if country_names is None else country_names))
        names |= set(self._countries.keys())
        self._country_names = names

        states = DEFAULT_FEDERATED_STATES if federated_states is None else federated_states
        self._states: Dict[str, Dict[str, str]] = {}
        self._suffixes: Dict[str, List[str]] = {}
        for country, table in states.items():
            key = self.country(country)
            lookup = {clean_key(a): s for a, s in table.items()}
            for s in set(table.values()):
                lookup.setdefault(clean_key(s), s)
            # spellings of one country share a single state table
            self._states.setdefault(key, {}).update(lookup)

            tokens = set(self._suffixes.get(key, [])) | {country.lower(), key.lower()}
            tokens |= {a.lower() for a, c in aliases.items() if c == key}
            # longest first so "united arab emirates" is stripped before "uae"
            self._suffixes[key] = sorted(tokens, key=len, reverse=True)

        classes = dict(DEFAULT_CLASS_ALIASES if class_aliases is None else class_aliases)
        self._classes: Dict[str, str] = {clean_key(a): c for a, c in classes.items()}
        for canonical in set(classes.values()):
            self._classes.setdefault(clean_key(canonical), canonical)

    # -----------------------------
    # Construction from YAML
    # -----------------------------

    @classmethod
    def from_mappings(cls, mappings: Optional[dict], config: Optional[MatchConfig] = None) -> "Canonicalizer":
        """
        Build from config/mappings.yaml content. YAML tables extend the
        built-in defaults; entries with the same key override them.
        """
        mappings = mappings or {}

        country_aliases = dict(DEFAULT_COUNTRY_ALIASES)
        country_aliases.update(mappings.get("country_aliases") or {})

        federated = {k: dict(v) for k, v in DEFAULT_FEDERATED_STATES.items()}
        for country, table in (mappings.get("federated_states") or {}).items():
            federated.setdefault(country, {}).update(table or {})

        country_names = list(DEFAULT_COUNTRY_NAMES) + list(mappings.get("country_names") or [])

        class_aliases = dict(DEFAULT_CLASS_ALIASES)
        class_aliases.update(mappings.get("class_aliases") or {})

        if config is None:
            min_len = (mappings.get("matching") or {}).get("min_containment_length")
            config = MatchConfig(min_containment_length=int(min_len)) if min_len is not None else MatchConfig()

        return cls(
            country_aliases=country_aliases,
            federated_states=federated,
            country_names=country_names,
            class_aliases=class_aliases,
            config=config,
        )

    # -----------------------------
    # Country
    # -----------------------------

    def country(self, raw) -> str:
        """Canonical country key; "" for empty input."""
        key = clean_key(raw)
        if not key:
            return ""
        if key in self._countries:
            return self._countries[key]
        return title_case(raw)

    def is_country_name(self, raw) -> bool:
        key = clean_key(raw)
        return bool(key) and key in self._country_names

    def is_federated(self, country) -> bool:
        return self.country(country) in self._states

    # -----------------------------
    # Territory / state
    # -----------------------------

    def _strip_country_suffix(self, text: str, country_key: str) -> str:
        for token in self._suffixes.get(country_key, []):
            t = re.escape(token)
            text = re.sub(rf"[,;]\s*{t}$", "", text, flags=re.IGNORECASE)
            text = re.sub(rf"\s*-\s*{t}$", "", text, flags=re.IGNORECASE)
        return text.strip()

    def normalize_for_matching(self, value, country=None) -> str:
        """Compact form used by containment matching."""
        text = _MATCH_STRIP.sub("", _text(value).strip().lower())
        country_key = self.country(country) if country else ""
        for token in self._suffixes.get(country_key, []):
            compact = _MATCH_STRIP.sub("", token)
            if compact and text.endswith(compact) and text != compact:
                text = text[: -len(compact)]
        return text

    def _match_state(self, text: str, country_key: str) -> Optional[str]:
        table = self._states[country_key]

        # exact alias wins
        key = clean_key(text)
        if key in table:
            return table[key]

        # then containment, longest alias first for a deterministic winner
        probe = self.normalize_for_matching(text, country_key)
        for alias in sorted(table, key=len, reverse=True):
            candidate = self.normalize_for_matching(alias, country_key)
            if contains_either(probe, candidate, self.config.min_containment_length):
                return table[alias]
        return None

    def territory(self, raw, country=None) -> Optional[str]:
        """
        Canonical territory for a record in `country`, or None when the
        value is empty or is itself a country name.
        """
        text = _text(raw).strip()
        if not text:
            return None

        country_key = self.country(country) if country else ""

        if country_key in self._states:
            remainder = self._strip_country_suffix(text, country_key)
            if not remainder:
                return None
            state = self._match_state(remainder, country_key)
            if state is not None:
                return state
            if self.is_country_name(remainder):
                return None
            return title_case(remainder)

        if self.is_country_name(text):
            return None
        return title_case(text)

    def matches_territory(self, record_territory, selected, country=None) -> bool:
        """True when a record's raw territory refers to the selected state."""
        if selected is None or _text(selected).strip().lower() in {"", "all"}:
            return True
        if not _text(record_territory).strip():
            return False

        rec = self.territory(record_territory, country)
        sel = self.territory(selected, country) or title_case(selected)
        if rec is not None and rec.lower() == sel.lower():
            return True

        return contains_either(
            self.normalize_for_matching(record_territory, country),
            self.normalize_for_matching(selected, country),
            self.config.min_containment_length,
        )

    # -----------------------------
    # Class of business
    # -----------------------------

    def class_of_business(self, raw) -> str:
        key = clean_key(raw)
        if not key:
            return ""
        if key in self._classes:
            return self._classes[key]
        return title_case(raw)

    # -----------------------------
    # Region / hub
    # -----------------------------

    def region_and_hub(self, bp_scope=None, country=None) -> Tuple[str, str]:
        scope = _text(bp_scope).strip().lower()
        if scope:
            for needles, region in _BP_SCOPE_RULES:
                if any(n in scope for n in needles):
                    return region, region

        name = self.country(country).lower()
        if name:
            for needles, region in _COUNTRY_REGION_RULES:
                if any(n in name for n in needles):
                    return region, region

        return UNKNOWN_REGION, UNKNOWN_REGION


# =====================================================
# Module-level API (built-in tables)
# =====================================================

@lru_cache(maxsize=1)
def default_canonicalizer() -> Canonicalizer:
    return Canonicalizer()


def canonicalize_country(raw) -> str:
    return default_canonicalizer().country(raw)


def canonicalize_territory(raw, country=None) -> Optional[str]:
    return default_canonicalizer().territory(raw, country)


def canonicalize_class(raw) -> str:
    return default_canonicalizer().class_of_business(raw)
