# scripts/regenerate_raw_demo_data.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List

import numpy as np
import pandas as pd


# ============================================================
# Config
# ============================================================

@dataclass
class GenConfig:
    seed: int = 42

    n_policies: int = 600
    first_year: int = 2019
    last_year: int = 2026

    # share of rows with messy encodings
    serial_date_rate: float = 0.10      # Excel serial instead of DD/MM/YYYY
    missing_incurred_rate: float = 0.30 # INC_CLAIM blank -> paid + outstanding
    fronting_rate: float = 0.03
    direct_rate: float = 0.15           # broker == cedant

    # renewal outcome feed
    outcome_rate: float = 0.70          # expired policies with a recorded outcome
    renewed_share: float = 0.65

    fx_rate: float = 3.25               # FC per KD (flat, illustrative)


# ============================================================
# Reference data (synthetic)
# ============================================================

CLASSES = {
    "FI": ["Property", "Industrial All Risk", "Householders"],
    "EG": ["Onshore Energy", "Offshore Energy"],
    "CA": ["Cargo", "Stock Throughput"],
    "HU": ["Hull & Machinery", "Yacht"],
    "MA": ["Marine Liability", "Ports & Terminals"],
    "AC": ["General Liability", "Motor", "Medical Malpractice"],
    "EN": ["CAR", "EAR", "Machinery Breakdown"],
    "LI": ["Group Life", "Credit Life"],
}
CLASS_SPELLINGS = {
    "FI": ["FI", "Fire", "FIRE", "fi fire"],
    "EG": ["EG", "Energy"],
    "CA": ["CA", "Cargo"],
    "HU": ["HU", "Hull"],
    "MA": ["Marine", "MA Marine"],
    "AC": ["AC", "Casualty"],
    "EN": ["EN", "Engineering"],
    "LI": ["LI", "Life"],
}
CLASS_WEIGHTS = [0.28, 0.10, 0.10, 0.07, 0.05, 0.18, 0.16, 0.06]

COUNTRIES = [
    # (spellings, bp scope, territories)
    (["Kuwait", "KUWAIT", "State of Kuwait"], "1- GCC", []),
    (["Saudi Arabia", "KSA", "Kingdom of Saudi Arabia"], "1- GCC", []),
    (["UAE", "United Arab Emirates", "U.A.E"], "1- GCC",
     ["Dubai", "Abu Dhabi", "Ras Al Kheimah, UAE", "RAK", "Sharjah", "Ajman", "Fujairah", "Umm Al Quwain"]),
    (["Qatar"], "1- GCC", []),
    (["Bahrain"], "1- GCC", []),
    (["Oman", "Sultanate of Oman"], "1- GCC", []),
    (["Jordan"], "13- Middle East", []),
    (["Lebanon"], "13- Middle East", []),
    (["Egypt", "EGYPT"], "3- North Africa", []),
    (["Morocco"], "3- North Africa", []),
    (["Turkey", "Türkiye"], "8- CEE", []),
    (["India"], "11- World Wide", []),
    (["Malaysia"], "11- World Wide", []),
]
COUNTRY_WEIGHTS = [0.22, 0.14, 0.16, 0.07, 0.05, 0.05, 0.05, 0.03, 0.06, 0.04, 0.05, 0.05, 0.03]

BROKERS = ["Aon", "Marsh", "WTW", "Gallagher Re", "Howden Re", "Guy Carpenter", "Lockton Re"]
CEDANTS = [
    "Gulf Insurance Group", "Warba Insurance", "Al Ahleia Insurance", "Tawuniya",
    "Oman Insurance", "Qatar Insurance", "Bahrain Kuwait Insurance", "Misr Insurance",
    "Arab Orient Insurance", "Sompo Japan Sigorta", "New India Assurance",
]
OFFICES = ["Kuwait", "Dubai", "Cairo", "Kuala Lumpur"]
EXT_TYPES = ["FAC", "TTY", "XOL"]
OUTCOME_TEXT = {
    True: ["Renewed", "RENEWED", "renewed"],
    False: ["Not Renewed", "Non-Renewed", "Expired", "Cancelled", "Lapsed"],
}


# ============================================================
# Helpers
# ============================================================

def _rng(cfg: GenConfig) -> np.random.Generator:
    return np.random.default_rng(cfg.seed)

def _root() -> Path:
    return Path(__file__).resolve().parents[1]

def _raw_dir() -> Path:
    d = _root() / "data" / "raw"
    d.mkdir(parents=True, exist_ok=True)
    return d

def _pick(r: np.random.Generator, items: List, weights: List[float] | None = None):
    if weights is None:
        return items[int(r.integers(0, len(items)))]
    w = np.array(weights, dtype=float)
    return items[int(r.choice(len(items), p=w / w.sum()))]

def _excel_serial(d: date) -> int:
    days = (d - date(1899, 12, 30)).days
    return days

def _fmt_date(r: np.random.Generator, d: date, cfg: GenConfig) -> str:
    if r.random() < cfg.serial_date_rate:
        return str(_excel_serial(d))
    return d.strftime("%d/%m/%Y")

def _fmt_amount(x: float) -> str:
    # ledger exports carry thousands separators
    return f"{x:,.2f}"


# ============================================================
# Generators
# ============================================================

def gen_ledger(cfg: GenConfig, today: date) -> pd.DataFrame:
    r = _rng(cfg)
    class_keys = list(CLASSES)
    rows = []

    for i in range(1, cfg.n_policies + 1):
        uy = int(r.integers(cfg.first_year, cfg.last_year + 1))
        inception = date(uy, 1, 1) + timedelta(days=int(r.integers(0, 365)))
        expiry = inception + timedelta(days=364)

        cls = _pick(r, class_keys, CLASS_WEIGHTS)
        spellings, bp_scope, territories = _pick(r, COUNTRIES, COUNTRY_WEIGHTS)
        country = _pick(r, spellings)
        territory = _pick(r, territories) if territories else country

        cedant = _pick(r, CEDANTS)
        broker = cedant if r.random() < cfg.direct_rate else _pick(r, BROKERS)

        name = f"{cedant} {_pick(r, CLASSES[cls])} {'Treaty' if r.random() < 0.5 else 'Programme'}"
        if r.random() < cfg.fronting_rate:
            name = f"{name} (Fronting)"

        premium = float(np.round(r.lognormal(mean=11.0, sigma=1.1), 2))
        acq = premium * float(r.uniform(0.05, 0.25))
        loss_ratio = float(r.gamma(shape=2.0, scale=0.3))
        incurred = premium * loss_ratio
        paid_share = float(r.uniform(0.2, 1.0)) if expiry < today else float(r.uniform(0.0, 0.5))
        paid = incurred * paid_share
        outstanding = incurred - paid
        max_liab = premium * float(r.uniform(8, 40))

        inc_text = "" if r.random() < cfg.missing_incurred_rate else _fmt_amount(incurred)

        rows.append({
            "Srl": i,
            "Org.Insured/Trty Name": name,
            "UY": uy,
            "Com Date": _fmt_date(r, inception, cfg),
            "Exp Date": _fmt_date(r, expiry, cfg),
            "Renewal Date": (expiry + timedelta(days=1)).strftime("%d-%m-%Y"),
            "UW_CLASS": _pick(r, CLASS_SPELLINGS[cls]),
            "Sub Class": _pick(r, CLASSES[cls]),
            "Ext Type": _pick(r, EXT_TYPES, [0.45, 0.35, 0.20]),
            "Loc": _pick(r, OFFICES, [0.5, 0.25, 0.15, 0.10]),
            "Brk Name": broker,
            "Ced Name": cedant,
            "Country": country,
            "Ced Territory": territory,
            "Bp Scope": bp_scope,
            "GRS_PREM (KD)": _fmt_amount(premium),
            "ACQ_COST (KD)": _fmt_amount(acq),
            "PAID_CLAIMS (KD)": _fmt_amount(paid),
            "OS_CLAIM (KD)": _fmt_amount(outstanding),
            "INC_CLAIM (KD)": inc_text,
            "MaxLiability (KD)": _fmt_amount(max_liab),
            "Gross UW Prem": _fmt_amount(premium * cfg.fx_rate),
            "Gross Actual Acq": _fmt_amount(acq * cfg.fx_rate),
            "Gross Paid Claims": _fmt_amount(paid * cfg.fx_rate),
            "Gross OS Loss": _fmt_amount(outstanding * cfg.fx_rate),
            "MaxLiability (FC)": _fmt_amount(max_liab * cfg.fx_rate),
        })

    return pd.DataFrame(rows)


def gen_renewals(cfg: GenConfig, ledger: pd.DataFrame, today: date) -> pd.DataFrame:
    """Outcome feed for policies that have already expired."""
    r = np.random.default_rng(cfg.seed + 1)
    rows = []
    for srl, renewal in zip(ledger["Srl"], ledger["Renewal Date"]):
        expiry = datetime.strptime(renewal, "%d-%m-%Y").date() - timedelta(days=1)
        if expiry >= today or r.random() > cfg.outcome_rate:
            continue
        renewed = bool(r.random() < cfg.renewed_share)
        rows.append({"Srl": srl, "PolicyStatus": _pick(r, OUTCOME_TEXT[renewed])})
    return pd.DataFrame(rows, columns=["Srl", "PolicyStatus"])


# ============================================================
# Main
# ============================================================

def main() -> None:
    cfg = GenConfig()
    today = date.today()
    out = _raw_dir()

    ledger = gen_ledger(cfg, today)
    renewals = gen_renewals(cfg, ledger, today)

    ledger.to_csv(out / "ledger.csv", index=False)
    renewals.to_csv(out / "renewals.csv", index=False)

    print(f"✅ ledger.csv: {len(ledger):,} rows")
    print(f"✅ renewals.csv: {len(renewals):,} rows")
    print(f"📁 Output: {out}")


if __name__ == "__main__":
    main()
