"""
Follicle ids: compact hair-profile fingerprints and their similarity.

A follicle id encodes the five categorical hair attributes as
``T-P-D-Th-Dm`` (e.g. ``CU-H-M-F-N``). Identical attribute tuples always
produce identical ids, so ids can be compared across users without
re-deriving the attributes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from .models.profile import HairAnalysis
from .weights import FOLLICLE_WEIGHTS, SIMILARITY_THRESHOLDS, TOTAL_FOLLICLE_WEIGHT

logger = logging.getLogger(__name__)


# attribute -> (value -> code, default code)
_ENCODE: Dict[str, tuple] = {
    "hair_type": (
        {"straight": "ST", "wavy": "WV", "curly": "CU", "coily": "CO", "protective": "PR"},
        "CU",
    ),
    "porosity": ({"low": "L", "medium": "M", "high": "H"}, "M"),
    "density": ({"low": "L", "medium": "M", "high": "H"}, "M"),
    "thickness": ({"fine": "F", "medium": "M", "coarse": "C"}, "M"),
    "damage": ({"none": "N", "some": "S", "severe": "V"}, "N"),
}

_DECODE: Dict[str, Dict[str, str]] = {
    name: {code: value for value, code in mapping.items()}
    for name, (mapping, _) in _ENCODE.items()
}

_DISPLAY: Dict[str, Dict[str, str]] = {
    "hair_type": {
        "ST": "straight hair",
        "WV": "wavy hair",
        "CU": "curly hair",
        "CO": "coily hair",
        "PR": "protective styles",
    },
    "porosity": {"L": "low porosity", "M": "medium porosity", "H": "high porosity"},
    "density": {"L": "low density", "M": "medium density", "H": "high density"},
    "thickness": {"F": "fine strands", "M": "medium strands", "C": "coarse strands"},
    "damage": {"N": "healthy hair", "S": "some damage", "V": "severe damage"},
}

_POSITIONS = list(FOLLICLE_WEIGHTS.keys())
_POSITION_WEIGHTS = [FOLLICLE_WEIGHTS[name] for name in _POSITIONS]


def generate_follicle_id(analysis: Union[HairAnalysis, Mapping[str, Any]]) -> str:
    """Build a follicle id from a hair analysis.

    Unknown or missing attribute values fall back to the most common
    profile (curly, medium, medium, medium, none).
    """
    if isinstance(analysis, HairAnalysis):
        values = analysis.model_dump()
    else:
        values = dict(analysis)

    parts = []
    for name in _POSITIONS:
        mapping, default = _ENCODE[name]
        parts.append(mapping.get(str(values.get(name, "")).lower(), default))
    return "-".join(parts)


def _split(follicle_id: Optional[str]) -> Optional[list]:
    if not isinstance(follicle_id, str):
        return None
    parts = follicle_id.split("-")
    if len(parts) != len(_POSITIONS):
        return None
    return parts


def decode_follicle_id(follicle_id: str) -> Optional[Dict[str, str]]:
    """Decode a follicle id back into attribute values.

    Returns None when the id is malformed or contains an unknown code.
    """
    parts = _split(follicle_id)
    if parts is None:
        logger.warning(f"Invalid follicle id format: {follicle_id!r}")
        return None

    decoded = {}
    for name, code in zip(_POSITIONS, parts):
        value = _DECODE[name].get(code)
        if value is None:
            logger.warning(f"Invalid follicle id value {code!r} in {follicle_id!r}")
            return None
        decoded[name] = value
    return decoded


def describe_follicle_id(follicle_id: str) -> Optional[Dict[str, str]]:
    """Human-readable phrase per attribute, e.g. {'porosity': 'high porosity'}."""
    parts = _split(follicle_id)
    if parts is None:
        logger.warning(f"Invalid follicle id format: {follicle_id!r}")
        return None
    return {
        name: _DISPLAY[name].get(code, _DISPLAY[name][_ENCODE[name][1]])
        for name, code in zip(_POSITIONS, parts)
    }


def format_follicle_id(follicle_id: str) -> str:
    """One-line profile summary, e.g. 'Curly hair • High porosity • ...'."""
    described = describe_follicle_id(follicle_id)
    if not described:
        return "Unknown hair profile"
    return " • ".join(phrase[:1].upper() + phrase[1:] for phrase in described.values())


def follicle_similarity(follicle_a: str, follicle_b: str) -> float:
    """Weighted positional similarity of two follicle ids in [0, 1].

    Symmetric, 1.0 for identical ids, 0.0 when every attribute differs or
    either (non-identical) id is malformed.
    """
    if follicle_a == follicle_b:
        return 1.0

    parts_a = _split(follicle_a)
    parts_b = _split(follicle_b)
    if parts_a is None or parts_b is None:
        logger.warning(f"Invalid follicle id format: {follicle_a!r}, {follicle_b!r}")
        return 0.0

    matched = sum(
        weight
        for weight, code_a, code_b in zip(_POSITION_WEIGHTS, parts_a, parts_b)
        if code_a == code_b
    )
    return min(matched / TOTAL_FOLLICLE_WEIGHT, 1.0)


def similarity_bucket(similarity: float) -> str:
    """Similarity band: 'exact', 'very_high', 'high' or 'medium'."""
    if similarity >= SIMILARITY_THRESHOLDS["exact"]:
        return "exact"
    if similarity > SIMILARITY_THRESHOLDS["very_high"]:
        return "very_high"
    if similarity > SIMILARITY_THRESHOLDS["high"]:
        return "high"
    return "medium"
