"""Per-unit conversions for the DC power flow.

Base quantities:
  S_base (MVA) — fixed system-wide base of 100 MVA
  P_pu = P_MW / S_base
  θ (rad) — phase-shift angles are given in degrees on the line data
"""

from __future__ import annotations

import math

S_BASE_MVA = 100.0


def mw_to_pu(p_mw: float, s_base_mva: float = S_BASE_MVA) -> float:
    """Convert active power from MW to per-unit on the system base."""
    return p_mw / s_base_mva


def pu_to_mw(p_pu: float, s_base_mva: float = S_BASE_MVA) -> float:
    """Convert active power from per-unit back to MW."""
    return p_pu * s_base_mva


def deg_to_rad(angle_deg: float | None) -> float:
    """Phase shift in radians; a missing angle counts as 0."""
    if not angle_deg:
        return 0.0
    return math.radians(angle_deg)
