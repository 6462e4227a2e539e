"""
Clinical Guidelines for Hand and Wrist Range of Motion

Reference values used to grade measured ROM against population norms.

Primary References:
- American Society for Surgery of the Hand (ASSH). Clinical Assessment
  Recommendations, TAM method for flexor and extensor tendon outcomes.
- Kapandji A. (1986) "Clinical test of apposition and counter-apposition
  of the thumb." Annales de Chirurgie de la Main, 5(1):67-73.
- American Medical Association. Guides to the Evaluation of Permanent
  Impairment, wrist motion normals.
"""

from typing import Optional


# =============================================================================
# FINGER JOINT NORMALS
# =============================================================================
# Active flexion of each long-finger joint, degrees.

FINGER_JOINT_NORMALS = {
    'mcp': {'min': 70.0, 'max': 90.0, 'normal': 90.0},
    'pip': {'min': 90.0, 'max': 110.0, 'normal': 100.0},
    'dip': {'min': 70.0, 'max': 90.0, 'normal': 80.0},
}

# Normal TAM per finger = MCP + PIP + DIP flexion minus extension deficits
NORMAL_TAM = 260.0

# ASSH TAM grading as percentage of normal
TAM_GRADES = {
    'excellent': 85.0,   # >= 85% of normal
    'good': 70.0,        # 70-84%
    'fair': 50.0,        # 50-69%
                         # < 50% = poor
}


# =============================================================================
# KAPANDJI
# =============================================================================

KAPANDJI_MAX_SCORE = 10

KAPANDJI_GRADES = {
    'normal': 9,         # Opposition to the palmar creases or beyond
    'moderate': 7,       # Reaches the little finger and its base
                         # below = limited
}


# =============================================================================
# WRIST NORMALS
# =============================================================================
# Degrees from neutral.

WRIST_NORMALS = {
    'flexion': 80.0,
    'extension': 70.0,
    'radial_deviation': 20.0,
    'ulnar_deviation': 30.0,
}

WRIST_FLEXION_EXTENSION_GRADES = {
    'normal': {'flexion': 60.0, 'extension': 50.0},
    'moderate': {'flexion': 40.0, 'extension': 30.0},
}

WRIST_DEVIATION_GRADES = {
    'normal': {'radial': 18.0, 'ulnar': 25.0, 'total': 45.0},
    'moderate': {'radial': 12.0, 'ulnar': 18.0, 'total': 30.0},
}

# Display cap when a measurement exceeds its normal value
PERCENT_OF_NORMAL_CAP = 150.0


def percent_of_normal(measured: float, normal: float,
                      cap: Optional[float] = PERCENT_OF_NORMAL_CAP) -> float:
    """
    Express a measurement as a percentage of its normal value.

    Args:
        measured: Measured value in degrees (or score points)
        normal: Population normal for the same measure
        cap: Upper bound on the returned percentage (None = uncapped)

    Returns:
        Percentage (0 when normal is not positive)
    """
    if normal <= 0:
        return 0.0
    percentage = max(0.0, measured) / normal * 100.0
    if cap is not None:
        percentage = min(percentage, cap)
    return percentage


def grade_tam(total_active_rom: float, normal: float = NORMAL_TAM) -> str:
    """ASSH grade ('excellent', 'good', 'fair', 'poor') for one finger's TAM."""
    percentage = percent_of_normal(total_active_rom, normal, cap=None)
    if percentage >= TAM_GRADES['excellent']:
        return 'excellent'
    if percentage >= TAM_GRADES['good']:
        return 'good'
    if percentage >= TAM_GRADES['fair']:
        return 'fair'
    return 'poor'
