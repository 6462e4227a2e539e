"""
Configuration module for hand ROM assessment.

Contains:
- clinical_guidelines: Normal ranges and grading thresholds
- scoring_profiles: Threshold bundles injected into the calculators
"""

from .clinical_guidelines import (
    FINGER_JOINT_NORMALS,
    NORMAL_TAM,
    TAM_GRADES,
    KAPANDJI_MAX_SCORE,
    KAPANDJI_GRADES,
    WRIST_NORMALS,
    WRIST_FLEXION_EXTENSION_GRADES,
    WRIST_DEVIATION_GRADES,
    percent_of_normal,
    grade_tam,
)

from .scoring_profiles import (
    ScoringProfile,
    STANDARD_PROFILE,
    LEGACY_PROFILE,
    SCORING_PROFILES,
    get_profile,
)

__all__ = [
    # Clinical guidelines
    'FINGER_JOINT_NORMALS',
    'NORMAL_TAM',
    'TAM_GRADES',
    'KAPANDJI_MAX_SCORE',
    'KAPANDJI_GRADES',
    'WRIST_NORMALS',
    'WRIST_FLEXION_EXTENSION_GRADES',
    'WRIST_DEVIATION_GRADES',
    'percent_of_normal',
    'grade_tam',
    # Scoring profiles
    'ScoringProfile',
    'STANDARD_PROFILE',
    'LEGACY_PROFILE',
    'SCORING_PROFILES',
    'get_profile',
]
