"""
Scoring Profiles

A ScoringProfile bundles every threshold the ROM, Kapandji and wrist
calculators use, so callers inject one object instead of relying on
module globals.

Two profiles ship:
- standard: extension-deficit corrected TAM, clinical Kapandji targets,
  temporal and visibility validation
- legacy: flexion-only maxima and the MCP-based Kapandji target set,
  kept so historical assessments can be rescored the way they were
  originally computed
"""

from typing import Dict

ROM_METHODS = ('tam_corrected', 'max_flexion')
KAPANDJI_TARGET_SETS = ('clinical', 'legacy')


class ScoringProfile:
    """
    Thresholds and strategy selection for one scoring variant.

    Attributes:
        name: Profile identifier
        rom_method: 'tam_corrected' or 'max_flexion'
        kapandji_targets: 'clinical' or 'legacy'

    Example:
        >>> profile = get_profile('standard').with_overrides(max_change_per_frame=20.0)
        >>> profile.max_change_per_frame
        20.0
    """

    DEFAULTS = {
        # Per-finger tracking confidence gate
        'finger_confidence_threshold': 0.70,

        # Visibility bypass
        'landmark_visibility_threshold': 0.70,
        'finger_visibility_average': 0.80,
        'visible_frame_fraction': 0.80,

        # Temporal consistency
        'max_change_per_frame': 30.0,
        'consistency_window': 3,
        'smoothing_window': 5,
        'min_valid_frames': 10,
        'insufficient_data_quality': 0.3,
        'pass_fraction_weight': 0.6,

        # Tracking confidence from inter-frame displacement
        'max_finger_movement': 0.08,

        # Kapandji
        'kapandji_threshold': 0.04,
        'kapandji_full_opposition_factor': 1.5,
        'kapandji_radial_offset_x': 0.08,
        'kapandji_radial_offset_y': 0.02,

        # Wrist
        'pose_visibility_threshold': 0.5,
        'max_wrist_flexion': 80.0,
        'max_wrist_extension': 70.0,
        'max_radial_deviation': 40.0,
        'max_ulnar_deviation': 50.0,
        'mirrored_input': False,
        'default_hand_visibility': 0.7,
    }

    def __init__(self,
                 name: str,
                 rom_method: str = 'tam_corrected',
                 kapandji_targets: str = 'clinical',
                 temporal_validation: bool = True,
                 **thresholds):
        """
        Initialize scoring profile.

        Args:
            name: Profile identifier
            rom_method: How finger ROM is reduced over a repetition
            kapandji_targets: Which Kapandji target set to score against
            temporal_validation: Apply visibility/temporal gating to finger ROM
            **thresholds: Overrides for any key in DEFAULTS

        Raises:
            ValueError: On unknown strategy names or threshold keys
        """
        if rom_method not in ROM_METHODS:
            raise ValueError(f"Unknown rom_method: {rom_method}")
        if kapandji_targets not in KAPANDJI_TARGET_SETS:
            raise ValueError(f"Unknown kapandji_targets: {kapandji_targets}")

        unknown = set(thresholds) - set(self.DEFAULTS)
        if unknown:
            raise ValueError(f"Unknown profile settings: {', '.join(sorted(unknown))}")

        self.name = name
        self.rom_method = rom_method
        self.kapandji_targets = kapandji_targets
        self.temporal_validation = temporal_validation

        for key, default in self.DEFAULTS.items():
            setattr(self, key, thresholds.get(key, default))

        if int(self.consistency_window) < 1 or int(self.smoothing_window) < 1:
            raise ValueError("consistency_window and smoothing_window must be >= 1")
        self.consistency_window = int(self.consistency_window)
        self.smoothing_window = int(self.smoothing_window)
        self.min_valid_frames = int(self.min_valid_frames)

    @classmethod
    def from_dict(cls, data: Dict):
        """
        Create a profile from a plain dict (e.g. loaded from JSON).

        Args:
            data: dict with 'name', optional strategy keys and threshold keys

        Returns:
            ScoringProfile
        """
        data = dict(data)
        name = data.pop('name', 'custom')
        return cls(name, **data)

    def with_overrides(self, **overrides):
        """Return a copy of this profile with some settings replaced."""
        data = self.to_dict()
        data.update(overrides)
        return ScoringProfile.from_dict(data)

    def to_dict(self):
        data = {
            'name': self.name,
            'rom_method': self.rom_method,
            'kapandji_targets': self.kapandji_targets,
            'temporal_validation': self.temporal_validation,
        }
        for key in self.DEFAULTS:
            data[key] = getattr(self, key)
        return data

    @property
    def kapandji_full_opposition_threshold(self):
        return self.kapandji_threshold * self.kapandji_full_opposition_factor

    def get_info(self):
        """Return profile summary"""
        return {
            'name': self.name,
            'rom_method': self.rom_method,
            'kapandji_targets': self.kapandji_targets,
            'temporal_validation': self.temporal_validation,
            'confidence_gate': f"{self.finger_confidence_threshold:.2f}",
            'temporal_limit': f"{self.max_change_per_frame:.0f} deg/frame "
                              f"(window {self.consistency_window})",
            'kapandji_threshold': f"{self.kapandji_threshold:.3f}",
        }

    def __repr__(self):
        return f"ScoringProfile({self.name!r}, rom_method={self.rom_method!r}, " \
               f"kapandji_targets={self.kapandji_targets!r})"


# Extension-deficit corrected TAM, clinical Kapandji targets
STANDARD_PROFILE = ScoringProfile(
    name='standard',
    rom_method='tam_corrected',
    kapandji_targets='clinical',
)

# Flexion-only ROM maxima and the MCP-based Kapandji targets
LEGACY_PROFILE = ScoringProfile(
    name='legacy',
    rom_method='max_flexion',
    kapandji_targets='legacy',
    temporal_validation=False,
    kapandji_threshold=0.05,
)

SCORING_PROFILES = {
    'standard': STANDARD_PROFILE,
    'legacy': LEGACY_PROFILE,
}


def get_profile(name: str) -> ScoringProfile:
    """
    Get a scoring profile by name.

    Args:
        name: Profile name ('standard', 'legacy')

    Returns:
        ScoringProfile instance

    Raises:
        ValueError: If profile name not found
    """
    if isinstance(name, ScoringProfile):
        return name
    if name not in SCORING_PROFILES:
        available = ', '.join(SCORING_PROFILES.keys())
        raise ValueError(f"Unknown profile '{name}'. Available: {available}")
    return SCORING_PROFILES[name]
