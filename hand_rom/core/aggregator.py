"""
Assessment Result Aggregator

Dispatches a recorded repetition to the calculators its assessment type
needs and packages the numbers with per-finger and whole-hand quality
scores. Every call works on its own local state; nothing about the
frames is kept after it returns.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from ..config.scoring_profiles import STANDARD_PROFILE, get_profile
from .joint_angles import JointAngles, infer_hand_type, read_finger_joints
from .kapandji import score_kapandji_sequence
from .landmarks import Finger, HandType, to_motion_frames
from .tam import correct_for_extension_deficit, max_flexion_rom
from .temporal_validator import finger_visibility_summary, validate_finger_readings
from .wrist import (
    calculate_max_wrist_angles,
    calculate_wrist_deviation_results,
    resolve_hand_type,
)

logger = logging.getLogger(__name__)

# Results below this quality are flagged for the clinician
LOW_CONFIDENCE_QUALITY = 0.5


class AssessmentType(Enum):
    TAM = 'TAM'
    TRIGGER_FINGER = 'TRIGGER_FINGER'
    KAPANDJI = 'KAPANDJI'
    WRIST_FLEXION_EXTENSION = 'WRIST_FLEXION_EXTENSION'
    WRIST_DEVIATION = 'WRIST_DEVIATION'

    @classmethod
    def from_name(cls, name):
        """
        Resolve an assessment display name such as "Wrist Radial/Ulnar Deviation".

        Raises:
            ValueError: If no assessment type matches
        """
        if isinstance(name, cls):
            return name
        text = str(name or '').strip()
        try:
            return cls(text.upper())
        except ValueError:
            pass

        lowered = text.lower()
        if 'kapandji' in lowered or 'opposition' in lowered:
            return cls.KAPANDJI
        if 'radial' in lowered or 'ulnar' in lowered or 'deviation' in lowered:
            return cls.WRIST_DEVIATION
        if 'wrist' in lowered:
            return cls.WRIST_FLEXION_EXTENSION
        if 'trigger' in lowered:
            return cls.TRIGGER_FINGER
        if 'tam' in lowered or 'finger' in lowered or 'fist' in lowered:
            return cls.TAM
        raise ValueError(f"Unknown assessment type: {name!r}")


@dataclass(frozen=True)
class FingerROMResult:
    finger: Finger
    angles: JointAngles
    quality: float
    valid_frames: int
    accepted_frames: int
    visibility_bypassed: bool


@dataclass(frozen=True)
class AllFingersROM:
    index: JointAngles
    middle: JointAngles
    ring: JointAngles
    pinky: JointAngles
    temporal_quality: Dict[str, float]
    details: Dict[Finger, FingerROMResult] = field(default_factory=dict, compare=False)

    def for_finger(self, finger):
        return getattr(self, Finger.parse(finger).value)

    def to_dict(self):
        return {
            'index': self.index.to_dict(),
            'middle': self.middle.to_dict(),
            'ring': self.ring.to_dict(),
            'pinky': self.pinky.to_dict(),
            'temporalQuality': {k: round(v, 2) for k, v in self.temporal_quality.items()},
        }


@dataclass(frozen=True)
class AssessmentResult:
    assessment_type: AssessmentType
    values: Dict
    finger_quality: Dict[str, float]
    overall_quality: float
    frame_count: int
    valid_frame_count: int
    low_confidence: bool
    warnings: Tuple[str, ...] = ()
    hand_type: HandType = HandType.UNKNOWN
    hand_type_source: Optional[str] = None

    def to_dict(self):
        return {
            'assessmentType': self.assessment_type.value,
            'values': self.values,
            'fingerQuality': {k: round(v, 2) for k, v in self.finger_quality.items()},
            'overallQuality': round(self.overall_quality, 2),
            'frameCount': self.frame_count,
            'validFrameCount': self.valid_frame_count,
            'lowConfidence': self.low_confidence,
            'warnings': list(self.warnings),
            'handType': self.hand_type.value,
            'handTypeSource': self.hand_type_source,
        }


def calculate_finger_max_rom(frames, finger, profile=STANDARD_PROFILE, hand_type=None):
    """
    ROM of one finger over a repetition in a single pass.

    Frames without 21 hand landmarks are skipped. With temporal
    validation on, a clearly visible finger bypasses the temporal gate;
    otherwise readings go through it. The profile's rom_method picks
    deficit-corrected TAM or flexion-only maxima.

    Args:
        frames: Sequence of MotionFrame
        finger: Finger
        profile: ScoringProfile
        hand_type: Optional declared HandType for hyperextension signing

    Returns:
        FingerROMResult
    """
    finger = Finger.parse(finger)
    eligible = [(idx, f) for idx, f in enumerate(frames) if f.has_complete_hand]

    readings = [
        read_finger_joints(f.landmarks, finger, f.confidences, hand_type, profile, idx)
        for idx, f in eligible
    ]

    bypassed = False
    if profile.temporal_validation:
        summary = finger_visibility_summary(frames, finger, profile)
        bypassed = summary['clearly_visible']
    accepted, validator = validate_finger_readings(readings, bypassed, profile, finger)
    if not profile.temporal_validation:
        accepted = [r for r in readings if r.reliable]

    if profile.rom_method == 'tam_corrected':
        angles = correct_for_extension_deficit(accepted)
    else:
        angles = max_flexion_rom(accepted)

    return FingerROMResult(
        finger=finger,
        angles=angles,
        quality=validator.data.quality_score,
        valid_frames=validator.data.valid_frames,
        accepted_frames=len(accepted),
        visibility_bypassed=bypassed,
    )


def signing_hand_type(frames, hand_type, profile=STANDARD_PROFILE):
    """Declared hand type, else the one implied by how the fingers bend."""
    declared = HandType.parse(hand_type)
    if declared is not HandType.UNKNOWN:
        return declared
    return infer_hand_type(frames, profile)


def calculate_all_fingers_max_rom(frames, profile=STANDARD_PROFILE, hand_type=None):
    """
    Per-finger ROM of all four long fingers over a repetition.

    Args:
        frames: Sequence of MotionFrame, dicts or landmark lists
        profile: ScoringProfile (or profile name)
        hand_type: Optional declared HandType; when absent it is inferred
            from the bend direction so hyperextension can be signed

    Returns:
        AllFingersROM with a temporal_quality entry per finger
    """
    profile = get_profile(profile)
    frames = to_motion_frames(frames)
    hand_type = signing_hand_type(frames, hand_type, profile)
    results = {finger: calculate_finger_max_rom(frames, finger, profile, hand_type)
               for finger in Finger}
    return AllFingersROM(
        index=results[Finger.INDEX].angles,
        middle=results[Finger.MIDDLE].angles,
        ring=results[Finger.RING].angles,
        pinky=results[Finger.PINKY].angles,
        temporal_quality={finger.value: r.quality for finger, r in results.items()},
        details=results,
    )


def _finger_warnings(result, profile):
    warnings = []
    if result.valid_frames < profile.min_valid_frames:
        warnings.append(
            f"{result.finger.value}: insufficient data ({result.valid_frames} valid frames)"
        )
    elif result.quality < LOW_CONFIDENCE_QUALITY:
        warnings.append(f"{result.finger.value}: unstable tracking (quality {result.quality:.2f})")
    return warnings


class AssessmentAggregator:
    """
    Orchestrates the calculators for one assessment type.

    Example:
        >>> aggregator = AssessmentAggregator('standard')
        >>> result = aggregator.aggregate('TAM', frames)
        >>> result.values['index']['totalActiveRom']
    """

    def __init__(self, profile=STANDARD_PROFILE):
        self.profile = get_profile(profile)

    def aggregate(self, assessment_type, frames, hand_type=None, finger=None):
        """
        Compute the result structure of one repetition.

        Args:
            assessment_type: AssessmentType or display name
            frames: Sequence of MotionFrame, dicts or landmark lists
            hand_type: Declared hand type (needed for wrist assessments)
            finger: Finger for single-finger (trigger finger) assessments

        Returns:
            AssessmentResult

        Raises:
            ValueError: Unknown assessment type, or a trigger finger
                assessment without a finger
        """
        assessment_type = AssessmentType.from_name(assessment_type)
        frames = to_motion_frames(frames)

        if assessment_type is AssessmentType.TAM:
            return self._aggregate_fingers(assessment_type, frames, list(Finger), hand_type)
        if assessment_type is AssessmentType.TRIGGER_FINGER:
            if finger is None:
                raise ValueError("Trigger finger assessments need a finger")
            return self._aggregate_fingers(assessment_type, frames, [Finger.parse(finger)],
                                           hand_type)
        if assessment_type is AssessmentType.KAPANDJI:
            return self._aggregate_kapandji(frames, hand_type)
        return self._aggregate_wrist(assessment_type, frames, hand_type)

    def _base(self, assessment_type, frames, values, finger_quality, overall, warnings,
              hand_type=HandType.UNKNOWN, hand_type_source=None):
        low = overall < LOW_CONFIDENCE_QUALITY or any(
            q < LOW_CONFIDENCE_QUALITY for q in finger_quality.values())
        return AssessmentResult(
            assessment_type=assessment_type,
            values=values,
            finger_quality=finger_quality,
            overall_quality=float(overall),
            frame_count=len(frames),
            valid_frame_count=sum(1 for f in frames if f.has_complete_hand),
            low_confidence=low,
            warnings=tuple(warnings),
            hand_type=hand_type,
            hand_type_source=hand_type_source,
        )

    def _aggregate_fingers(self, assessment_type, frames, fingers, hand_type):
        declared = HandType.parse(hand_type)
        signing = signing_hand_type(frames, declared, self.profile)
        results = [calculate_finger_max_rom(frames, finger, self.profile, signing)
                   for finger in fingers]

        values = {r.finger.value: r.angles.to_dict() for r in results}
        values['totalActiveRom'] = round(sum(r.angles.total_active_rom for r in results), 2)
        finger_quality = {r.finger.value: r.quality for r in results}

        warnings = []
        for result in results:
            warnings.extend(_finger_warnings(result, self.profile))
        overall = float(np.mean(list(finger_quality.values()))) if finger_quality else 0.0

        logger.info("%s aggregated over %d frames (quality %.2f)",
                    assessment_type.value, len(frames), overall)
        return self._base(assessment_type, frames, values, finger_quality, overall, warnings,
                          declared, 'declared' if declared is not HandType.UNKNOWN else None)

    def _aggregate_kapandji(self, frames, hand_type):
        declared = HandType.parse(hand_type)
        sequence = score_kapandji_sequence(frames, declared, self.profile)

        warnings = []
        overall = sequence.frames_scored / len(frames) if frames else 0.0
        if sequence.frames_scored < self.profile.min_valid_frames:
            warnings.append(f"thumb: insufficient data ({sequence.frames_scored} valid frames)")
            overall = min(overall, self.profile.insufficient_data_quality)

        return self._base(AssessmentType.KAPANDJI, frames, sequence.to_dict(), {}, overall,
                          warnings, declared,
                          'declared' if declared is not HandType.UNKNOWN else None)

    def _aggregate_wrist(self, assessment_type, frames, hand_type):
        resolved, source = resolve_hand_type(hand_type, frames, self.profile)
        session = calculate_max_wrist_angles(frames, resolved, self.profile)

        warnings = []
        if source == 'detected':
            warnings.append(f"hand type detected from pose as {resolved.value}")
        if not session.available:
            warnings.append("wrist angles unavailable (pose or hand type missing)")

        if assessment_type is AssessmentType.WRIST_FLEXION_EXTENSION:
            values = {
                'maxWristFlexion': round(session.max_wrist_flexion, 2),
                'maxWristExtension': round(session.max_wrist_extension, 2),
                'totalWristRom': round(session.max_wrist_flexion + session.max_wrist_extension, 2),
            }
        else:
            values = {
                'maxRadialDeviation': round(session.max_radial_deviation, 2),
                'maxUlnarDeviation': round(session.max_ulnar_deviation, 2),
                'totalDeviationRom': round(session.max_radial_deviation
                                           + session.max_ulnar_deviation, 2),
            }
        values['available'] = session.available
        values['framesUsed'] = session.frames_used

        overall = session.average_confidence if session.available else 0.0
        return self._base(assessment_type, frames, values, {}, overall, warnings,
                          resolved, source)

    def aggregate_record(self, record, repetition=0):
        """
        Aggregate a stored assessment record.

        Args:
            record: dict with assessmentName (or name), handType, finger
                and repetitionData[].motionData
            repetition: Index of the repetition to use

        Returns:
            AssessmentResult
        """
        name = record.get('assessmentName') or record.get('name')
        assessment_type = AssessmentType.from_name(name)
        repetitions = record.get('repetitionData') or []
        motion_data = []
        if len(repetitions) > repetition:
            motion_data = repetitions[repetition].get('motionData') or []

        if assessment_type is AssessmentType.WRIST_DEVIATION and not motion_data:
            # Older records only kept the maxima
            deviation = calculate_wrist_deviation_results(record, self.profile)
            warnings = [f"deviation taken from {deviation.source} values"]
            values = {
                'maxRadialDeviation': round(deviation.max_radial_deviation, 2),
                'maxUlnarDeviation': round(deviation.max_ulnar_deviation, 2),
                'totalDeviationRom': round(deviation.total_deviation_rom, 2),
                'available': deviation.source != 'none',
                'framesUsed': deviation.frame_count,
            }
            return self._base(assessment_type, (), values, {}, deviation.average_confidence,
                              warnings, HandType.parse(deviation.hand_type), None)

        return self.aggregate(assessment_type, motion_data,
                              hand_type=record.get('handType'),
                              finger=record.get('finger'))
