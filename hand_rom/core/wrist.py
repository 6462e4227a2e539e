"""
Elbow-referenced wrist angles.

The forearm axis runs from the pose elbow to the hand wrist. Together with
the palm normal (oriented by the declared hand type) it defines a forearm
frame:

    f  forearm axis, elbow -> wrist
    n  palmar normal, orthogonal to f
    r  radial axis, toward the thumb side

The hand's long axis (wrist -> middle MCP) is projected onto the (f, n)
plane for flexion/extension and onto the (f, r) plane for radial/ulnar
deviation. Positive flexion bends toward the palm, positive deviation
toward the thumb.

Without a pose frame, or without an explicit hand type, no angle is
produced: results are marked unavailable instead.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config.scoring_profiles import STANDARD_PROFILE
from .geometry import angle_at, euclidean_distance, palm_normal, to_vector, unit
from .landmarks import (
    HandLandmarks,
    HandType,
    PoseLandmarks,
    is_complete_hand,
    parse_landmarks,
    to_motion_frames,
)

logger = logging.getLogger(__name__)

MIN_POSE_LANDMARKS = PoseLandmarks.RIGHT_WRIST + 1


def _round2(value):
    return round(float(value), 2)


@dataclass(frozen=True)
class WristAngleResult:
    """Wrist angles of one frame, degrees from neutral."""
    available: bool
    hand_type: HandType = HandType.UNKNOWN
    forearm_to_hand_angle: float = 0.0
    wrist_flexion_angle: float = 0.0
    wrist_extension_angle: float = 0.0
    radial_deviation: float = 0.0
    ulnar_deviation: float = 0.0
    confidence: float = 0.0
    reason: Optional[str] = None

    @classmethod
    def unavailable(cls, reason, hand_type=HandType.UNKNOWN):
        return cls(available=False, hand_type=hand_type, reason=reason)

    def to_dict(self):
        return {
            'available': self.available,
            'handType': self.hand_type.value,
            'forearmToHandAngle': _round2(self.forearm_to_hand_angle),
            'wristFlexionAngle': _round2(self.wrist_flexion_angle),
            'wristExtensionAngle': _round2(self.wrist_extension_angle),
            'radialDeviation': _round2(self.radial_deviation),
            'ulnarDeviation': _round2(self.ulnar_deviation),
            'confidence': _round2(self.confidence),
            'reason': self.reason,
        }


@dataclass(frozen=True)
class WristSessionResult:
    """Independent maxima over a repetition."""
    available: bool
    hand_type: HandType
    max_wrist_flexion: float
    max_wrist_extension: float
    max_radial_deviation: float
    max_ulnar_deviation: float
    frames_used: int
    frame_count: int
    average_confidence: float

    def to_dict(self):
        return {
            'available': self.available,
            'handType': self.hand_type.value,
            'maxWristFlexion': _round2(self.max_wrist_flexion),
            'maxWristExtension': _round2(self.max_wrist_extension),
            'maxRadialDeviation': _round2(self.max_radial_deviation),
            'maxUlnarDeviation': _round2(self.max_ulnar_deviation),
            'framesUsed': self.frames_used,
            'frameCount': self.frame_count,
            'averageConfidence': _round2(self.average_confidence),
        }


@dataclass(frozen=True)
class WristDeviationResultsData:
    max_radial_deviation: float
    max_ulnar_deviation: float
    total_deviation_rom: float
    frame_count: int
    hand_type: str
    average_confidence: float
    source: str = 'motion'

    def to_dict(self):
        return {
            'maxRadialDeviation': _round2(self.max_radial_deviation),
            'maxUlnarDeviation': _round2(self.max_ulnar_deviation),
            'totalDeviationROM': _round2(self.total_deviation_rom),
            'frameCount': self.frame_count,
            'handType': self.hand_type,
            'averageConfidence': _round2(self.average_confidence),
            'source': self.source,
        }


def pose_side_indices(hand_type, mirrored=False):
    """
    (shoulder, elbow, wrist) pose indices on the arm holding the hand.

    With mirrored input the pose model labels the opposite side.
    """
    use_left = hand_type is HandType.LEFT
    if mirrored:
        use_left = not use_left
    if use_left:
        return (PoseLandmarks.LEFT_SHOULDER, PoseLandmarks.LEFT_ELBOW, PoseLandmarks.LEFT_WRIST)
    return (PoseLandmarks.RIGHT_SHOULDER, PoseLandmarks.RIGHT_ELBOW, PoseLandmarks.RIGHT_WRIST)


def _visibility(landmark):
    return 1.0 if landmark.visibility is None else landmark.visibility


def _as_landmarks(frame):
    """Landmark tuple for Landmarks or JSON dicts; empty when malformed."""
    try:
        return parse_landmarks(frame)
    except (TypeError, ValueError):
        return ()


def calculate_wrist_angles(hand_frame, pose_frame, hand_type, profile=STANDARD_PROFILE,
                           frame_index=None):
    """
    Wrist flexion/extension and radial/ulnar deviation of one frame.

    Args:
        hand_frame: 21 hand landmarks (Landmarks or {x, y, z, visibility} dicts)
        pose_frame: Pose landmarks in the same forms (None when pose tracking was off)
        hand_type: HandType (or 'LEFT'/'RIGHT'); UNKNOWN is unavailable
        profile: ScoringProfile
        frame_index: Carried into log events

    Returns:
        WristAngleResult; available=False with a reason when any input
        needed for an elbow-referenced angle is missing
    """
    hand_type = HandType.parse(hand_type)
    hand_frame = _as_landmarks(hand_frame)
    pose_frame = _as_landmarks(pose_frame)
    if not pose_frame or len(pose_frame) < MIN_POSE_LANDMARKS:
        return WristAngleResult.unavailable('pose_missing', hand_type)
    if not is_complete_hand(hand_frame):
        return WristAngleResult.unavailable('incomplete_hand', hand_type)
    if hand_type is HandType.UNKNOWN:
        return WristAngleResult.unavailable('hand_type_unknown', hand_type)

    _, elbow_idx, wrist_idx = pose_side_indices(hand_type, profile.mirrored_input)
    elbow = pose_frame[elbow_idx]
    pose_wrist = pose_frame[wrist_idx]
    confidence = min(_visibility(elbow), _visibility(pose_wrist))
    if confidence < profile.pose_visibility_threshold:
        logger.debug("Pose arm not visible (%.2f)", confidence,
                     extra={'frame_index': frame_index, 'finger': None, 'value': confidence})
        return WristAngleResult.unavailable('pose_low_visibility', hand_type)

    hand_wrist = hand_frame[HandLandmarks.WRIST]
    middle_mcp = hand_frame[HandLandmarks.MIDDLE_MCP]

    forearm = unit(to_vector(hand_wrist) - to_vector(elbow))
    raw_normal = palm_normal(hand_frame)
    if forearm is None or raw_normal is None:
        return WristAngleResult.unavailable('degenerate_geometry', hand_type)

    chirality = hand_type.chirality(profile.mirrored_input)
    palmar = -chirality * raw_normal
    palmar = unit(palmar - float(np.dot(palmar, forearm)) * forearm)
    if palmar is None:
        return WristAngleResult.unavailable('degenerate_geometry', hand_type)
    radial = chirality * np.cross(palmar, forearm)

    hand_axis = to_vector(middle_mcp) - to_vector(hand_wrist)
    along = float(np.dot(hand_axis, forearm))
    flexion_signed = math.degrees(math.atan2(float(np.dot(hand_axis, palmar)), along))
    deviation_signed = math.degrees(math.atan2(float(np.dot(hand_axis, radial)), along))

    result = WristAngleResult(
        available=True,
        hand_type=hand_type,
        forearm_to_hand_angle=angle_at(elbow, middle_mcp, hand_wrist),
        wrist_flexion_angle=min(max(0.0, flexion_signed), profile.max_wrist_flexion),
        wrist_extension_angle=min(max(0.0, -flexion_signed), profile.max_wrist_extension),
        radial_deviation=max(0.0, deviation_signed),
        ulnar_deviation=max(0.0, -deviation_signed),
        confidence=confidence,
    )
    logger.debug(
        "Wrist flexion %.1f deviation %.1f (%s)", flexion_signed, deviation_signed, hand_type.value,
        extra={'frame_index': frame_index, 'finger': None, 'value': flexion_signed},
    )
    return result


def determine_hand_type(hand_frame, pose_frame, mirrored=False):
    """
    Guess which hand is in view from pose visibility and wrist proximity.

    Only used when a recording carries no declared hand type; callers
    must record that the hand type was detected rather than declared.

    Returns:
        HandType (UNKNOWN when pose or hand data is incomplete)
    """
    hand_frame = _as_landmarks(hand_frame)
    pose_frame = _as_landmarks(pose_frame)
    if not is_complete_hand(hand_frame) or not pose_frame or len(pose_frame) < MIN_POSE_LANDMARKS:
        return HandType.UNKNOWN

    hand_wrist = hand_frame[HandLandmarks.WRIST]
    left_wrist = pose_frame[PoseLandmarks.LEFT_WRIST]
    right_wrist = pose_frame[PoseLandmarks.RIGHT_WRIST]
    left_elbow = pose_frame[PoseLandmarks.LEFT_ELBOW]
    right_elbow = pose_frame[PoseLandmarks.RIGHT_ELBOW]

    left_score = ((left_wrist.visibility or 0.0) + (left_elbow.visibility or 0.0)) / 2
    right_score = ((right_wrist.visibility or 0.0) + (right_elbow.visibility or 0.0)) / 2

    if abs(left_score - right_score) > 0.1:
        left_side = left_score > right_score
    else:
        left_side = (euclidean_distance(hand_wrist, left_wrist)
                     < euclidean_distance(hand_wrist, right_wrist))

    if mirrored:
        left_side = not left_side
    return HandType.LEFT if left_side else HandType.RIGHT


def calculate_max_wrist_angles(frames, hand_type, profile=STANDARD_PROFILE):
    """
    Independent maxima of flexion, extension, radial and ulnar deviation.

    Args:
        frames: Sequence of MotionFrame (or dicts)
        hand_type: Declared HandType
        profile: ScoringProfile

    Returns:
        WristSessionResult; available=False when no frame was usable
    """
    hand_type = HandType.parse(hand_type)
    frames = to_motion_frames(frames)

    max_flexion = max_extension = max_radial = max_ulnar = 0.0
    confidences = []
    for idx, frame in enumerate(frames):
        angles = calculate_wrist_angles(frame.landmarks, frame.pose_landmarks, hand_type,
                                        profile, idx)
        if not angles.available:
            continue
        confidences.append(angles.confidence)
        max_flexion = max(max_flexion, angles.wrist_flexion_angle)
        max_extension = max(max_extension, angles.wrist_extension_angle)
        max_radial = max(max_radial, angles.radial_deviation)
        max_ulnar = max(max_ulnar, angles.ulnar_deviation)

    if not confidences:
        logger.info("No usable wrist frames out of %d", len(frames))

    return WristSessionResult(
        available=bool(confidences),
        hand_type=hand_type,
        max_wrist_flexion=max_flexion,
        max_wrist_extension=max_extension,
        max_radial_deviation=max_radial,
        max_ulnar_deviation=max_ulnar,
        frames_used=len(confidences),
        frame_count=len(frames),
        average_confidence=float(np.mean(confidences)) if confidences else 0.0,
    )


def _hand_visibility(landmarks, default):
    scores = [default if lm.visibility is None else lm.visibility for lm in landmarks]
    return float(np.mean(scores)) if scores else default


def _record_motion_data(record):
    repetitions = record.get('repetitionData') or []
    if not repetitions:
        return []
    return repetitions[0].get('motionData') or []


def _stored_float(record, key):
    try:
        return float(record.get(key) or 0.0)
    except (TypeError, ValueError):
        return 0.0


def resolve_hand_type(declared, frames, profile=STANDARD_PROFILE, assessment_id=None):
    """
    Declared hand type, detected from pose data only when none was declared.

    Args:
        declared: HandType or name (None / 'UNKNOWN' when absent)
        frames: Sequence of MotionFrame
        profile: ScoringProfile
        assessment_id: Carried into the warning

    Returns:
        (HandType, source) where source is 'declared', 'detected' or 'none'
    """
    declared = HandType.parse(declared)
    if declared is not HandType.UNKNOWN:
        return declared, 'declared'
    for frame in frames:
        detected = determine_hand_type(frame.landmarks, frame.pose_landmarks,
                                       profile.mirrored_input)
        if detected is not HandType.UNKNOWN:
            logger.warning("Assessment %s has no hand type; detected %s from pose",
                           assessment_id, detected.value)
            return detected, 'detected'
    return HandType.UNKNOWN, 'none'


def calculate_wrist_deviation_results(assessment_record, profile=STANDARD_PROFILE):
    """
    Radial/ulnar deviation results for a stored assessment record.

    Uses the first repetition's motion data. Falls back to the stored
    maxRadialDeviation/maxUlnarDeviation fields, then to zeros.

    Args:
        assessment_record: dict with handType, repetitionData and
            optionally maxRadialDeviation / maxUlnarDeviation
        profile: ScoringProfile

    Returns:
        WristDeviationResultsData
    """
    record = assessment_record or {}
    motion_data = _record_motion_data(record)

    if motion_data:
        frames = to_motion_frames(motion_data)
        hand_type, _ = resolve_hand_type(record.get('handType'), frames, profile,
                                         record.get('id'))

        max_radial = max_ulnar = 0.0
        confidence_sum = 0.0
        frame_count = 0
        for idx, frame in enumerate(frames):
            if not frame.landmarks or not frame.pose_landmarks:
                continue
            angles = calculate_wrist_angles(frame.landmarks, frame.pose_landmarks, hand_type,
                                            profile, idx)
            if not angles.available:
                continue
            if angles.radial_deviation == 0.0 and angles.ulnar_deviation == 0.0:
                continue
            frame_count += 1
            confidence_sum += _hand_visibility(frame.landmarks, profile.default_hand_visibility)
            max_radial = max(max_radial, angles.radial_deviation)
            max_ulnar = max(max_ulnar, angles.ulnar_deviation)

        average_confidence = (confidence_sum / frame_count if frame_count
                              else profile.default_hand_visibility)
        logger.info(
            "Deviation from %d motion frames: radial %.1f ulnar %.1f",
            frame_count, max_radial, max_ulnar,
        )
        return WristDeviationResultsData(
            max_radial_deviation=max_radial,
            max_ulnar_deviation=max_ulnar,
            total_deviation_rom=max_radial + max_ulnar,
            frame_count=frame_count,
            hand_type=hand_type.value,
            average_confidence=average_confidence,
            source='motion',
        )

    stored_radial = _stored_float(record, 'maxRadialDeviation')
    stored_ulnar = _stored_float(record, 'maxUlnarDeviation')
    hand_type = HandType.parse(record.get('handType')).value
    if stored_radial > 0 or stored_ulnar > 0:
        logger.info("Using stored deviation values for assessment %s", record.get('id'))
        return WristDeviationResultsData(
            max_radial_deviation=stored_radial,
            max_ulnar_deviation=stored_ulnar,
            total_deviation_rom=stored_radial + stored_ulnar,
            frame_count=0,
            hand_type=hand_type,
            average_confidence=1.0,
            source='stored',
        )

    logger.warning("No deviation data available for assessment %s", record.get('id'))
    return WristDeviationResultsData(
        max_radial_deviation=0.0,
        max_ulnar_deviation=0.0,
        total_deviation_rom=0.0,
        frame_count=0,
        hand_type=HandType.UNKNOWN.value,
        average_confidence=0.0,
        source='none',
    )
