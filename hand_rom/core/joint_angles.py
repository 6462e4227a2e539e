"""
Per-finger joint angle calculation.

Maps one 21-point hand frame to MCP/PIP/DIP angles for a long finger.
Pure functions: no state, deterministic for a given frame.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..config.scoring_profiles import STANDARD_PROFILE
from .geometry import finger_flexion_axis, raw_joint_angle
from .landmarks import (
    FINGER_CHAINS,
    Finger,
    HandType,
    HandLandmarks,
    TrackedHandFrame,
    is_complete_hand,
    require_complete_hand,
)

logger = logging.getLogger(__name__)

JOINTS = ('mcp', 'pip', 'dip')

# Smallest bend that reliably shows which side of the hand is palmar
MIN_ORIENTING_BEND = 45.0

# Each tuple describes (proximal, joint, distal) landmark indices.
FINGER_LANDMARKS: Dict[Finger, Dict[str, Tuple[int, int, int]]] = {
    finger: {
        'mcp': (HandLandmarks.WRIST, mcp, pip),
        'pip': (mcp, pip, dip),
        'dip': (pip, dip, tip),
    }
    for finger, (mcp, pip, dip, tip) in FINGER_CHAINS.items()
}


def _round2(value):
    return None if value is None else round(float(value), 2)


@dataclass(frozen=True)
class JointAngles:
    """Per-finger ROM result, degrees."""
    mcp_angle: float
    pip_angle: float
    dip_angle: float
    total_active_rom: float
    mcp_extension_deficit: Optional[float] = None
    pip_extension_deficit: Optional[float] = None
    dip_extension_deficit: Optional[float] = None
    mcp_flexion: Optional[float] = None
    pip_flexion: Optional[float] = None
    dip_flexion: Optional[float] = None

    @classmethod
    def zero(cls):
        return cls(0.0, 0.0, 0.0, 0.0)

    def to_dict(self):
        """JSON-ready dict, 2-decimal rounding, optional fields omitted when unset."""
        data = {
            'mcpAngle': _round2(self.mcp_angle),
            'pipAngle': _round2(self.pip_angle),
            'dipAngle': _round2(self.dip_angle),
            'totalActiveRom': _round2(self.total_active_rom),
        }
        optional = {
            'mcpExtensionDeficit': self.mcp_extension_deficit,
            'pipExtensionDeficit': self.pip_extension_deficit,
            'dipExtensionDeficit': self.dip_extension_deficit,
            'mcpFlexion': self.mcp_flexion,
            'pipFlexion': self.pip_flexion,
            'dipFlexion': self.dip_flexion,
        }
        for key, value in optional.items():
            if value is not None:
                data[key] = _round2(value)
        return data


@dataclass(frozen=True)
class FingerJointReading:
    """Raw (signed) and flexion angles of one finger on one frame."""
    finger: Finger
    raw: Dict[str, float]
    flexion: Dict[str, float]
    reliable: bool = True
    frame_index: Optional[int] = None
    signed: bool = True

    @property
    def total_flexion(self):
        return sum(self.flexion[joint] for joint in JOINTS)

    @classmethod
    def unreliable(cls, finger, frame_index=None):
        zeros = {joint: 0.0 for joint in JOINTS}
        return cls(finger, dict(zeros), dict(zeros), reliable=False, frame_index=frame_index)


def read_finger_joints(hand_frame, finger, confidences=None, hand_type=None,
                       profile=STANDARD_PROFILE, frame_index=None):
    """
    Raw and flexion angles for each joint of one finger.

    Args:
        hand_frame: 21-landmark hand frame, or a TrackedHandFrame
        finger: Finger (or name) to measure
        confidences: Optional {Finger: FingerConfidence} for this frame
        hand_type: HandType used to sign hyperextension; UNKNOWN leaves
            raw angles unsigned
        profile: ScoringProfile supplying the confidence gate
        frame_index: Index carried into the reading and log events

    Returns:
        FingerJointReading; all-zero and unreliable when the finger's
        tracking confidence is below the profile threshold

    Raises:
        InvalidInputError: If the frame does not have exactly 21 landmarks
    """
    if isinstance(hand_frame, TrackedHandFrame):
        confidences = confidences or hand_frame.confidences
        hand_frame = hand_frame.frame
    finger = Finger.parse(finger)
    require_complete_hand(hand_frame)

    if confidences:
        info = confidences.get(finger)
        if info is not None and info.confidence < profile.finger_confidence_threshold:
            logger.debug(
                "Unreliable %s tracking (confidence %.2f, %s)",
                finger.value, info.confidence, info.reason,
                extra={'frame_index': frame_index, 'finger': finger.value,
                       'value': info.confidence},
            )
            return FingerJointReading.unreliable(finger, frame_index)

    chirality = HandType.parse(hand_type).chirality(profile.mirrored_input)
    axis = finger_flexion_axis(hand_frame, chirality)

    raw = {}
    flexion = {}
    for joint, (a, b, c) in FINGER_LANDMARKS[finger].items():
        angle = raw_joint_angle(hand_frame[a], hand_frame[b], hand_frame[c], axis)
        raw[joint] = angle
        flexion[joint] = max(0.0, angle)

    logger.debug(
        "%s joints mcp=%.1f pip=%.1f dip=%.1f",
        finger.value, raw['mcp'], raw['pip'], raw['dip'],
        extra={'frame_index': frame_index, 'finger': finger.value,
               'value': sum(flexion.values())},
    )
    return FingerJointReading(finger, raw, flexion, reliable=True, frame_index=frame_index,
                              signed=axis is not None)


def calculate_finger_rom(hand_frame, finger, confidences=None, hand_type=None,
                         profile=STANDARD_PROFILE):
    """
    Flexion angles of one finger on one frame.

    Args:
        hand_frame: 21-landmark hand frame, or a TrackedHandFrame
        finger: Finger (or name such as 'INDEX')
        confidences: Optional {Finger: FingerConfidence}
        hand_type: Optional HandType for hyperextension signing
        profile: ScoringProfile

    Returns:
        JointAngles with total_active_rom = mcp + pip + dip

    Raises:
        InvalidInputError: If the frame does not have exactly 21 landmarks
    """
    reading = read_finger_joints(hand_frame, finger, confidences, hand_type, profile)
    return JointAngles(
        mcp_angle=reading.flexion['mcp'],
        pip_angle=reading.flexion['pip'],
        dip_angle=reading.flexion['dip'],
        total_active_rom=reading.total_flexion,
    )


def calculate_current_rom(landmarks, finger=Finger.INDEX):
    """Live-display helper: zero angles instead of an error for partial frames."""
    if not is_complete_hand(landmarks):
        return JointAngles.zero()
    return calculate_finger_rom(landmarks, finger)


def infer_hand_type(frames, profile=STANDARD_PROFILE):
    """
    Hand type implied by the direction fingers bend over a repetition.

    A flat hand looks the same from either side, but a flexing finger
    does not: the largest bend in a ROM recording is flexion, never
    hyperextension. Its rotation about the MCP line fixes the chirality.

    Args:
        frames: Sequence of MotionFrame (or bare hand frames)
        profile: ScoringProfile; mirrored_input maps chirality to a label

    Returns:
        HandType; UNKNOWN when no bend reaches MIN_ORIENTING_BEND
    """
    largest = 0.0
    for frame in frames:
        landmarks = getattr(frame, 'landmarks', frame)
        if not is_complete_hand(landmarks):
            continue
        axis = finger_flexion_axis(landmarks, 1)
        if axis is None:
            continue
        for triples in FINGER_LANDMARKS.values():
            for a, b, c in triples.values():
                angle = raw_joint_angle(landmarks[a], landmarks[b], landmarks[c], axis)
                if abs(angle) > abs(largest):
                    largest = angle

    if abs(largest) < MIN_ORIENTING_BEND:
        return HandType.UNKNOWN

    right = largest > 0
    if profile.mirrored_input:
        right = not right
    hand_type = HandType.RIGHT if right else HandType.LEFT
    logger.debug("Hand type %s inferred from a %.1f degree bend", hand_type.value, largest,
                 extra={'frame_index': None, 'finger': None, 'value': largest})
    return hand_type
