"""
Landmark containers and MediaPipe index tables.

Hand frames follow the 21-point MediaPipe Hands topology:
0 = wrist, 1-4 = thumb, 5-8 = index, 9-12 = middle, 13-16 = ring, 17-20 = pinky.

Pose frames follow the 33-point MediaPipe Pose topology; only the shoulder,
elbow and wrist points are read here.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

HAND_LANDMARK_COUNT = 21


class InvalidInputError(ValueError):
    """Raised when a hard precondition on landmark input is violated."""


class HandLandmarks:
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class PoseLandmarks:
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16


class Finger(Enum):
    INDEX = 'index'
    MIDDLE = 'middle'
    RING = 'ring'
    PINKY = 'pinky'

    @classmethod
    def parse(cls, value):
        """Accept a Finger, 'INDEX' or 'index'."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown finger: {value!r}") from None


# (MCP, PIP, DIP, tip) landmark indices for each long finger
FINGER_CHAINS: Dict[Finger, Tuple[int, int, int, int]] = {
    Finger.INDEX: (5, 6, 7, 8),
    Finger.MIDDLE: (9, 10, 11, 12),
    Finger.RING: (13, 14, 15, 16),
    Finger.PINKY: (17, 18, 19, 20),
}


class HandType(Enum):
    LEFT = 'LEFT'
    RIGHT = 'RIGHT'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value):
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        if text in ('LEFT', 'L'):
            return cls.LEFT
        if text in ('RIGHT', 'R'):
            return cls.RIGHT
        return cls.UNKNOWN

    def chirality(self, mirrored=False):
        """
        Sign that orients palm-relative axes for this hand.

        A mirrored image of a right hand is geometrically a left hand,
        so mirroring flips the sign. UNKNOWN has no chirality (0).
        """
        if self is HandType.RIGHT:
            sign = 1
        elif self is HandType.LEFT:
            sign = -1
        else:
            return 0
        return -sign if mirrored else sign


@dataclass(frozen=True)
class Landmark:
    """Normalized image-space point with optional detection confidence."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

    @classmethod
    def from_any(cls, entry):
        """
        Build a Landmark from a dict, an object with x/y/z, or a sequence.

        Raises:
            ValueError: If the entry has no usable coordinates
        """
        if isinstance(entry, cls):
            return entry
        if isinstance(entry, dict):
            if 'x' not in entry or 'y' not in entry:
                raise ValueError(f"Landmark dict missing x/y: {entry!r}")
            visibility = entry.get('visibility')
            return cls(
                float(entry['x']),
                float(entry['y']),
                float(entry.get('z', 0.0) or 0.0),
                None if visibility is None else float(visibility),
            )
        if hasattr(entry, 'x') and hasattr(entry, 'y'):
            visibility = getattr(entry, 'visibility', None)
            return cls(
                float(entry.x),
                float(entry.y),
                float(getattr(entry, 'z', 0.0)),
                None if visibility is None else float(visibility),
            )
        if isinstance(entry, (list, tuple)) and len(entry) >= 3:
            visibility = entry[3] if len(entry) >= 4 else None
            return cls(
                float(entry[0]),
                float(entry[1]),
                float(entry[2]),
                None if visibility is None else float(visibility),
            )
        raise ValueError(f"Unsupported landmark format: {entry!r}")

    def as_tuple(self):
        return (self.x, self.y, self.z)

    def to_dict(self):
        data = {'x': self.x, 'y': self.y, 'z': self.z}
        if self.visibility is not None:
            data['visibility'] = self.visibility
        return data


def parse_landmarks(entries) -> Tuple[Landmark, ...]:
    """
    Convert a JSON-like landmark list into an immutable tuple.

    Raises:
        ValueError: If any entry cannot be converted
    """
    if not entries:
        return ()
    return tuple(Landmark.from_any(entry) for entry in entries)


def is_complete_hand(landmarks) -> bool:
    """True when a hand frame has exactly the 21 MediaPipe points."""
    return landmarks is not None and len(landmarks) == HAND_LANDMARK_COUNT


def require_complete_hand(landmarks):
    if landmarks is None or len(landmarks) != HAND_LANDMARK_COUNT:
        count = 0 if landmarks is None else len(landmarks)
        raise InvalidInputError(
            f"MediaPipe hand landmarks must contain exactly "
            f"{HAND_LANDMARK_COUNT} points, got {count}"
        )


@dataclass(frozen=True)
class FingerConfidence:
    """Tracking confidence of one finger on one frame."""
    confidence: float
    movement: float = 0.0
    reason: str = 'provided'

    @classmethod
    def from_any(cls, entry):
        if isinstance(entry, cls):
            return entry
        if isinstance(entry, (int, float)):
            return cls(confidence=float(entry))
        return cls(
            confidence=float(entry.get('confidence', 0.0)),
            movement=float(entry.get('movement', 0.0) or 0.0),
            reason=str(entry.get('reason', 'provided')),
        )


def parse_confidences(data) -> Optional[Dict[Finger, FingerConfidence]]:
    """
    Parse a {finger_name: confidence_info} mapping.

    Unknown fingers and malformed entries are skipped, so a bad entry
    only loses that finger's confidence on that frame.
    """
    if not data or not isinstance(data, dict):
        return None
    parsed = {}
    for key, value in data.items():
        try:
            finger = Finger.parse(key)
        except ValueError:
            continue
        try:
            parsed[finger] = FingerConfidence.from_any(value)
        except (TypeError, ValueError, AttributeError):
            logger.debug("Ignoring malformed confidence for %s: %r", finger.value, value)
    return parsed or None


@dataclass(frozen=True)
class TrackedHandFrame:
    """A hand frame with its optional per-finger tracking confidences."""
    frame: Tuple[Landmark, ...]
    confidences: Optional[Dict[Finger, FingerConfidence]] = None

    def confidence_for(self, finger):
        if not self.confidences:
            return None
        return self.confidences.get(finger)


def _optional_float(value):
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class MotionFrame:
    """One sample of a recorded repetition."""
    timestamp: float
    landmarks: Tuple[Landmark, ...]
    pose_landmarks: Optional[Tuple[Landmark, ...]] = None
    quality: Optional[float] = None
    confidences: Optional[Dict[Finger, FingerConfidence]] = field(default=None, compare=False)

    @property
    def has_complete_hand(self):
        return is_complete_hand(self.landmarks)

    @property
    def has_pose(self):
        return bool(self.pose_landmarks)

    def tracked(self):
        return TrackedHandFrame(self.landmarks, self.confidences)

    @classmethod
    def from_dict(cls, data, index=0):
        """
        Build a MotionFrame from a JSON-compatible record.

        Malformed landmark lists produce an empty hand frame so that
        the frame is skipped downstream instead of aborting a recording.
        """
        raw_hand = data.get('landmarks')
        if raw_hand is None:
            raw_hand = data.get('handLandmarks')
        try:
            landmarks = parse_landmarks(raw_hand)
        except (TypeError, ValueError):
            landmarks = ()

        pose = None
        raw_pose = data.get('poseLandmarks')
        if raw_pose:
            try:
                pose = parse_landmarks(raw_pose)
            except (TypeError, ValueError):
                pose = None

        timestamp = _optional_float(data.get('timestamp'))
        return cls(
            timestamp=float(index) if timestamp is None else timestamp,
            landmarks=landmarks,
            pose_landmarks=pose,
            quality=_optional_float(data.get('quality')),
            confidences=parse_confidences(data.get('fingerConfidences')),
        )


def to_motion_frames(frames: Sequence) -> Tuple[MotionFrame, ...]:
    """Normalize a sequence of MotionFrames, dicts or bare landmark lists."""
    result = []
    for idx, frame in enumerate(frames or ()):
        if isinstance(frame, MotionFrame):
            result.append(frame)
        elif isinstance(frame, dict):
            result.append(MotionFrame.from_dict(frame, idx))
        else:
            try:
                landmarks = parse_landmarks(frame)
            except (TypeError, ValueError):
                landmarks = ()
            result.append(MotionFrame(timestamp=float(idx), landmarks=landmarks))
    return tuple(result)
