"""
Kapandji thumb opposition scoring.

Per frame the thumb tip (landmark 4) is tested against anatomical targets
ordered by difficulty; the frame score is the highest target reached.
Score 10 (full opposition to the radial side under the little finger
metacarpal) is tested separately with a looser threshold.

Over a repetition the score is the best single frame. Because the best
frame alone can hide targets reached on other frames, the sequence
scorer also reports the union of targets reached across all frames.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from ..config.scoring_profiles import STANDARD_PROFILE
from .geometry import average_landmarks, euclidean_distance, extract_point
from .landmarks import (
    HandLandmarks,
    HandType,
    parse_landmarks,
    require_complete_hand,
    to_motion_frames,
)

logger = logging.getLogger(__name__)

FULL_OPPOSITION = (10, 'Full Opposition', 'fullOpposition')


def _point(index):
    return lambda lm: extract_point(lm[index])


def _average(*indices):
    return lambda lm: average_landmarks(indices, lm)


# (score, display name, detail key, target point) in strict difficulty order
KAPANDJI_TARGETS = {
    'clinical': (
        (1, 'Lateral Index', 'lateralIndex', _point(HandLandmarks.INDEX_PIP)),
        (2, 'Index Tip', 'indexTip', _point(HandLandmarks.INDEX_TIP)),
        (3, 'Middle Tip', 'middleTip', _point(HandLandmarks.MIDDLE_TIP)),
        (4, 'Ring Tip', 'ringTip', _point(HandLandmarks.RING_TIP)),
        (5, 'Little Tip', 'littleTip', _point(HandLandmarks.PINKY_TIP)),
        (6, 'Little Base', 'littleBase', _average(0, 1, 17)),
        (7, 'Mid-Palm', 'midPalm', _average(0, 17, 18)),
        (8, 'Distal Crease', 'distalCrease', _average(13, 17, 18)),
        (9, 'Proximal Crease', 'proximalCrease', _average(0, 9, 13)),
    ),
    'legacy': (
        (1, 'Index MCP', 'indexMcp', _point(HandLandmarks.INDEX_MCP)),
        (2, 'Middle MCP', 'middleMcp', _point(HandLandmarks.MIDDLE_MCP)),
        (3, 'Ring MCP', 'ringMcp', _point(HandLandmarks.RING_MCP)),
        (4, 'Pinky MCP', 'pinkyMcp', _point(HandLandmarks.PINKY_MCP)),
        (5, 'Pinky PIP', 'pinkyPip', _point(HandLandmarks.PINKY_PIP)),
        (6, 'Pinky DIP', 'pinkyDip', _point(HandLandmarks.PINKY_DIP)),
        (7, 'Pinky Tip', 'pinkyTip', _point(HandLandmarks.PINKY_TIP)),
        (8, 'Palm Center', 'palmCenter', _average(0, 5, 9, 13, 17)),
        (9, 'Beyond Palm', 'beyondPalm', _average(0, 13, 17)),
    ),
}


def empty_details(target_set='clinical'):
    details = {key: False for _, _, key, _ in KAPANDJI_TARGETS[target_set]}
    details[FULL_OPPOSITION[2]] = False
    return details


@dataclass(frozen=True)
class KapandjiScore:
    """Score of one frame (or the best frame of a repetition)."""
    max_score: int
    reached_landmarks: Tuple[str, ...] = ()
    details: Dict[str, bool] = field(default_factory=dict)
    frame_index: Optional[int] = None

    def to_dict(self):
        return {
            'maxScore': self.max_score,
            'reachedLandmarks': list(self.reached_landmarks),
            'details': dict(self.details),
            'frameIndex': self.frame_index,
        }


@dataclass(frozen=True)
class KapandjiSequenceScore:
    """Best single frame plus the union of targets reached on any frame."""
    best_frame: KapandjiScore
    accumulated_landmarks: Tuple[str, ...]
    accumulated_details: Dict[str, bool]
    frames_scored: int

    @property
    def max_score(self):
        return self.best_frame.max_score

    def to_dict(self):
        return {
            'maxScore': self.max_score,
            'bestFrame': self.best_frame.to_dict(),
            'accumulatedLandmarks': list(self.accumulated_landmarks),
            'accumulatedDetails': dict(self.accumulated_details),
            'framesScored': self.frames_scored,
        }


def _radial_side_sign(landmarks, hand_type, profile):
    """
    +1 when the thumb side lies toward +x, -1 toward -x.

    A declared hand type decides; the thumb base position relative to
    the wrist is only used when the hand type is unknown. A right palm
    facing an unmirrored camera has its thumb toward -x.
    """
    chirality = HandType.parse(hand_type).chirality(profile.mirrored_input)
    if chirality:
        return -chirality
    thumb_cmc_x = landmarks[HandLandmarks.THUMB_CMC].x
    wrist_x = landmarks[HandLandmarks.WRIST].x
    return 1 if thumb_cmc_x > wrist_x else -1


def calculate_kapandji_score(hand_frame, hand_type=None, profile=STANDARD_PROFILE,
                             frame_index=None):
    """
    Kapandji score of a single frame.

    Args:
        hand_frame: Exactly 21 hand landmarks (Landmarks or {x, y, z} dicts)
        hand_type: Optional HandType; picks the Full Opposition side when given
        profile: ScoringProfile selecting targets and thresholds
        frame_index: Carried into the result and log events

    Returns:
        KapandjiScore

    Raises:
        InvalidInputError: If the frame does not have exactly 21 landmarks
    """
    hand_frame = parse_landmarks(hand_frame)
    require_complete_hand(hand_frame)

    thumb_tip = hand_frame[HandLandmarks.THUMB_TIP]
    threshold = profile.kapandji_threshold
    target_set = profile.kapandji_targets

    max_score = 0
    reached = []
    details = empty_details(target_set)

    for score, name, key, locate in KAPANDJI_TARGETS[target_set]:
        distance = euclidean_distance(thumb_tip, locate(hand_frame))
        if distance < threshold:
            max_score = max(max_score, score)
            reached.append(name)
            details[key] = True

    pinky_mcp = hand_frame[HandLandmarks.PINKY_MCP]
    sign = _radial_side_sign(hand_frame, hand_type, profile)
    radial_target = (
        pinky_mcp.x + sign * profile.kapandji_radial_offset_x,
        pinky_mcp.y + profile.kapandji_radial_offset_y,
        pinky_mcp.z,
    )
    if euclidean_distance(thumb_tip, radial_target) < profile.kapandji_full_opposition_threshold:
        max_score = max(max_score, FULL_OPPOSITION[0])
        reached.append(FULL_OPPOSITION[1])
        details[FULL_OPPOSITION[2]] = True

    if max_score:
        logger.debug(
            "Kapandji frame score %d", max_score,
            extra={'frame_index': frame_index, 'finger': 'thumb', 'value': max_score},
        )
    return KapandjiScore(max_score, tuple(reached), details, frame_index)


def score_kapandji_sequence(frames, hand_type=None, profile=STANDARD_PROFILE):
    """
    Score a repetition, keeping both the best frame and the union of targets.

    Frames without exactly 21 hand landmarks are skipped. A later frame
    only replaces the best frame with a strictly higher score, so the
    score never decreases as frames are appended.

    Returns:
        KapandjiSequenceScore
    """
    target_set = profile.kapandji_targets
    best = KapandjiScore(0, (), empty_details(target_set))
    union = empty_details(target_set)
    scored = 0

    for idx, frame in enumerate(to_motion_frames(frames)):
        if not frame.has_complete_hand:
            logger.debug("Skipping incomplete hand frame",
                         extra={'frame_index': idx, 'finger': 'thumb', 'value': len(frame.landmarks)})
            continue
        frame_score = calculate_kapandji_score(frame.landmarks, hand_type, profile, idx)
        scored += 1
        for key, hit in frame_score.details.items():
            if hit:
                union[key] = True
        if frame_score.max_score > best.max_score:
            best = frame_score

    # Display names in score order
    names = [name for _, name, key, _ in KAPANDJI_TARGETS[target_set] if union[key]]
    if union[FULL_OPPOSITION[2]]:
        names.append(FULL_OPPOSITION[1])

    return KapandjiSequenceScore(best, tuple(names), union, scored)


def calculate_max_kapandji_score(frames, hand_type=None, profile=STANDARD_PROFILE):
    """Best single-frame Kapandji score over a repetition."""
    return score_kapandji_sequence(frames, hand_type, profile).best_frame
