"""
Per-finger tracking confidence from inter-frame displacement.

MediaPipe reports visibility per landmark but nothing about whether a
finger's position is stable. A finger whose landmarks jump further than
max_finger_movement between consecutive frames is treated as a tracking
glitch for that frame.
"""
import logging
from dataclasses import replace

import numpy as np

from ..config.scoring_profiles import STANDARD_PROFILE
from .geometry import to_vector
from .landmarks import FINGER_CHAINS, Finger, FingerConfidence, to_motion_frames

logger = logging.getLogger(__name__)

# Normalized displacement below this counts as a still finger
STABLE_FRACTION = 0.3


def finger_displacement(previous, current, finger):
    """Mean 3D displacement of a finger's four landmarks between two frames."""
    distances = [
        float(np.linalg.norm(to_vector(current[idx]) - to_vector(previous[idx])))
        for idx in FINGER_CHAINS[finger]
    ]
    return float(np.mean(distances))


def finger_confidence(previous, current, finger, profile=STANDARD_PROFILE):
    """
    Confidence of one finger on the current frame.

    Args:
        previous: Previous complete hand frame (None for the first)
        current: Current complete hand frame
        finger: Finger
        profile: ScoringProfile supplying max_finger_movement

    Returns:
        FingerConfidence
    """
    if previous is None:
        return FingerConfidence(confidence=1.0, movement=0.0, reason='initial')

    movement = finger_displacement(previous, current, finger)
    normalized = movement / profile.max_finger_movement
    confidence = min(1.0, max(0.0, 1.0 - normalized))

    if normalized <= STABLE_FRACTION:
        reason = 'stable'
    elif normalized <= 1.0:
        reason = 'moving'
    else:
        reason = 'jitter'
    return FingerConfidence(confidence=confidence, movement=movement, reason=reason)


def annotate_finger_confidences(frames, profile=STANDARD_PROFILE):
    """
    Attach per-finger confidences to every complete hand frame.

    Frames that already carry confidences keep them; incomplete frames
    pass through unchanged. Input frames are never modified.

    Args:
        frames: Sequence of MotionFrame (or dicts)
        profile: ScoringProfile

    Returns:
        Tuple of MotionFrame
    """
    annotated = []
    previous = None
    jitter_frames = 0

    for idx, frame in enumerate(to_motion_frames(frames)):
        if not frame.has_complete_hand:
            annotated.append(frame)
            continue

        if frame.confidences is None:
            confidences = {
                finger: finger_confidence(previous, frame.landmarks, finger, profile)
                for finger in Finger
            }
            if any(c.reason == 'jitter' for c in confidences.values()):
                jitter_frames += 1
                logger.debug("Finger jitter detected",
                             extra={'frame_index': idx, 'finger': None, 'value': None})
            frame = replace(frame, confidences=confidences)

        annotated.append(frame)
        previous = frame.landmarks

    if jitter_frames:
        logger.info("%d of %d frames had finger jitter", jitter_frames, len(annotated))
    return tuple(annotated)
