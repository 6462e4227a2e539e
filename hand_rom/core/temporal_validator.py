"""
Temporal and visibility validation of finger ROM samples.

Two independent gates decide which frames contribute to a finger's ROM:

1. Visibility bypass - when the tracking model itself reports the finger
   clearly visible across most of the repetition, temporal filtering is
   skipped for that finger.
2. Temporal consistency - otherwise each candidate total-ROM value is
   checked against the recent accepted history and rejected when it
   jumps more than the per-frame limit.
"""
import logging
from collections import deque

import numpy as np

from ..config.scoring_profiles import STANDARD_PROFILE
from .landmarks import FINGER_CHAINS, Finger, is_complete_hand

logger = logging.getLogger(__name__)


def frame_finger_visible(landmarks, finger, profile=STANDARD_PROFILE):
    """
    Check one frame's visibility for one finger.

    Every finger landmark must reach the per-landmark threshold and their
    average must reach the finger-average threshold. Landmarks without a
    visibility score fail.
    """
    scores = []
    for idx in FINGER_CHAINS[finger]:
        visibility = landmarks[idx].visibility
        if visibility is None or visibility < profile.landmark_visibility_threshold:
            return False
        scores.append(visibility)
    return float(np.mean(scores)) >= profile.finger_visibility_average


def finger_visibility_summary(frames, finger, profile=STANDARD_PROFILE):
    """
    Decide whether a finger was clearly visible over a repetition.

    The fraction is taken over every frame of the repetition; frames
    without a complete hand count as not visible.

    Args:
        frames: Sequence of MotionFrame
        finger: Finger
        profile: ScoringProfile

    Returns:
        dict with visible_frames, total_frames, fraction, clearly_visible
    """
    finger = Finger.parse(finger)
    frames = list(frames)
    visible = sum(1 for f in frames
                  if is_complete_hand(f.landmarks)
                  and frame_finger_visible(f.landmarks, finger, profile))
    total = len(frames)
    fraction = visible / total if total else 0.0
    return {
        'visible_frames': visible,
        'total_frames': total,
        'fraction': fraction,
        'clearly_visible': total > 0 and fraction >= profile.visible_frame_fraction,
    }


class TemporalROMData:
    """Rolling state for one finger during one aggregation call."""

    def __init__(self, finger, history_size=5, window=3):
        self.finger = finger
        self.history = deque(maxlen=history_size)
        self.recent_observed = deque(maxlen=window)
        self.variations = []

        self.frames_seen = 0
        self.frames_accepted = 0
        self.frames_rejected = 0
        self.unreliable_frames = 0
        self.consecutive_rejections = 0

        self.last_observed = None
        self.quality_score = None

    @property
    def valid_frames(self):
        return self.frames_seen

    @property
    def total_frames(self):
        return self.frames_seen + self.unreliable_frames

    def pass_fraction(self):
        if self.total_frames == 0:
            return 0.0
        return self.frames_accepted / self.total_frames

    def mean_variation(self):
        if not self.variations:
            return 0.0
        return float(np.mean(self.variations))


class TemporalValidator:
    """
    Frame-to-frame consistency filter for one finger's total ROM.

    A candidate is rejected when it differs by more than
    max_change_per_frame from the last accepted value or from the
    previous observed value, or when it deviates from any of the last
    consistency_window accepted values by more than
    max_change_per_frame * consistency_window. After a run of rejections
    the baseline is re-anchored once the observed values settle.
    """

    def __init__(self, finger, profile=STANDARD_PROFILE):
        self.finger = Finger.parse(finger)
        self.profile = profile
        self.data = TemporalROMData(
            self.finger,
            history_size=max(profile.smoothing_window, profile.consistency_window),
            window=profile.consistency_window,
        )

    def record_unreliable(self, frame_index=None):
        """Count a low-confidence frame without adding it to the history."""
        self.data.unreliable_frames += 1
        logger.debug(
            "%s frame unreliable", self.finger.value,
            extra={'frame_index': frame_index, 'finger': self.finger.value, 'value': None},
        )

    def accept(self, frame_index, total_rom):
        """Record a value without the consistency checks (visibility bypass)."""
        data = self.data
        if data.last_observed is not None:
            data.variations.append(abs(total_rom - data.last_observed))
        data.last_observed = total_rom
        data.recent_observed.append(total_rom)
        data.frames_seen += 1
        data.frames_accepted += 1
        data.consecutive_rejections = 0
        data.history.append(total_rom)

    def consider(self, frame_index, total_rom):
        """
        Offer a candidate total-ROM value.

        Args:
            frame_index: Index of the frame in the repetition
            total_rom: Candidate total flexion in degrees

        Returns:
            True if the value was accepted into the history
        """
        data = self.data
        limit = self.profile.max_change_per_frame
        window = self.profile.consistency_window

        previous_observed = data.last_observed
        if previous_observed is not None:
            data.variations.append(abs(total_rom - previous_observed))
        data.last_observed = total_rom
        data.recent_observed.append(total_rom)
        data.frames_seen += 1

        if not data.history:
            accepted = True
        else:
            last_jump = abs(total_rom - data.history[-1])
            observed_jump = 0.0 if previous_observed is None else abs(total_rom - previous_observed)
            recent = list(data.history)[-window:]
            window_deviation = max(abs(total_rom - v) for v in recent)
            accepted = (last_jump <= limit
                        and observed_jump <= limit
                        and window_deviation <= limit * window)
            if not accepted and self._settled():
                logger.debug(
                    "%s baseline re-anchored", self.finger.value,
                    extra={'frame_index': frame_index, 'finger': self.finger.value,
                           'value': total_rom},
                )
                data.history.clear()
                accepted = True

        if accepted:
            data.history.append(total_rom)
            data.frames_accepted += 1
            data.consecutive_rejections = 0
        else:
            data.frames_rejected += 1
            data.consecutive_rejections += 1
            logger.debug(
                "%s rejected %.1f (last accepted %.1f)",
                self.finger.value, total_rom, data.history[-1],
                extra={'frame_index': frame_index, 'finger': self.finger.value,
                       'value': total_rom},
            )
        return accepted

    def _settled(self):
        data = self.data
        window = self.profile.consistency_window
        if data.consecutive_rejections < window - 1:
            return False
        if len(data.recent_observed) < window:
            return False
        spread = max(data.recent_observed) - min(data.recent_observed)
        return spread <= self.profile.max_change_per_frame

    def smoothed_value(self):
        """Mean of the most recent accepted values (None before any)."""
        if not self.data.history:
            return None
        recent = list(self.data.history)[-self.profile.smoothing_window:]
        return float(np.mean(recent))

    def quality_score(self, visibility_bypassed=False):
        """
        Per-finger temporal quality in [0, 1].

        1.0 when visibility-bypassed; the insufficient-data score when
        fewer than min_valid_frames reliable frames were seen; otherwise
        a blend of the pass fraction and the inverse mean inter-frame
        variation normalized by the per-frame limit.
        """
        data = self.data
        profile = self.profile
        if visibility_bypassed:
            score = 1.0
        elif data.valid_frames < profile.min_valid_frames:
            score = profile.insufficient_data_quality
            logger.warning(
                "Insufficient data for %s: %d valid frames",
                self.finger.value, data.valid_frames,
                extra={'finger': self.finger.value, 'value': data.valid_frames},
            )
        else:
            weight = profile.pass_fraction_weight
            variation_term = max(0.0, 1.0 - data.mean_variation() / profile.max_change_per_frame)
            score = weight * data.pass_fraction() + (1.0 - weight) * variation_term
        score = min(1.0, max(0.0, score))
        data.quality_score = score
        return score


def validate_finger_readings(readings, visibility_bypassed=False, profile=STANDARD_PROFILE,
                             finger=None):
    """
    Run one finger's readings through the temporal gate.

    Args:
        readings: FingerJointReading sequence for one finger, in frame order
        visibility_bypassed: Skip temporal filtering (finger clearly visible)
        profile: ScoringProfile
        finger: Finger, required when readings may be empty

    Returns:
        (accepted_readings, TemporalValidator)
    """
    readings = list(readings)
    if finger is None:
        if not readings:
            raise ValueError("finger is required when there are no readings")
        finger = readings[0].finger
    validator = TemporalValidator(finger, profile)

    accepted = []
    for idx, reading in enumerate(readings):
        frame_index = idx if reading.frame_index is None else reading.frame_index
        if not reading.reliable:
            validator.record_unreliable(frame_index)
            continue
        if visibility_bypassed:
            validator.accept(frame_index, reading.total_flexion)
            accepted.append(reading)
        elif validator.consider(frame_index, reading.total_flexion):
            accepted.append(reading)

    validator.quality_score(visibility_bypassed)
    return accepted, validator
