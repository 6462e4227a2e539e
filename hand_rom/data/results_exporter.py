"""
Assessment Results Exporter
Tabulates assessment results and per-frame joint angles for analysis
"""

import logging
import os
from typing import Iterable, Optional

import pandas as pd

from ..config.scoring_profiles import STANDARD_PROFILE, get_profile
from ..core.joint_angles import JOINTS, read_finger_joints
from ..core.landmarks import Finger, to_motion_frames

logger = logging.getLogger(__name__)


class ResultsExporter:
    """
    Builds pandas DataFrames from assessment results and writes them
    as CSV or JSON (chosen by file extension). Numbers are rounded to
    2 decimals.
    """

    DECIMALS = 2

    def __init__(self, profile=STANDARD_PROFILE):
        self.profile = get_profile(profile)

    def summary_frame(self, results: Iterable) -> pd.DataFrame:
        """
        One row per AssessmentResult, nested values flattened to columns
        such as index_totalActiveRom.
        """
        rows = []
        for result in results:
            row = {
                'assessment_type': result.assessment_type.value,
                'hand_type': result.hand_type.value,
                'overall_quality': result.overall_quality,
                'frame_count': result.frame_count,
                'valid_frame_count': result.valid_frame_count,
                'low_confidence': result.low_confidence,
                'warnings': '; '.join(result.warnings),
            }
            for finger, quality in result.finger_quality.items():
                row[f'{finger}_quality'] = quality
            row.update(result.values)
            rows.append(row)

        if not rows:
            return pd.DataFrame()
        return pd.json_normalize(rows, sep='_').round(self.DECIMALS)

    def frame_angles_frame(self, frames, hand_type=None) -> pd.DataFrame:
        """
        Raw and flexion angles of every finger on every complete frame.

        Args:
            frames: Sequence of MotionFrame (or dicts)
            hand_type: Optional declared HandType for hyperextension signing
        """
        rows = []
        for idx, frame in enumerate(to_motion_frames(frames)):
            if not frame.has_complete_hand:
                continue
            for finger in Finger:
                reading = read_finger_joints(frame.landmarks, finger, frame.confidences,
                                             hand_type, self.profile, idx)
                row = {
                    'frame_index': idx,
                    'timestamp': frame.timestamp,
                    'finger': finger.value,
                    'reliable': reading.reliable,
                }
                for joint in JOINTS:
                    row[f'{joint}_raw'] = reading.raw[joint]
                    row[f'{joint}_flexion'] = reading.flexion[joint]
                row['total_flexion'] = reading.total_flexion
                rows.append(row)

        columns = (['frame_index', 'timestamp', 'finger', 'reliable']
                   + [f'{j}_{kind}' for j in JOINTS for kind in ('raw', 'flexion')]
                   + ['total_flexion'])
        return pd.DataFrame(rows, columns=columns).round(self.DECIMALS)

    def _write(self, df: pd.DataFrame, filepath: str) -> str:
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if filepath.lower().endswith('.json'):
            df.to_json(filepath, orient='records', indent=2)
        else:
            df.to_csv(filepath, index=False)
        logger.info("Exported %d rows to %s", len(df), filepath)
        return filepath

    def export_summary(self, results: Iterable, filepath: str) -> str:
        """Write the result summary table; returns the path written."""
        return self._write(self.summary_frame(results), filepath)

    def export_frame_angles(self, frames, filepath: str, hand_type: Optional[str] = None) -> str:
        """Write the per-frame joint angle table; returns the path written."""
        return self._write(self.frame_angles_frame(frames, hand_type), filepath)
