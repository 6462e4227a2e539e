"""
Assessment Record Loader
Reads stored assessment records and turns their repetitions into frames
"""

import json
import logging
import os
from typing import Dict, Tuple

from ..core.landmarks import MotionFrame, to_motion_frames

logger = logging.getLogger(__name__)


def load_assessment_record(filepath: str) -> Dict:
    """
    Load one assessment record from a JSON file.

    Args:
        filepath: Path to the record JSON

    Returns:
        dict with at least repetitionData; handType and assessmentName
        are passed through as stored

    Raises:
        FileNotFoundError: If the record file doesn't exist
        json.JSONDecodeError: If the file is not valid JSON
        ValueError: If the JSON top level is not an object
    """
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Assessment record not found: {filepath}")

    with open(filepath, 'r') as f:
        record = json.load(f)

    if not isinstance(record, dict):
        raise ValueError(f"Assessment record must be a JSON object: {filepath}")

    record.setdefault('repetitionData', [])
    logger.info("Loaded assessment %s (%d repetitions)",
                record.get('id'), len(record['repetitionData']))
    return record


def frames_from_record(record: Dict, repetition: int = 0) -> Tuple[MotionFrame, ...]:
    """
    Motion frames of one repetition of a record.

    Args:
        record: Assessment record dict
        repetition: Repetition index

    Returns:
        Tuple of MotionFrame (empty when the repetition is missing)
    """
    repetitions = record.get('repetitionData') or []
    if repetition >= len(repetitions):
        logger.warning("Assessment %s has no repetition %d", record.get('id'), repetition)
        return ()
    return to_motion_frames(repetitions[repetition].get('motionData') or [])
