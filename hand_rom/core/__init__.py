"""
Core module for hand ROM assessment.

Contains:
- landmarks: Landmark containers, MediaPipe index tables, enums
- geometry: Angle and distance calculations on 3D landmarks
- joint_angles: Per-finger MCP/PIP/DIP angles
- tam: Extension deficit correction and Total Active Motion
- temporal_validator: Visibility bypass and temporal consistency gate
- tracking_confidence: Per-finger confidence from inter-frame displacement
- kapandji: Thumb opposition scoring
- wrist: Elbow-referenced wrist flexion/extension and deviation
- evaluators: Clinical status of measured values
- aggregator: Per-assessment orchestration
"""

from .landmarks import (
    HAND_LANDMARK_COUNT,
    InvalidInputError,
    HandLandmarks,
    PoseLandmarks,
    Finger,
    HandType,
    Landmark,
    FingerConfidence,
    TrackedHandFrame,
    MotionFrame,
    parse_landmarks,
    to_motion_frames,
)

from .geometry import (
    angle_at,
    raw_joint_angle,
    flexion_angle,
    euclidean_distance,
    average_landmarks,
    palm_normal,
)

from .joint_angles import (
    JointAngles,
    FingerJointReading,
    read_finger_joints,
    calculate_finger_rom,
    calculate_current_rom,
    infer_hand_type,
)

from .tam import correct_for_extension_deficit, max_flexion_rom

from .temporal_validator import (
    TemporalROMData,
    TemporalValidator,
    finger_visibility_summary,
    validate_finger_readings,
)

from .tracking_confidence import annotate_finger_confidences

from .kapandji import (
    KapandjiScore,
    KapandjiSequenceScore,
    calculate_kapandji_score,
    calculate_max_kapandji_score,
    score_kapandji_sequence,
)

from .wrist import (
    WristAngleResult,
    WristSessionResult,
    WristDeviationResultsData,
    calculate_wrist_angles,
    calculate_max_wrist_angles,
    calculate_wrist_deviation_results,
    determine_hand_type,
    resolve_hand_type,
)

from .evaluators import (
    evaluate_tam,
    evaluate_kapandji,
    evaluate_wrist_flexion_extension,
    evaluate_wrist_deviation,
    get_deviation_percentages,
    get_deviation_quality_score,
)

from .aggregator import (
    AssessmentType,
    AllFingersROM,
    AssessmentResult,
    AssessmentAggregator,
    calculate_all_fingers_max_rom,
)

__all__ = [
    # Landmarks
    'HAND_LANDMARK_COUNT',
    'InvalidInputError',
    'HandLandmarks',
    'PoseLandmarks',
    'Finger',
    'HandType',
    'Landmark',
    'FingerConfidence',
    'TrackedHandFrame',
    'MotionFrame',
    'parse_landmarks',
    'to_motion_frames',
    # Geometry
    'angle_at',
    'raw_joint_angle',
    'flexion_angle',
    'euclidean_distance',
    'average_landmarks',
    'palm_normal',
    # Joint angles
    'JointAngles',
    'FingerJointReading',
    'read_finger_joints',
    'calculate_finger_rom',
    'calculate_current_rom',
    'infer_hand_type',
    # TAM
    'correct_for_extension_deficit',
    'max_flexion_rom',
    # Temporal validation
    'TemporalROMData',
    'TemporalValidator',
    'finger_visibility_summary',
    'validate_finger_readings',
    'annotate_finger_confidences',
    # Kapandji
    'KapandjiScore',
    'KapandjiSequenceScore',
    'calculate_kapandji_score',
    'calculate_max_kapandji_score',
    'score_kapandji_sequence',
    # Wrist
    'WristAngleResult',
    'WristSessionResult',
    'WristDeviationResultsData',
    'calculate_wrist_angles',
    'calculate_max_wrist_angles',
    'calculate_wrist_deviation_results',
    'determine_hand_type',
    'resolve_hand_type',
    # Evaluators
    'evaluate_tam',
    'evaluate_kapandji',
    'evaluate_wrist_flexion_extension',
    'evaluate_wrist_deviation',
    'get_deviation_percentages',
    'get_deviation_quality_score',
    # Aggregation
    'AssessmentType',
    'AllFingersROM',
    'AssessmentResult',
    'AssessmentAggregator',
    'calculate_all_fingers_max_rom',
]
