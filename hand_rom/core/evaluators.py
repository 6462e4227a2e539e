"""
Clinical Evaluation Functions

Turn measured ROM values into status dicts for display and reports.
Each evaluator returns {'status', 'message'} plus the numbers behind it;
status is 'unknown' when the measurement is missing.
"""

from ..config.clinical_guidelines import (
    KAPANDJI_GRADES,
    KAPANDJI_MAX_SCORE,
    NORMAL_TAM,
    PERCENT_OF_NORMAL_CAP,
    WRIST_DEVIATION_GRADES,
    WRIST_FLEXION_EXTENSION_GRADES,
    WRIST_NORMALS,
    grade_tam,
    percent_of_normal,
)
from ..config.scoring_profiles import STANDARD_PROFILE

# Target number of usable frames for a full-quality deviation recording
DEVIATION_TARGET_FRAMES = 150


def evaluate_tam(total_active_rom, finger='finger'):
    """
    Grade one finger's TAM against the ASSH scale.

    Args:
        total_active_rom: Deficit-corrected TAM in degrees (None = not measured)
        finger: Finger name used in the message
    """
    if total_active_rom is None:
        return {
            'status': 'unknown',
            'message': f"{str(finger).capitalize()} not measured",
            'percentage': None,
        }

    grade = grade_tam(total_active_rom)
    percentage = percent_of_normal(total_active_rom, NORMAL_TAM, cap=None)

    if grade == 'excellent':
        message = None
    elif grade == 'good':
        message = f"{str(finger).capitalize()} slightly reduced motion"
    elif grade == 'fair':
        message = f"{str(finger).capitalize()} reduced motion"
    else:
        message = f"{str(finger).capitalize()} severely restricted"

    return {'status': grade, 'message': message, 'percentage': round(percentage, 1)}


def evaluate_kapandji(score):
    """
    Evaluate a Kapandji opposition score (0-10).

    Args:
        score: Best Kapandji score (None = not measured)
    """
    if score is None:
        return {'status': 'unknown', 'message': "Thumb opposition not measured"}

    if score >= KAPANDJI_GRADES['normal']:
        return {'status': 'normal', 'message': None, 'score': score,
                'max_score': KAPANDJI_MAX_SCORE}
    elif score >= KAPANDJI_GRADES['moderate']:
        return {'status': 'moderate', 'message': "Opposition reaches the little finger only",
                'score': score, 'max_score': KAPANDJI_MAX_SCORE}
    else:
        return {'status': 'limited', 'message': "Limited thumb opposition",
                'score': score, 'max_score': KAPANDJI_MAX_SCORE}


def evaluate_wrist_flexion_extension(max_flexion, max_extension):
    """
    Evaluate wrist flexion/extension.

    Normal needs both directions; moderate needs either one.

    Args:
        max_flexion: Degrees (None = not measured)
        max_extension: Degrees (None = not measured)
    """
    if max_flexion is None or max_extension is None:
        return {'status': 'unknown', 'message': "Wrist angles not available"}

    normal = WRIST_FLEXION_EXTENSION_GRADES['normal']
    moderate = WRIST_FLEXION_EXTENSION_GRADES['moderate']

    if max_flexion >= normal['flexion'] and max_extension >= normal['extension']:
        return {'status': 'normal', 'message': "Excellent wrist mobility"}
    elif max_flexion >= moderate['flexion'] or max_extension >= moderate['extension']:
        return {'status': 'moderate', 'message': "Some limitation present"}
    else:
        return {'status': 'limited', 'message': "Significant mobility restriction"}


def evaluate_wrist_deviation(max_radial, max_ulnar, total=None):
    """
    Evaluate wrist radial/ulnar deviation.

    Args:
        max_radial: Degrees (None = not measured)
        max_ulnar: Degrees (None = not measured)
        total: Total deviation ROM; defaults to radial + ulnar
    """
    if max_radial is None or max_ulnar is None:
        return {'status': 'unknown', 'message': "Wrist deviation not available"}

    if total is None:
        total = max_radial + max_ulnar

    t = WRIST_DEVIATION_GRADES['normal']
    if max_radial >= t['radial'] and max_ulnar >= t['ulnar'] and total >= t['total']:
        return {'status': 'normal', 'message': "Excellent wrist deviation mobility"}

    t = WRIST_DEVIATION_GRADES['moderate']
    if max_radial >= t['radial'] and max_ulnar >= t['ulnar'] and total >= t['total']:
        return {'status': 'moderate', 'message': "Some deviation limitation present"}

    return {'status': 'limited', 'message': "Significant deviation restriction"}


def get_deviation_percentages(results):
    """
    Radial and ulnar deviation as a percentage of normal, capped for display.

    Args:
        results: WristDeviationResultsData
    """
    normal_radial = WRIST_NORMALS['radial_deviation']
    normal_ulnar = WRIST_NORMALS['ulnar_deviation']
    return {
        'radial_percentage': percent_of_normal(results.max_radial_deviation, normal_radial,
                                               PERCENT_OF_NORMAL_CAP),
        'ulnar_percentage': percent_of_normal(results.max_ulnar_deviation, normal_ulnar,
                                              PERCENT_OF_NORMAL_CAP),
        'normal_radial': normal_radial,
        'normal_ulnar': normal_ulnar,
    }


def get_deviation_quality_score(results, profile=STANDARD_PROFILE):
    """
    Measurement quality of a deviation recording, 0-100.

    60 points from tracking confidence, 20 from frame count (full at
    DEVIATION_TARGET_FRAMES), 20 when both maxima are physiologically
    plausible and 10 otherwise.
    """
    score = results.average_confidence * 60
    score += min(results.frame_count / DEVIATION_TARGET_FRAMES, 1.0) * 20

    plausible = (results.max_radial_deviation <= profile.max_radial_deviation
                 and results.max_ulnar_deviation <= profile.max_ulnar_deviation)
    score += 20 if plausible else 10

    return min(int(round(score)), 100)
