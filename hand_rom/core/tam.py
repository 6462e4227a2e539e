"""
Extension deficit and Total Active Motion (TAM).

A finger that flexes to 90 degrees but cannot extend past 20 degrees has
only 70 degrees of active motion. Per joint:

    max_flexion = max(flexion over frames)
    extension_deficit = max(0, min(raw angle over frames))
    joint_tam = max(0, max_flexion - extension_deficit)

and total_active_rom is the sum of the three joint TAMs.
"""
import logging

import numpy as np

from .joint_angles import JOINTS, JointAngles

logger = logging.getLogger(__name__)


def correct_for_extension_deficit(readings):
    """
    Reduce a repetition's readings for one finger to deficit-corrected TAM.

    Args:
        readings: Iterable of reliable FingerJointReading for one finger

    Returns:
        JointAngles with per-joint TAM, extension deficits and flexion maxima
        (flexion maxima with no deficits when any reading is unsigned)
    """
    readings = [r for r in readings if r.reliable]
    if not readings:
        return JointAngles.zero()
    if not all(r.signed for r in readings):
        # Hyperextension is indistinguishable from flexion without a sign
        logger.info(
            "%s readings are unsigned; extension deficit not applied",
            readings[0].finger.value,
            extra={'finger': readings[0].finger.value, 'value': None},
        )
        return max_flexion_rom(readings)

    flexion_max = {}
    deficits = {}
    joint_tam = {}
    for joint in JOINTS:
        flexion_series = np.array([r.flexion[joint] for r in readings], dtype=float)
        raw_series = np.array([r.raw[joint] for r in readings], dtype=float)
        flexion_max[joint] = max(0.0, float(flexion_series.max()))
        deficits[joint] = max(0.0, float(raw_series.min()))
        joint_tam[joint] = max(0.0, flexion_max[joint] - deficits[joint])

    total = joint_tam['mcp'] + joint_tam['pip'] + joint_tam['dip']
    logger.debug(
        "%s TAM %.1f (deficits mcp=%.1f pip=%.1f dip=%.1f)",
        readings[0].finger.value, total,
        deficits['mcp'], deficits['pip'], deficits['dip'],
        extra={'finger': readings[0].finger.value, 'value': total},
    )
    return JointAngles(
        mcp_angle=joint_tam['mcp'],
        pip_angle=joint_tam['pip'],
        dip_angle=joint_tam['dip'],
        total_active_rom=total,
        mcp_extension_deficit=deficits['mcp'],
        pip_extension_deficit=deficits['pip'],
        dip_extension_deficit=deficits['dip'],
        mcp_flexion=flexion_max['mcp'],
        pip_flexion=flexion_max['pip'],
        dip_flexion=flexion_max['dip'],
    )


def max_flexion_rom(readings):
    """
    Flexion-only reduction: per-joint maxima, no deficit correction.

    Used by the legacy scoring profile.
    """
    readings = [r for r in readings if r.reliable]
    if not readings:
        return JointAngles.zero()

    maxima = {
        joint: max(0.0, max(r.flexion[joint] for r in readings))
        for joint in JOINTS
    }
    return JointAngles(
        mcp_angle=maxima['mcp'],
        pip_angle=maxima['pip'],
        dip_angle=maxima['dip'],
        total_active_rom=maxima['mcp'] + maxima['pip'] + maxima['dip'],
        mcp_flexion=maxima['mcp'],
        pip_flexion=maxima['pip'],
        dip_flexion=maxima['dip'],
    )
