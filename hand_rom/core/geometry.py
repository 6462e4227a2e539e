"""
Geometric calculation utilities for hand landmark analysis.

All functions work on 3D normalized MediaPipe coordinates
(x, y in [0, 1] image space, z relative depth).

Angle conventions:
- angle_at: plain angle at the vertex, 0-180 degrees
- raw_joint_angle: 180 - angle_at, so a straight joint reads 0.
  Positive = flexion, negative = hyperextension (sign needs a flexion axis)
- flexion_angle: raw joint angle with hyperextension clipped to 0
"""
import math

import numpy as np

SQRT = math.sqrt
ACOS = math.acos
DEGREES = math.degrees

# Segments shorter than this are treated as degenerate
MIN_SEGMENT_LENGTH = 1e-9


def extract_point(landmark):
    """Return (x, y, z) for a Landmark, an object with x/y/z, or a sequence."""
    if hasattr(landmark, 'x'):
        return (landmark.x, landmark.y, getattr(landmark, 'z', 0.0))
    if isinstance(landmark, dict):
        return (landmark['x'], landmark['y'], landmark.get('z', 0.0))
    return (landmark[0], landmark[1], landmark[2])


def to_vector(landmark):
    return np.array(extract_point(landmark), dtype=float)


def unit(vector):
    """Normalize a numpy vector; returns None for degenerate input."""
    norm = float(np.linalg.norm(vector))
    if norm < MIN_SEGMENT_LENGTH:
        return None
    return vector / norm


def euclidean_distance(point_a, point_b):
    """
    Straight 3D distance between two landmarks.

    Args:
        point_a: Landmark or (x, y, z)
        point_b: Landmark or (x, y, z)

    Returns:
        Euclidean distance in normalized coordinate units
    """
    ax, ay, az = extract_point(point_a)
    bx, by, bz = extract_point(point_b)
    dx = ax - bx
    dy = ay - by
    dz = az - bz
    return SQRT(dx * dx + dy * dy + dz * dz)


def angle_at(point_a, point_b, pivot):
    """
    Angle in degrees at pivot between the rays to point_a and point_b.

    Args:
        point_a: First ray endpoint
        point_b: Second ray endpoint
        pivot: Vertex

    Returns:
        Angle in degrees (0-180), or 0.0 if either ray has zero length
    """
    ax, ay, az = extract_point(point_a)
    bx, by, bz = extract_point(point_b)
    px, py, pz = extract_point(pivot)

    pa_x = ax - px
    pa_y = ay - py
    pa_z = az - pz
    pb_x = bx - px
    pb_y = by - py
    pb_z = bz - pz

    dot_product = pa_x * pb_x + pa_y * pb_y + pa_z * pb_z
    mag_pa = SQRT(pa_x * pa_x + pa_y * pa_y + pa_z * pa_z)
    mag_pb = SQRT(pb_x * pb_x + pb_y * pb_y + pb_z * pb_z)

    if mag_pa < MIN_SEGMENT_LENGTH or mag_pb < MIN_SEGMENT_LENGTH:
        return 0.0

    cos_angle = max(-1.0, min(1.0, dot_product / (mag_pa * mag_pb)))
    return DEGREES(ACOS(cos_angle))


def raw_joint_angle(proximal, joint, distal, flexion_axis=None):
    """
    Signed joint angle: 0 for a straight joint, positive for flexion.

    Without a flexion axis the bend direction is unknown and the result
    is the unsigned bend (never negative). With one, a bend whose
    rotation (proximal segment x distal segment) opposes the axis is
    reported as hyperextension (negative).

    Args:
        proximal: Landmark before the joint
        joint: Joint landmark
        distal: Landmark after the joint
        flexion_axis: Optional numpy axis that flexion rotates about

    Returns:
        Angle in degrees (-180 to 180)
    """
    proximal_segment = to_vector(joint) - to_vector(proximal)
    distal_segment = to_vector(distal) - to_vector(joint)
    if (np.linalg.norm(proximal_segment) < MIN_SEGMENT_LENGTH
            or np.linalg.norm(distal_segment) < MIN_SEGMENT_LENGTH):
        return 0.0

    bend = 180.0 - angle_at(proximal, distal, joint)
    if flexion_axis is None or bend == 0.0:
        return bend

    rotation = np.cross(proximal_segment, distal_segment)
    if float(np.dot(rotation, flexion_axis)) < 0.0:
        return -bend
    return bend


def flexion_angle(proximal, joint, distal, flexion_axis=None):
    """Joint flexion in degrees with hyperextension clipped to 0."""
    return max(0.0, raw_joint_angle(proximal, joint, distal, flexion_axis))


def average_landmarks(indices, landmarks):
    """
    Average several landmarks into one synthetic (x, y, z) point.

    Args:
        indices: Landmark indices to average
        landmarks: Hand frame

    Returns:
        (x, y, z) tuple
    """
    points = [extract_point(landmarks[i]) for i in indices]
    count = len(points)
    return (
        sum(p[0] for p in points) / count,
        sum(p[1] for p in points) / count,
        sum(p[2] for p in points) / count,
    )


def palm_normal(landmarks):
    """
    Unoriented palm plane normal: (index MCP - wrist) x (pinky MCP - wrist).

    Which side of the palm it points to depends on hand chirality;
    callers orient it with HandType.chirality().

    Returns:
        Unit numpy vector, or None for a degenerate palm
    """
    wrist = to_vector(landmarks[0])
    index_mcp = to_vector(landmarks[5])
    pinky_mcp = to_vector(landmarks[17])
    return unit(np.cross(index_mcp - wrist, pinky_mcp - wrist))


def finger_flexion_axis(landmarks, chirality):
    """
    Axis that finger flexion rotates about, oriented for the hand's chirality.

    The MCP line (index MCP to pinky MCP) is perpendicular to the
    flexion plane of every long finger. Returns None when chirality is 0.
    """
    if not chirality:
        return None
    axis = unit(to_vector(landmarks[17]) - to_vector(landmarks[5]))
    if axis is None:
        return None
    return axis * chirality
