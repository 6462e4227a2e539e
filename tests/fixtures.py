"""
Synthetic landmark builders for tests.

Hands face the camera (palm toward -z) with fingers pointing up the image.
A RIGHT hand has its thumb toward -x; a LEFT hand is the x-mirror of it.
Each finger flexes in the plane spanned by its metacarpal direction and
the palmar normal, so the requested joint angles are reproduced exactly.
"""
import math

import numpy as np

from hand_rom.core.landmarks import HandType, Landmark, MotionFrame
from hand_rom.core.wrist import pose_side_indices

WRIST = (0.5, 0.9, 0.0)

# Right-hand MCP positions in the image plane
MCP_POSITIONS = {
    'index': (0.42, 0.56),
    'middle': (0.50, 0.55),
    'ring': (0.57, 0.56),
    'pinky': (0.64, 0.58),
}
FINGER_ORDER = ('index', 'middle', 'ring', 'pinky')
SEGMENT_LENGTHS = (0.08, 0.05, 0.04)

THUMB = (
    (0.42, 0.82, 0.0),
    (0.36, 0.76, 0.0),
    (0.32, 0.71, 0.0),
    (0.29, 0.67, 0.0),
)

PALMAR = np.array([0.0, 0.0, -1.0])


def _finger_points(mcp_xy, angles):
    """PIP, DIP and tip of one finger bent by (mcp, pip, dip) degrees."""
    wrist = np.array(WRIST)
    mcp = np.array([mcp_xy[0], mcp_xy[1], 0.0])
    base = mcp - wrist
    base = base / np.linalg.norm(base)

    points = [mcp]
    current = mcp
    total = 0.0
    for angle, length in zip(angles, SEGMENT_LENGTHS):
        total += math.radians(angle)
        direction = math.cos(total) * base + math.sin(total) * PALMAR
        current = current + length * direction
        points.append(current)
    return points


def make_hand(flexion=None, hand_type='RIGHT', visibility=None, thumb_tip=None):
    """
    Build a 21-landmark hand.

    Args:
        flexion: {finger_name: (mcp, pip, dip)} joint angles in degrees;
            unlisted fingers are straight, negative values hyperextend
        hand_type: 'RIGHT' or 'LEFT'
        visibility: Visibility applied to every landmark (None = absent)
        thumb_tip: Optional (x, y, z) for landmark 4

    Returns:
        List of 21 Landmark
    """
    flexion = flexion or {}
    points = [np.array(WRIST)]
    points.extend(np.array(p) for p in THUMB)
    for finger in FINGER_ORDER:
        chain = _finger_points(MCP_POSITIONS[finger], flexion.get(finger, (0.0, 0.0, 0.0)))
        points.extend(chain)

    if thumb_tip is not None:
        points[4] = np.array(thumb_tip, dtype=float)

    mirror = HandType.parse(hand_type) is HandType.LEFT
    landmarks = []
    for p in points:
        x = 1.0 - p[0] if mirror else p[0]
        landmarks.append(Landmark(float(x), float(p[1]), float(p[2]), visibility))
    return landmarks


def make_fist(hand_type='RIGHT', visibility=None):
    """All four long fingers at 90 degrees per joint."""
    return make_hand({f: (90.0, 90.0, 90.0) for f in FINGER_ORDER}, hand_type, visibility)


def make_pose(hand, hand_type='RIGHT', flexion=0.0, deviation=0.0, visibility=0.9,
              other_visibility=0.3, mirrored=False, forearm_length=0.3):
    """
    Build a 33-landmark pose whose forearm sets the requested wrist angles.

    The hand is kept fixed; the elbow is placed so that the hand's long
    axis sits flexion degrees toward the palm and deviation degrees toward
    the thumb relative to the forearm.
    """
    chirality = HandType.parse(hand_type).chirality(mirrored)
    radial_x = -1.0 if chirality > 0 else 1.0

    forearm = np.array([
        -radial_x * math.tan(math.radians(deviation)),
        -1.0,
        math.tan(math.radians(flexion)),
    ])
    forearm = forearm / np.linalg.norm(forearm)

    wrist = np.array([hand[0].x, hand[0].y, hand[0].z])
    elbow = wrist - forearm_length * forearm
    shoulder = elbow + np.array([0.0, 0.3, 0.0])

    pose = [Landmark(0.5, 0.3, 0.0, 0.2) for _ in range(33)]
    shoulder_idx, elbow_idx, wrist_idx = pose_side_indices(HandType.parse(hand_type), mirrored)
    pose[shoulder_idx] = Landmark(*shoulder, visibility)
    pose[elbow_idx] = Landmark(*elbow, visibility)
    pose[wrist_idx] = Landmark(*wrist, visibility)

    # Opposite arm resting far from the hand
    other = {11: 12, 12: 11, 13: 14, 14: 13, 15: 16, 16: 15}
    for idx in (shoulder_idx, elbow_idx, wrist_idx):
        src = pose[idx]
        pose[other[idx]] = Landmark(1.0 - src.x + (0.2 if src.x < 0.5 else -0.2),
                                    src.y, src.z, other_visibility)
    return pose


def make_frame(hand, pose=None, timestamp=0.0, confidences=None):
    return MotionFrame(timestamp=timestamp, landmarks=tuple(hand),
                       pose_landmarks=None if pose is None else tuple(pose),
                       confidences=confidences)


def to_dicts(landmarks):
    return [lm.to_dict() for lm in landmarks]


def frame_dict(hand, pose=None, timestamp=0.0, hand_key='landmarks'):
    data = {'timestamp': timestamp, hand_key: to_dicts(hand)}
    if pose is not None:
        data['poseLandmarks'] = to_dicts(pose)
    return data
