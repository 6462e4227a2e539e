"""
Test cases for elbow-referenced wrist angles.
"""
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from hand_rom.config import STANDARD_PROFILE
from hand_rom.core.evaluators import get_deviation_percentages, get_deviation_quality_score
from hand_rom.core.landmarks import HandType
from hand_rom.core.wrist import (
    WristDeviationResultsData,
    calculate_max_wrist_angles,
    calculate_wrist_angles,
    calculate_wrist_deviation_results,
    determine_hand_type,
)
from fixtures import frame_dict, make_frame, make_hand, make_pose, to_dicts


class TestWristAngles(unittest.TestCase):
    """Test single-frame wrist angles."""

    def setUp(self):
        self.hand = make_hand()

    def test_missing_pose_is_unavailable(self):
        result = calculate_wrist_angles(self.hand, None, 'RIGHT')
        self.assertFalse(result.available)
        self.assertEqual(result.reason, 'pose_missing')
        self.assertEqual(result.wrist_flexion_angle, 0.0)

    def test_unknown_hand_type_is_unavailable(self):
        pose = make_pose(self.hand, flexion=30.0)
        result = calculate_wrist_angles(self.hand, pose, None)
        self.assertFalse(result.available)
        self.assertEqual(result.reason, 'hand_type_unknown')

    def test_incomplete_hand_is_unavailable(self):
        pose = make_pose(self.hand)
        result = calculate_wrist_angles(self.hand[:15], pose, 'RIGHT')
        self.assertEqual(result.reason, 'incomplete_hand')

    def test_low_pose_visibility_is_unavailable(self):
        pose = make_pose(self.hand, flexion=30.0, visibility=0.3)
        result = calculate_wrist_angles(self.hand, pose, 'RIGHT')
        self.assertEqual(result.reason, 'pose_low_visibility')

    def test_neutral(self):
        result = calculate_wrist_angles(self.hand, make_pose(self.hand), 'RIGHT')
        self.assertTrue(result.available)
        self.assertAlmostEqual(result.wrist_flexion_angle, 0.0, places=4)
        self.assertAlmostEqual(result.wrist_extension_angle, 0.0, places=4)
        self.assertAlmostEqual(result.forearm_to_hand_angle, 180.0, places=4)

    def test_json_landmarks(self):
        pose = make_pose(self.hand, flexion=30.0)
        expected = calculate_wrist_angles(self.hand, pose, 'RIGHT')
        result = calculate_wrist_angles(to_dicts(self.hand), to_dicts(pose), 'RIGHT')
        self.assertTrue(result.available)
        self.assertAlmostEqual(result.wrist_flexion_angle, expected.wrist_flexion_angle, places=6)
        self.assertAlmostEqual(result.confidence, 0.9)

    def test_malformed_pose_is_unavailable(self):
        result = calculate_wrist_angles(self.hand, [{'y': 0.5}] * 33, 'RIGHT')
        self.assertEqual(result.reason, 'pose_missing')

    def test_flexion(self):
        pose = make_pose(self.hand, flexion=30.0)
        result = calculate_wrist_angles(self.hand, pose, 'RIGHT')
        self.assertAlmostEqual(result.wrist_flexion_angle, 30.0, places=3)
        self.assertEqual(result.wrist_extension_angle, 0.0)
        self.assertAlmostEqual(result.radial_deviation + result.ulnar_deviation, 0.0, places=3)
        self.assertAlmostEqual(result.forearm_to_hand_angle, 150.0, places=3)

    def test_extension(self):
        pose = make_pose(self.hand, flexion=-40.0)
        result = calculate_wrist_angles(self.hand, pose, 'RIGHT')
        self.assertAlmostEqual(result.wrist_extension_angle, 40.0, places=3)
        self.assertEqual(result.wrist_flexion_angle, 0.0)

    def test_flexion_is_capped(self):
        pose = make_pose(self.hand, flexion=85.0)
        result = calculate_wrist_angles(self.hand, pose, 'RIGHT')
        self.assertEqual(result.wrist_flexion_angle, STANDARD_PROFILE.max_wrist_flexion)

    def test_radial_and_ulnar_right(self):
        radial = calculate_wrist_angles(self.hand, make_pose(self.hand, deviation=15.0), 'RIGHT')
        ulnar = calculate_wrist_angles(self.hand, make_pose(self.hand, deviation=-20.0), 'RIGHT')
        self.assertAlmostEqual(radial.radial_deviation, 15.0, places=3)
        self.assertEqual(radial.ulnar_deviation, 0.0)
        self.assertAlmostEqual(ulnar.ulnar_deviation, 20.0, places=3)
        self.assertEqual(ulnar.radial_deviation, 0.0)

    def test_left_hand_uses_its_own_sign_convention(self):
        hand = make_hand(hand_type='LEFT')
        pose = make_pose(hand, 'LEFT', flexion=25.0)
        self.assertAlmostEqual(
            calculate_wrist_angles(hand, pose, 'LEFT').wrist_flexion_angle, 25.0, places=3)
        pose = make_pose(hand, 'LEFT', deviation=12.0)
        self.assertAlmostEqual(
            calculate_wrist_angles(hand, pose, 'LEFT').radial_deviation, 12.0, places=3)

    def test_mirrored_input_uses_opposite_pose_side(self):
        profile = STANDARD_PROFILE.with_overrides(mirrored_input=True)
        # Mirrored image of a right hand looks like a left hand
        hand = make_hand(hand_type='LEFT')
        pose = make_pose(hand, 'RIGHT', deviation=10.0, mirrored=True)
        result = calculate_wrist_angles(hand, pose, 'RIGHT', profile)
        self.assertTrue(result.available)
        self.assertAlmostEqual(result.radial_deviation, 10.0, places=3)

    def test_to_dict_rounds(self):
        pose = make_pose(self.hand, flexion=33.333)
        data = calculate_wrist_angles(self.hand, pose, 'RIGHT').to_dict()
        self.assertEqual(data['wristFlexionAngle'], 33.33)
        self.assertEqual(data['handType'], 'RIGHT')


class TestMaxWristAngles(unittest.TestCase):

    def test_independent_maxima(self):
        hand = make_hand()
        frames = [make_frame(hand, make_pose(hand, flexion=a)) for a in (0, 20, 45, -10, -35)]
        frames.append(make_frame(hand))
        session = calculate_max_wrist_angles(frames, 'RIGHT')
        self.assertTrue(session.available)
        self.assertAlmostEqual(session.max_wrist_flexion, 45.0, places=3)
        self.assertAlmostEqual(session.max_wrist_extension, 35.0, places=3)
        self.assertEqual(session.frames_used, 5)
        self.assertEqual(session.frame_count, 6)

    def test_no_pose_anywhere(self):
        session = calculate_max_wrist_angles([make_frame(make_hand())] * 3, 'RIGHT')
        self.assertFalse(session.available)
        self.assertEqual(session.max_wrist_flexion, 0.0)


class TestDetermineHandType(unittest.TestCase):

    def test_by_visibility(self):
        hand = make_hand()
        pose = make_pose(hand, 'RIGHT', visibility=0.9, other_visibility=0.2)
        self.assertIs(determine_hand_type(hand, pose), HandType.RIGHT)

    def test_by_distance_when_visibility_ties(self):
        hand = make_hand(hand_type='LEFT')
        pose = make_pose(hand, 'LEFT', visibility=0.8, other_visibility=0.8)
        self.assertIs(determine_hand_type(hand, pose), HandType.LEFT)

    def test_mirrored(self):
        hand = make_hand()
        pose = make_pose(hand, 'RIGHT', visibility=0.9, other_visibility=0.2)
        self.assertIs(determine_hand_type(hand, pose, mirrored=True), HandType.LEFT)

    def test_without_pose(self):
        self.assertIs(determine_hand_type(make_hand(), None), HandType.UNKNOWN)

    def test_json_landmarks(self):
        hand = make_hand()
        pose = make_pose(hand, 'RIGHT', visibility=0.9, other_visibility=0.2)
        self.assertIs(determine_hand_type(to_dicts(hand), to_dicts(pose)), HandType.RIGHT)


class TestDeviationResults(unittest.TestCase):
    """Test deviation results from stored assessment records."""

    def _record(self, deviations, **extra):
        hand = make_hand()
        motion = [frame_dict(hand, make_pose(hand, deviation=d), i / 30.0, 'handLandmarks')
                  for i, d in enumerate(deviations)]
        record = {'id': 7, 'handType': 'RIGHT', 'repetitionData': [{'motionData': motion}]}
        record.update(extra)
        return record

    def test_from_motion(self):
        results = calculate_wrist_deviation_results(self._record([0.0, 10.0, -15.0, 5.0]))
        self.assertEqual(results.source, 'motion')
        self.assertAlmostEqual(results.max_radial_deviation, 10.0, places=3)
        self.assertAlmostEqual(results.max_ulnar_deviation, 15.0, places=3)
        self.assertAlmostEqual(results.total_deviation_rom, 25.0, places=3)
        self.assertEqual(results.hand_type, 'RIGHT')
        # Neutral frame does not count; landmarks without visibility default to 0.7
        self.assertEqual(results.frame_count, 3)
        self.assertAlmostEqual(results.average_confidence, 0.7)

    def test_motion_beats_stored(self):
        record = self._record([10.0], maxRadialDeviation='30', maxUlnarDeviation='40')
        self.assertEqual(calculate_wrist_deviation_results(record).source, 'motion')

    def test_stored_fallback(self):
        record = {'id': 8, 'handType': 'LEFT', 'repetitionData': [],
                  'maxRadialDeviation': '18.5', 'maxUlnarDeviation': 22}
        results = calculate_wrist_deviation_results(record)
        self.assertEqual(results.source, 'stored')
        self.assertEqual(results.total_deviation_rom, 40.5)
        self.assertEqual(results.average_confidence, 1.0)

    def test_nothing_available(self):
        results = calculate_wrist_deviation_results({'id': 9})
        self.assertEqual(results.source, 'none')
        self.assertEqual(results.hand_type, 'UNKNOWN')
        self.assertEqual(results.total_deviation_rom, 0.0)

    def test_percentages_and_quality(self):
        results = WristDeviationResultsData(
            max_radial_deviation=40.0, max_ulnar_deviation=15.0, total_deviation_rom=55.0,
            frame_count=75, hand_type='RIGHT', average_confidence=0.9)
        percentages = get_deviation_percentages(results)
        self.assertEqual(percentages['radial_percentage'], 150.0)
        self.assertEqual(percentages['ulnar_percentage'], 50.0)
        # 0.9 * 60 + 75 / 150 * 20 + 20
        self.assertEqual(get_deviation_quality_score(results), 84)

    def test_quality_penalizes_implausible_range(self):
        results = WristDeviationResultsData(60.0, 10.0, 70.0, 300, 'RIGHT', 1.0)
        self.assertEqual(get_deviation_quality_score(results), 90)


if __name__ == '__main__':
    unittest.main()
