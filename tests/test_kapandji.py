"""
Test cases for Kapandji opposition scoring.
"""
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from hand_rom.config import LEGACY_PROFILE, STANDARD_PROFILE
from hand_rom.core.geometry import average_landmarks, extract_point
from hand_rom.core.kapandji import (
    calculate_kapandji_score,
    calculate_max_kapandji_score,
    score_kapandji_sequence,
)
from hand_rom.core.landmarks import InvalidInputError
from fixtures import make_hand, to_dicts


def thumb_at(point, hand_type='RIGHT'):
    return make_hand(hand_type=hand_type, thumb_tip=point)


def target(index_or_indices, hand_type='RIGHT'):
    hand = make_hand(hand_type=hand_type)
    if isinstance(index_or_indices, int):
        return extract_point(hand[index_or_indices])
    return average_landmarks(index_or_indices, hand)


class TestSingleFrame(unittest.TestCase):

    def test_open_hand_scores_zero(self):
        score = calculate_kapandji_score(make_hand())
        self.assertEqual(score.max_score, 0)
        self.assertEqual(score.reached_landmarks, ())
        self.assertFalse(any(score.details.values()))

    def test_thumb_on_index_tip(self):
        score = calculate_kapandji_score(thumb_at(target(8)))
        self.assertGreaterEqual(score.max_score, 2)
        self.assertIn('Index Tip', score.reached_landmarks)
        self.assertTrue(score.details['indexTip'])

    def test_thumb_on_little_tip(self):
        score = calculate_kapandji_score(thumb_at(target(20)))
        self.assertEqual(score.max_score, 5)

    def test_proximal_crease_scores_nine(self):
        score = calculate_kapandji_score(thumb_at(target((0, 9, 13))))
        self.assertEqual(score.max_score, 9)
        self.assertTrue(score.details['proximalCrease'])
        self.assertFalse(score.details['fullOpposition'])

    def test_full_opposition_right(self):
        pinky_mcp = target(17)
        point = (pinky_mcp[0] - 0.08, pinky_mcp[1] + 0.02, pinky_mcp[2])
        score = calculate_kapandji_score(thumb_at(point), 'RIGHT')
        self.assertEqual(score.max_score, 10)
        self.assertIn('Full Opposition', score.reached_landmarks)

    def test_full_opposition_left_uses_mirrored_side(self):
        pinky_mcp = target(17, 'LEFT')
        point = (pinky_mcp[0] + 0.08, pinky_mcp[1] + 0.02, pinky_mcp[2])
        score = calculate_kapandji_score(thumb_at(point, 'LEFT'), 'LEFT')
        self.assertEqual(score.max_score, 10)

    def test_declared_hand_type_decides_radial_side(self):
        # Right-hand geometry, but the opposite side is declared
        pinky_mcp = target(17)
        point = (pinky_mcp[0] + 0.08, pinky_mcp[1] + 0.02, pinky_mcp[2])
        hand = thumb_at(point)
        self.assertEqual(calculate_kapandji_score(hand, 'LEFT').max_score, 10)
        self.assertFalse(calculate_kapandji_score(hand).details['fullOpposition'])
        self.assertFalse(calculate_kapandji_score(hand, 'RIGHT').details['fullOpposition'])

    def test_mirrored_input_flips_declared_side(self):
        pinky_mcp = target(17)
        point = (pinky_mcp[0] + 0.08, pinky_mcp[1] + 0.02, pinky_mcp[2])
        mirrored = STANDARD_PROFILE.with_overrides(mirrored_input=True)
        score = calculate_kapandji_score(thumb_at(point), 'RIGHT', profile=mirrored)
        self.assertEqual(score.max_score, 10)

    def test_json_landmarks(self):
        score = calculate_kapandji_score(to_dicts(thumb_at(target(8))))
        self.assertIn('Index Tip', score.reached_landmarks)
        self.assertTrue(score.details['indexTip'])

    def test_full_opposition_threshold_is_looser(self):
        pinky_mcp = target(17)
        # 0.05 from the radial target: outside 0.04, inside 0.04 * 1.5
        point = (pinky_mcp[0] - 0.08 + 0.05, pinky_mcp[1] + 0.02, pinky_mcp[2])
        self.assertEqual(calculate_kapandji_score(thumb_at(point)).max_score, 10)

    def test_wrong_landmark_count_raises(self):
        with self.assertRaises(InvalidInputError):
            calculate_kapandji_score(make_hand()[:19])

    def test_legacy_targets(self):
        score = calculate_kapandji_score(thumb_at(target(5)), profile=LEGACY_PROFILE)
        self.assertEqual(score.max_score, 1)
        self.assertTrue(score.details['indexMcp'])
        self.assertNotIn('indexTip', score.details)


class TestSequence(unittest.TestCase):

    def setUp(self):
        self.frames = [
            make_hand(),
            thumb_at(target(8)),
            thumb_at(target(20)),
            thumb_at(target(12)),
            make_hand()[:12],
            thumb_at(target((0, 9, 13))),
            thumb_at(target(16)),
        ]

    def test_best_frame_wins(self):
        best = calculate_max_kapandji_score(self.frames)
        self.assertEqual(best.max_score, 9)
        self.assertEqual(best.frame_index, 5)

    def test_score_never_decreases_as_frames_are_appended(self):
        previous = 0
        for n in range(1, len(self.frames) + 1):
            score = calculate_max_kapandji_score(self.frames[:n]).max_score
            self.assertGreaterEqual(score, previous)
            previous = score

    def test_equal_score_keeps_first_frame(self):
        frames = [thumb_at(target(8)), thumb_at(target(8))]
        self.assertEqual(calculate_max_kapandji_score(frames).frame_index, 0)

    def test_union_and_best_frame_are_both_reported(self):
        sequence = score_kapandji_sequence(self.frames)
        self.assertEqual(sequence.frames_scored, 6)
        self.assertEqual(sequence.best_frame.reached_landmarks, ('Proximal Crease',))
        self.assertEqual(sequence.accumulated_landmarks,
                         ('Index Tip', 'Middle Tip', 'Ring Tip', 'Little Tip', 'Proximal Crease'))
        self.assertTrue(sequence.accumulated_details['middleTip'])
        self.assertFalse(sequence.best_frame.details['middleTip'])

    def test_empty_sequence(self):
        sequence = score_kapandji_sequence([])
        self.assertEqual(sequence.max_score, 0)
        self.assertEqual(sequence.to_dict()['accumulatedLandmarks'], [])


if __name__ == '__main__':
    unittest.main()
