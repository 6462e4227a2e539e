"""
Test cases for record loading and result export.
"""
import json
import os
import sys
import tempfile
import unittest
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent))

from hand_rom.core.aggregator import AssessmentAggregator
from hand_rom.core.landmarks import MotionFrame
from hand_rom.data import ResultsExporter, frames_from_record, load_assessment_record
from fixtures import frame_dict, make_hand


def tam_record():
    motion = [frame_dict(make_hand({'index': (a, a, a)}, visibility=0.95), timestamp=i / 30.0)
              for i, a in enumerate((0.0, 10.0, 20.0, 30.0))]
    motion.append({'timestamp': 0.2, 'landmarks': [{'x': 0.1}]})
    return {
        'id': 11,
        'assessmentName': 'TAM (Total Active Motion)',
        'handType': 'RIGHT',
        'repetitionData': [{'motionData': motion}],
    }


class TestRecordLoader(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, 'record.json')
        with open(self.path, 'w') as f:
            json.dump(tam_record(), f)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_assessment_record(os.path.join(self.tmpdir.name, 'missing.json'))

    def test_load_and_frames(self):
        record = load_assessment_record(self.path)
        frames = frames_from_record(record)
        self.assertEqual(len(frames), 5)
        self.assertIsInstance(frames[0], MotionFrame)
        self.assertTrue(frames[0].has_complete_hand)
        # Malformed landmarks give an empty frame instead of an error
        self.assertEqual(frames[4].landmarks, ())

    def test_missing_repetition(self):
        self.assertEqual(frames_from_record(load_assessment_record(self.path), 3), ())

    def test_record_aggregates(self):
        result = AssessmentAggregator().aggregate_record(load_assessment_record(self.path))
        self.assertEqual(result.frame_count, 5)
        self.assertEqual(result.valid_frame_count, 4)
        self.assertAlmostEqual(result.values['index']['totalActiveRom'], 90.0, delta=1.0)


class TestResultsExporter(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.exporter = ResultsExporter()
        self.record = tam_record()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_summary_csv(self):
        result = AssessmentAggregator().aggregate_record(self.record)
        path = self.exporter.export_summary([result], os.path.join(self.tmpdir.name, 'out',
                                                                   'summary.csv'))
        df = pd.read_csv(path)
        self.assertEqual(len(df), 1)
        self.assertEqual(df.loc[0, 'assessment_type'], 'TAM')
        self.assertIn('index_totalActiveRom', df.columns)
        self.assertIn('index_quality', df.columns)

    def test_frame_angles_json(self):
        frames = frames_from_record(self.record)
        path = self.exporter.export_frame_angles(
            frames, os.path.join(self.tmpdir.name, 'angles.json'), hand_type='RIGHT')
        with open(path) as f:
            rows = json.load(f)
        # 4 complete frames x 4 fingers
        self.assertEqual(len(rows), 16)
        index_rows = [r for r in rows if r['finger'] == 'index']
        self.assertEqual(index_rows[-1]['pip_flexion'], 30.0)
        self.assertEqual(index_rows[-1]['total_flexion'], 90.0)

    def test_empty_summary(self):
        self.assertTrue(self.exporter.summary_frame([]).empty)


if __name__ == '__main__':
    unittest.main()
