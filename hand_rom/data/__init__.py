"""
Recording input and result export.

Contains:
- recording_loader: Load stored assessment records (JSON)
- results_exporter: Tabular export of assessment results (pandas)
"""

from .recording_loader import load_assessment_record, frames_from_record
from .results_exporter import ResultsExporter

__all__ = [
    'load_assessment_record',
    'frames_from_record',
    'ResultsExporter',
]
