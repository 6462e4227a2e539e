"""
Hand and wrist range-of-motion assessment from MediaPipe landmarks.
"""

__version__ = '0.1.0'
