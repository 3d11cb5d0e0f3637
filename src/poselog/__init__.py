"""
poselog - live body-pose overlay with joint-angle and keypoint CSV logging.
"""

__version__ = "0.1.0"
