"""
Live camera analysis built on top of `gridbox_kit`.

The detector runtime stays in `gridbox_kit`; this package owns the live side:
- single-slot mailboxes between capture, the analysis worker and the display
- the single-worker frame analyzer
- detector profile and run config loading
- capture ingestion and the command-line runner
"""

from __future__ import annotations

from .analyzer import AnalysisResult, AnalyzerStats, FrameAnalyzer
from .config import DetectorProfile, load_detector_profile
from .ingest import CaptureInfo, bgr_to_raw_frame, get_capture_info, open_capture
from .mailbox import LatestSlot

__all__ = [
    "AnalysisResult",
    "AnalyzerStats",
    "FrameAnalyzer",
    "DetectorProfile",
    "load_detector_profile",
    "CaptureInfo",
    "bgr_to_raw_frame",
    "get_capture_info",
    "open_capture",
    "LatestSlot",
]
