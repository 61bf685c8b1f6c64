"""
Analysis orchestration: per-kind profiles, single-kind calls and batches.
"""

from communication_mirror.analysis.exceptions import BatchError
from communication_mirror.analysis.profiles import AnalysisProfile, build_profiles
from communication_mirror.analysis.service import AnalysisService

__all__ = ["AnalysisService", "AnalysisProfile", "build_profiles", "BatchError"]
