"""
SST Handler Validator - Find broken handler references in SST infrastructure code.
"""

__version__ = "0.1.0"

from shv.core.extractor import HandlerContextExtractor
from shv.core.scanner import ProjectFileScanner
from shv.core.statistics import StatisticsAnalyzer
from shv.core.validator import HandlerValidator

__all__ = ["HandlerContextExtractor", "HandlerValidator", "ProjectFileScanner", "StatisticsAnalyzer"]
