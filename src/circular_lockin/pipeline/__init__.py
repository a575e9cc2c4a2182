"""
Pipeline components for locating listing circulars and parsing lock-in schedules.
"""

from .aggregator import aggregate_unlock_events, unlock_percentage
from .annexure import find_annexure_link, is_listing_notice, select_annexure_href
from .documents import document_text, extract_text, select_pdf_from_zip
from .extractor import ExtractionOutput, LockInExtractor
from .locator import CircularLocator, ExchangeEndpoints
from .names import matches_company, significant_words
from .pipeline import LockInPipeline, extract_lockin_schedule, resolve_circular, result_from_schedule
from .splitter import find_arithmetic_split, find_range_split

__all__ = [
    # Main Pipeline
    'LockInPipeline',
    'resolve_circular',
    'extract_lockin_schedule',
    'result_from_schedule',
    # Location
    'CircularLocator',
    'ExchangeEndpoints',
    'matches_company',
    'significant_words',
    'find_annexure_link',
    'select_annexure_href',
    'is_listing_notice',
    # Documents
    'document_text',
    'extract_text',
    'select_pdf_from_zip',
    # Extraction
    'LockInExtractor',
    'ExtractionOutput',
    'find_arithmetic_split',
    'find_range_split',
    # Aggregation
    'aggregate_unlock_events',
    'unlock_percentage',
]
