"""
Network clients: fetchers, session cookie cache and the document retriever.
"""

from .fetchers import CurlFetcher, Fetcher, FetchResponse, HttpxFetcher
from .retriever import DocumentRetriever
from .session_cache import SessionCache

__all__ = [
    'CurlFetcher',
    'Fetcher',
    'FetchResponse',
    'HttpxFetcher',
    'DocumentRetriever',
    'SessionCache',
]
