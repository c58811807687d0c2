"""
ingest/__init__.py

Public API for the ingestion sub-package.
"""

from .parser import parse_record
from .traffic_log import TRAFFIC_LOG, TrafficLog

__all__ = ["parse_record", "TRAFFIC_LOG", "TrafficLog"]
