# src/campus_checkin/services/__init__.py
"""Business logic services for attendance check-in."""

from .attendance import AttendanceRecorder
from .codec import TokenCodec
from .generator import GeneratedToken, TokenGenerator
from .replay import ReplayGuard
from .scanner import ScanSession
from .signing import SignatureEngine
from .store import SqlRecordStore
from .validator import TokenValidator

__all__ = [
    "AttendanceRecorder",
    "GeneratedToken",
    "ReplayGuard",
    "ScanSession",
    "SignatureEngine",
    "SqlRecordStore",
    "TokenCodec",
    "TokenGenerator",
    "TokenValidator",
]
