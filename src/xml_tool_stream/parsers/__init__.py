"""Streaming parser components."""

from .argument_extractor import ArgumentExtractor
from .base import BaseStreamParser
from .call_accumulator import CallAccumulator, PendingCall, Resolution, ResolutionOutcome
from .event_emitter import EventEmitter
from .stream_parser import ParserOptions, XmlToolStreamParser, default_id_factory, log_parse_error
from .tag_scanner import ScanAction, ScanActionKind, ScannerState, TagScanner

__all__ = [
    "BaseStreamParser",
    "XmlToolStreamParser",
    "ParserOptions",
    "default_id_factory",
    "log_parse_error",
    "TagScanner",
    "ScanAction",
    "ScanActionKind",
    "ScannerState",
    "CallAccumulator",
    "PendingCall",
    "Resolution",
    "ResolutionOutcome",
    "ArgumentExtractor",
    "EventEmitter",
]
