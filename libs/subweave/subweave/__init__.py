"""Subweave: chunked transcription, alignment and translation of subtitles."""

__version__ = "0.1.0"
