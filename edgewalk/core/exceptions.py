"""Edgewalk custom exceptions."""


class EdgewalkError(Exception):
    """Base exception for Edgewalk errors."""


class EngineError(EdgewalkError):
    """The analysis engine could not produce a call graph."""


class EntryFileError(EngineError):
    """Entry file is missing or not supported by the engine."""


class ParseError(EngineError):
    """Error reading or parsing a source file."""


class AnalysisCancelledError(EngineError):
    """Call graph construction was cancelled before it finished."""
