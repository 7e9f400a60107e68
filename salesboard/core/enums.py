from enum import Enum


class Entity(str, Enum):
    """Business units a sales row can belong to."""
    HQ = "HQ"
    USA = "USA"
    BWA = "BWA"
    VIETNAM = "Vietnam"
    HEALTHCARE = "Healthcare"
    KOROT = "Korot"

    @classmethod
    def values(cls) -> list:
        return [member.value for member in cls]


class UploadStatus(str, Enum):
    """Lifecycle of an upload batch in the history table"""
    PROCESSING = "processing"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not UploadStatus.PROCESSING


class ValueKind(str, Enum):
    """Target type of a mapped spreadsheet column"""
    DATE = "date"
    NUMBER = "number"
    TEXT = "text"


class InsertStrategy(str, Enum):
    """How a failed chunk insert is handled."""
    ROW_FALLBACK = "row_fallback"  # retry the failed chunk row by row
    ABORT = "abort"                # mark the batch failed and stop


class IngestionState(str, Enum):
    """States of the ingestion state machine"""
    VALIDATING = "VALIDATING"
    PARSING = "PARSING"
    TRANSFORMING = "TRANSFORMING"
    PERSISTING = "PERSISTING"
    FINALIZED = "FINALIZED"
