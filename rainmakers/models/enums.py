"""Enums for the event - these define the valid values for statuses and catalogue fields."""
from enum import Enum


class PledgeStatus(str, Enum):
    """A pledge is a concept until a published cache is confirmed against it."""
    CONCEPT = "CONCEPT"
    HIDDEN = "HIDDEN"


class CacheType(str, Enum):
    TRADITIONAL = "TRADITIONAL"
    MULTI = "MULTI"
    MYSTERY = "MYSTERY"
    LETTERBOX = "LETTERBOX"
    WHERIGO = "WHERIGO"
    VIRTUAL = "VIRTUAL"


class CacheSize(str, Enum):
    NANO = "NANO"
    MICRO = "MICRO"
    SMALL = "SMALL"
    REGULAR = "REGULAR"
    LARGE = "LARGE"
    OTHER = "OTHER"


class AustralianState(str, Enum):
    """States and territories the event runs in."""
    ACT = "ACT"
    NSW = "NSW"
    NT = "NT"
    QLD = "QLD"
    SA = "SA"
    TAS = "TAS"
    VIC = "VIC"
    WA = "WA"


class TargetKind(str, Enum):
    """Kinds of record an audit entry can point at."""
    PLEDGE = "PLEDGE"
    SUBMISSION = "SUBMISSION"


class AuditAction(str, Enum):
    UPDATE_PLEDGE = "UPDATE_PLEDGE"
    DELETE_PLEDGE = "DELETE_PLEDGE"
    UPDATE_SUBMISSION = "UPDATE_SUBMISSION"
    DELETE_SUBMISSION = "DELETE_SUBMISSION"
