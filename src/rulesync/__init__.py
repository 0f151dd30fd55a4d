"""RuleSync: distribute central Markdown rules into per-tool project files."""

__version__ = "0.1.0"
__author__ = "RuleSync Contributors"
__description__ = "Distribute central Markdown rules into per-tool project files"

from .executor import execute_intents
from .formats import FORMATS, MultiFileFormat, SingleFileFormat, get_format
from .guard import PathGuard
from .loader import load_rules
from .models import Rule, VerificationResult, WriteIntent
from .patterns import split_patterns
from .verifier import verify_rules

__all__ = [
    "FORMATS",
    "MultiFileFormat",
    "PathGuard",
    "Rule",
    "SingleFileFormat",
    "VerificationResult",
    "WriteIntent",
    "execute_intents",
    "get_format",
    "load_rules",
    "split_patterns",
    "verify_rules",
]
