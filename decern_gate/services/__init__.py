"""Services module - Business logic layer"""

from .config_manager import ConfigManager, load_config
from .decern_client import DecernClient
from .gate import DecisionGate
from .git_source import GitDiffSource, GitError
from .judge_diff import JudgeDiffBuilder, build_judge_diff, get_diff_for_judge
from .policy import is_decision_required
from .references import extract_decision_ids, extract_references

__all__ = [
    "ConfigManager",
    "load_config",
    "DecernClient",
    "DecisionGate",
    "GitDiffSource",
    "GitError",
    "JudgeDiffBuilder",
    "build_judge_diff",
    "get_diff_for_judge",
    "is_decision_required",
    "extract_decision_ids",
    "extract_references",
]
