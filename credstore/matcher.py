"""Interface of the external structured-query matching capability."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

Candidate = Dict[str, Any]


@dataclass
class MatchResult:
    """
    Outcome of evaluating a query against candidate credentials.

    matched_candidates holds the candidate dicts the matcher selected,
    in the order the matcher reports them.
    """
    matched: bool
    matched_candidates: List[Candidate] = field(default_factory=list)


class QueryMatcher(Protocol):
    """
    Evaluates a structured query (e.g. DCQL) against candidate credentials.

    Each candidate is a flat claim dict `{"raw": <credential>, **claims}`.
    Matching semantics live entirely in the implementation.
    """

    def match(self, query: Any, candidates: List[Candidate]) -> MatchResult:
        ...
