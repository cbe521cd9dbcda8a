from dataclasses import dataclass, field
from enum import Enum


class MatchType(str, Enum):
    NAME = "name"
    PATH = "path"
    CONTENT = "content"


class SessionState(Enum):
    SEARCHING = "searching"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class FileRef:
    path: str  # identity within the vault
    name: str


@dataclass(frozen=True)
class Highlight:
    start: int
    end: int  # exclusive


@dataclass
class MatchSnippet:
    text: str
    highlights: list[Highlight] = field(default_factory=list)


@dataclass
class SearchResult:
    path: str
    name: str
    score: float
    match_type: MatchType
    matches: list[MatchSnippet] = field(default_factory=list)


@dataclass(frozen=True)
class Progress:
    scanned: int
    total: int


@dataclass
class SearchSession:
    generation: int
    query: str  # normalized
    tokens: tuple[str, ...]
    state: SessionState = SessionState.SEARCHING

    @classmethod
    def create(cls, generation: int, query: str) -> "SearchSession":
        return cls(generation=generation, query=query, tokens=tuple(query.split()))
