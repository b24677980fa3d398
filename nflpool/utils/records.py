"""
Plain in-memory records shared by the scoring core.

These are the canonical shapes the pure computations in scoring.py,
survivor.py and leaderboard.py consume and produce. Database models convert
to and from them at the service boundary.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

TIE = "TIE"


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"


class PickOutcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    PENDING = "pending"
    MALFORMED = "malformed"


class EliminationReason(str, Enum):
    NO_PICK = "NO_PICK"
    TEAM_REUSE = "TEAM_REUSE"
    LOST = "LOST"


class SurvivorResult(str, Enum):
    WON = "won"
    TIED = "tied"
    LOST = "lost"
    PENDING = "pending"
    REUSED = "reused"
    NO_PICK = "no_pick"


class IssueKind(str, Enum):
    MISSING_GAME_DATA = "MISSING_GAME_DATA"
    MALFORMED_PICK = "MALFORMED_PICK"
    MISSING_POOL_MEMBER = "MISSING_POOL_MEMBER"
    AMBIGUOUS_TIE = "AMBIGUOUS_TIE"
    WINNER_MISMATCH = "WINNER_MISMATCH"
    INVALID_CONFIDENCE = "INVALID_CONFIDENCE"


@dataclass(frozen=True)
class DataIssue:
    """A recoverable data problem found while scoring, kept for audit."""

    kind: IssueKind
    message: str
    user_id: Optional[str] = None
    week: Optional[int] = None
    game_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "user_id": self.user_id,
            "week": self.week,
            "game_id": self.game_id,
        }


@dataclass(frozen=True)
class GameOutcome:
    """Result of reconciling a game's score fields with its winner field.

    ``decided`` is False until the game is final and a winner or tie can be
    established. ``discrepancy`` names the issue kind when the stored winner
    disagrees with the scores.
    """

    decided: bool
    winner: Optional[str] = None
    is_tie: bool = False
    discrepancy: Optional[IssueKind] = None


@dataclass
class GameResult:
    game_id: str
    away_team: str
    home_team: str
    status: GameStatus = GameStatus.SCHEDULED
    away_score: Optional[int] = None
    home_score: Optional[int] = None
    winner: Optional[str] = None
    kickoff: Optional[datetime] = None

    @property
    def is_final(self) -> bool:
        return self.status == GameStatus.FINAL

    def has_started(self, now: Optional[datetime] = None) -> bool:
        """A game has started once it is live or final, or its kickoff passed."""
        if self.status in (GameStatus.IN_PROGRESS, GameStatus.FINAL):
            return True
        if self.kickoff is None:
            return False
        now = now or datetime.now(timezone.utc)
        kickoff = self.kickoff
        if kickoff.tzinfo is None:
            kickoff = kickoff.replace(tzinfo=timezone.utc)
        return now >= kickoff

    def involves(self, team: str) -> bool:
        return team in (self.away_team, self.home_team)

    def resolve(self) -> GameOutcome:
        """Work out the winner of a final game.

        Scores are authoritative when both are present and not a 0-0
        placeholder. Otherwise the stored winner field is used as-is.
        """
        if not self.is_final:
            return GameOutcome(decided=False)

        scores_usable = (
            self.away_score is not None
            and self.home_score is not None
            and (self.away_score, self.home_score) != (0, 0)
        )

        if not scores_usable:
            if self.winner == TIE:
                return GameOutcome(decided=True, is_tie=True)
            if self.winner in (self.away_team, self.home_team):
                return GameOutcome(decided=True, winner=self.winner)
            return GameOutcome(decided=False)

        if self.away_score == self.home_score:
            discrepancy = None
            if self.winner is not None and self.winner != TIE:
                discrepancy = IssueKind.AMBIGUOUS_TIE
            return GameOutcome(decided=True, is_tie=True, discrepancy=discrepancy)

        score_winner = (
            self.away_team if self.away_score > self.home_score else self.home_team
        )
        discrepancy = None
        if self.winner == TIE:
            discrepancy = IssueKind.AMBIGUOUS_TIE
        elif self.winner is not None and self.winner != score_winner:
            discrepancy = IssueKind.WINNER_MISMATCH
        return GameOutcome(decided=True, winner=score_winner, discrepancy=discrepancy)

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "away_team": self.away_team,
            "home_team": self.home_team,
            "status": self.status.value,
            "away_score": self.away_score,
            "home_score": self.home_score,
            "winner": self.winner,
            "kickoff": self.kickoff.isoformat() if self.kickoff else None,
        }


@dataclass(frozen=True)
class PickEntry:
    """One confidence pick. ``confidence=None`` means absent, not zero."""

    game_id: str
    team: Optional[str]
    confidence: Optional[int]

    @property
    def is_valid_attempt(self) -> bool:
        return bool(self.team) and self.confidence is not None


@dataclass(frozen=True)
class PickResult:
    game_id: str
    team: Optional[str]
    confidence: Optional[int]
    outcome: PickOutcome
    points: int = 0
    is_tie: bool = False
    game_winner: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "game_id": self.game_id,
            "team": self.team,
            "confidence": self.confidence,
            "outcome": self.outcome.value,
            "points": self.points,
            "is_tie": self.is_tie,
            "game_winner": self.game_winner,
        }


@dataclass
class WeeklyScore:
    total_points: int = 0
    correct_picks: int = 0
    total_picks: int = 0
    accuracy: float = 0
    possible_points: int = 0
    max_possible_points: int = 0
    pick_results: List[PickResult] = field(default_factory=list)
    issues: List[DataIssue] = field(default_factory=list)

    def to_dict(self, include_details=False) -> dict:
        data = {
            "total_points": self.total_points,
            "correct_picks": self.correct_picks,
            "total_picks": self.total_picks,
            "accuracy": self.accuracy,
            "possible_points": self.possible_points,
            "max_possible_points": self.max_possible_points,
        }
        if include_details:
            data["pick_results"] = [r.to_dict() for r in self.pick_results]
            data["issues"] = [i.to_dict() for i in self.issues]
        return data


@dataclass(frozen=True)
class SurvivorWeek:
    week: int
    team: Optional[str]
    result: SurvivorResult

    def to_dict(self) -> dict:
        return {"week": self.week, "team": self.team, "result": self.result.value}


@dataclass
class SurvivorRecord:
    alive: bool = True
    eliminated_week: Optional[int] = None
    elimination_reason: Optional[EliminationReason] = None
    eliminated_by: Optional[str] = None
    pick_history: List[SurvivorWeek] = field(default_factory=list)
    weeks_survived: int = 0
    issues: List[DataIssue] = field(default_factory=list)

    @property
    def used_teams(self) -> List[str]:
        return [w.team for w in self.pick_history if w.team]

    def to_dict(self) -> dict:
        return {
            "alive": self.alive,
            "eliminated_week": self.eliminated_week,
            "elimination_reason": (
                self.elimination_reason.value if self.elimination_reason else None
            ),
            "eliminated_by": self.eliminated_by,
            "pick_history": [w.to_dict() for w in self.pick_history],
            "weeks_survived": self.weeks_survived,
        }


@dataclass
class LeaderboardEntry:
    user_id: str
    display_name: str
    points: int = 0
    rank: int = 0
    correct_picks: int = 0
    total_picks: int = 0
    accuracy: float = 0
    weeks_played: int = 0
    best_week: Optional[Dict[str, int]] = None
    worst_week: Optional[Dict[str, int]] = None
    consistency: float = 0
    weekly_points: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = asdict(self)
        # JSON object keys must be strings
        data["weekly_points"] = {str(w): p for w, p in self.weekly_points.items()}
        return data
