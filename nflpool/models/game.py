from datetime import datetime, timezone

from nflpool import db
from nflpool.utils.records import GameResult, GameStatus
from nflpool.utils.teams import abbreviation_for


def _as_naive_utc(value):
    # Stored kickoffs are naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Game(db.Model):
    __tablename__ = "games"

    id = db.Column(db.Integer, primary_key=True)

    # Game identification ("101", "102" ... numbered per week)
    season = db.Column(db.Integer, nullable=False)
    week = db.Column(db.Integer, nullable=False)
    game_id = db.Column(db.String(20), nullable=False)

    # Teams (canonical full names)
    away_team = db.Column(db.String(100), nullable=False)
    home_team = db.Column(db.String(100), nullable=False)

    # Game timing
    kickoff = db.Column(db.DateTime)

    # Result
    status = db.Column(db.String(20), default=GameStatus.SCHEDULED.value, nullable=False)
    away_score = db.Column(db.Integer)
    home_score = db.Column(db.Integer)
    winner = db.Column(db.String(100))  # team name, "TIE", or NULL until final

    # External IDs for API integration
    espn_id = db.Column(db.String(50), unique=True, index=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Indexes
    __table_args__ = (
        db.UniqueConstraint("season", "week", "game_id", name="unique_week_game"),
        db.Index("idx_game_season_week", "season", "week"),
        db.CheckConstraint("home_team != away_team", name="different_teams"),
    )

    def __repr__(self):
        return f"<Game {self.game_id} {self.away_team} @ {self.home_team} Week {self.week}>"

    @property
    def is_final(self):
        return self.status == GameStatus.FINAL.value

    def to_result(self):
        """Convert to the in-memory GameResult used by the scoring core"""
        return GameResult(
            game_id=self.game_id,
            away_team=self.away_team,
            home_team=self.home_team,
            status=GameStatus(self.status),
            away_score=self.away_score,
            home_score=self.home_score,
            winner=self.winner,
            kickoff=self.kickoff,
        )

    def apply_result(self, result):
        """Copy a GameResult's fields onto this row, returns True if anything changed"""
        changed = False
        for field in ("away_team", "home_team", "away_score", "home_score", "winner"):
            value = getattr(result, field)
            if getattr(self, field) != value:
                setattr(self, field, value)
                changed = True

        if self.status != result.status.value:
            self.status = result.status.value
            changed = True

        kickoff = _as_naive_utc(result.kickoff)
        if kickoff is not None and self.kickoff != kickoff:
            self.kickoff = kickoff
            changed = True

        return changed

    @staticmethod
    def get_games_for_week(season, week):
        """Get all games for a week ordered by game id"""
        return (
            Game.query.filter_by(season=season, week=week)
            .order_by(Game.game_id)
            .all()
        )

    @staticmethod
    def get_week_results(season, week):
        """Get {game_id: GameResult} for a week"""
        return {g.game_id: g.to_result() for g in Game.get_games_for_week(season, week)}

    @staticmethod
    def get_results_by_week(season, through_week):
        """Get {week: {game_id: GameResult}} for weeks 1..through_week"""
        games = (
            Game.query.filter(Game.season == season, Game.week <= through_week)
            .order_by(Game.week, Game.game_id)
            .all()
        )
        by_week = {week: {} for week in range(1, through_week + 1)}
        for game in games:
            by_week[game.week][game.game_id] = game.to_result()
        return by_week

    @staticmethod
    def next_game_id(season, week):
        """Next free game id for a week (week 3 -> "301", "302", ...)"""
        existing = [
            int(g.game_id)
            for g in Game.query.filter_by(season=season, week=week).all()
            if g.game_id.isdigit()
        ]
        return str(max(existing) + 1) if existing else str(week * 100 + 1)

    def to_dict(self):
        """Convert game to dictionary for API responses"""
        outcome = self.to_result().resolve()
        return {
            "game_id": self.game_id,
            "season": self.season,
            "week": self.week,
            "away_team": self.away_team,
            "home_team": self.home_team,
            "away_abbreviation": abbreviation_for(self.away_team),
            "home_abbreviation": abbreviation_for(self.home_team),
            "kickoff": self.kickoff.isoformat() if self.kickoff else None,
            "status": self.status,
            "away_score": self.away_score,
            "home_score": self.home_score,
            "winner": self.winner,
            "resolved_winner": outcome.winner,
            "is_tie": outcome.is_tie,
        }
