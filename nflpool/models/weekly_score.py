from datetime import datetime, timezone

from nflpool import db
from nflpool.utils.records import WeeklyScore


class UserWeeklyScore(db.Model):
    """Stored result of scoring one user's picks for one week.

    Derived data: rewritten every time the week is scored.
    """

    __tablename__ = "weekly_scores"

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey("pools.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)
    week = db.Column(db.Integer, nullable=False)

    total_points = db.Column(db.Integer, default=0, nullable=False)
    correct_picks = db.Column(db.Integer, default=0, nullable=False)
    total_picks = db.Column(db.Integer, default=0, nullable=False)
    accuracy = db.Column(db.Float, default=0.0, nullable=False)
    possible_points = db.Column(db.Integer, default=0)
    max_possible_points = db.Column(db.Integer, default=0)

    calculated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("pool_id", "user_id", "week", name="unique_user_week_score"),
        db.Index("idx_weekly_score_pool_week", "pool_id", "week"),
    )

    def __repr__(self):
        return f"<UserWeeklyScore {self.user_id} week={self.week} points={self.total_points}>"

    @staticmethod
    def upsert(pool_id, user_id, week, score, calculated_at=None):
        """Merge-write a WeeklyScore over any stored row"""
        row = UserWeeklyScore.query.filter_by(
            pool_id=pool_id, user_id=user_id, week=week
        ).first()
        if row is None:
            row = UserWeeklyScore(pool_id=pool_id, user_id=user_id, week=week)
            db.session.add(row)

        row.total_points = score.total_points
        row.correct_picks = score.correct_picks
        row.total_picks = score.total_picks
        row.accuracy = score.accuracy
        row.possible_points = score.possible_points
        row.max_possible_points = score.max_possible_points
        row.calculated_at = calculated_at or datetime.now(timezone.utc)
        return row

    @staticmethod
    def clear(pool_id, user_id, week):
        """Remove a stored score, returns True if one existed"""
        deleted = UserWeeklyScore.query.filter_by(
            pool_id=pool_id, user_id=user_id, week=week
        ).delete()
        return deleted > 0

    def to_score(self):
        return WeeklyScore(
            total_points=self.total_points,
            correct_picks=self.correct_picks,
            total_picks=self.total_picks,
            accuracy=self.accuracy,
            possible_points=self.possible_points or 0,
            max_possible_points=self.max_possible_points or 0,
        )

    @staticmethod
    def get_scores_by_week(pool_id, through_week=None):
        """Get {week: {user_id: WeeklyScore}} from stored rows"""
        query = UserWeeklyScore.query.filter_by(pool_id=pool_id)
        if through_week is not None:
            query = query.filter(UserWeeklyScore.week <= through_week)

        by_week = {}
        for row in query.order_by(UserWeeklyScore.week, UserWeeklyScore.user_id).all():
            by_week.setdefault(row.week, {})[row.user_id] = row.to_score()
        return by_week

    @staticmethod
    def get_week_scores(pool_id, week):
        """Get {user_id: WeeklyScore} for a single week"""
        rows = UserWeeklyScore.query.filter_by(pool_id=pool_id, week=week).all()
        return {row.user_id: row.to_score() for row in rows}

    def to_dict(self):
        return {
            "pool_id": self.pool_id,
            "user_id": self.user_id,
            "week": self.week,
            "total_points": self.total_points,
            "correct_picks": self.correct_picks,
            "total_picks": self.total_picks,
            "accuracy": self.accuracy,
            "possible_points": self.possible_points,
            "max_possible_points": self.max_possible_points,
            "calculated_at": self.calculated_at.isoformat() if self.calculated_at else None,
        }
