from datetime import datetime, timezone

from nflpool import db
from nflpool.utils.records import PickEntry


class ConfidencePick(db.Model):
    __tablename__ = "confidence_picks"

    id = db.Column(db.Integer, primary_key=True)

    # Pick identification
    pool_id = db.Column(db.String(64), db.ForeignKey("pools.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)
    week = db.Column(db.Integer, nullable=False)
    game_id = db.Column(db.String(20), nullable=False)

    # Pick details. NULL confidence means "absent", 0 is kept as stored.
    team = db.Column(db.String(100))
    confidence = db.Column(db.Integer)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Constraints and indexes
    __table_args__ = (
        db.UniqueConstraint(
            "pool_id", "user_id", "week", "game_id", name="unique_user_week_game_pick"
        ),
        db.Index("idx_pick_pool_week", "pool_id", "week"),
    )

    def __repr__(self):
        return f"<ConfidencePick {self.user_id} week={self.week} game={self.game_id} team={self.team} conf={self.confidence}>"

    def to_entry(self):
        return PickEntry(game_id=self.game_id, team=self.team, confidence=self.confidence)

    @staticmethod
    def get_week_picks(pool_id, week):
        """Get {user_id: {game_id: PickEntry}} for a pool and week"""
        picks = (
            ConfidencePick.query.filter_by(pool_id=pool_id, week=week)
            .order_by(ConfidencePick.user_id, ConfidencePick.game_id)
            .all()
        )
        by_user = {}
        for pick in picks:
            by_user.setdefault(pick.user_id, {})[pick.game_id] = pick.to_entry()
        return by_user

    @staticmethod
    def replace_user_week(pool_id, user_id, week, entries):
        """Replace a user's picks for a week with the given PickEntries"""
        ConfidencePick.query.filter_by(
            pool_id=pool_id, user_id=user_id, week=week
        ).delete()

        for entry in entries.values():
            db.session.add(
                ConfidencePick(
                    pool_id=pool_id,
                    user_id=user_id,
                    week=week,
                    game_id=entry.game_id,
                    team=entry.team,
                    confidence=entry.confidence,
                )
            )

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "week": self.week,
            "game_id": self.game_id,
            "team": self.team,
            "confidence": self.confidence,
        }


class SurvivorPick(db.Model):
    __tablename__ = "survivor_picks"

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey("pools.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)
    week = db.Column(db.Integer, nullable=False)
    team = db.Column(db.String(100), nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("pool_id", "user_id", "week", name="unique_survivor_week_pick"),
        db.Index("idx_survivor_pick_pool", "pool_id", "user_id"),
    )

    def __repr__(self):
        return f"<SurvivorPick {self.user_id} week={self.week} team={self.team}>"

    @staticmethod
    def get_pool_histories(pool_id):
        """Get {user_id: {week: team}} for a pool, weeks in order"""
        picks = (
            SurvivorPick.query.filter_by(pool_id=pool_id)
            .order_by(SurvivorPick.user_id, SurvivorPick.week)
            .all()
        )
        histories = {}
        for pick in picks:
            histories.setdefault(pick.user_id, {})[pick.week] = pick.team
        return histories

    @staticmethod
    def set_pick(pool_id, user_id, week, team):
        """Create or update a user's survivor pick for a week"""
        pick = SurvivorPick.query.filter_by(
            pool_id=pool_id, user_id=user_id, week=week
        ).first()
        if pick is None:
            pick = SurvivorPick(pool_id=pool_id, user_id=user_id, week=week)
            db.session.add(pick)
        pick.team = team
        return pick
