from datetime import datetime, timezone

from nflpool import db


class SurvivorStatus(db.Model):
    """Stored survivor evaluation for one pool member"""

    __tablename__ = "survivor_status"

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey("pools.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)

    alive = db.Column(db.Boolean, default=True, nullable=False)
    eliminated_week = db.Column(db.Integer)
    elimination_reason = db.Column(db.String(20))
    eliminated_by = db.Column(db.String(100))
    weeks_survived = db.Column(db.Integer, default=0)
    pick_history = db.Column(db.JSON, default=list)

    evaluated_through_week = db.Column(db.Integer)
    calculated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("pool_id", "user_id", name="unique_survivor_status"),
        db.Index("idx_survivor_status_alive", "pool_id", "alive"),
    )

    def __repr__(self):
        state = "alive" if self.alive else f"out week {self.eliminated_week}"
        return f"<SurvivorStatus {self.user_id} {state}>"

    @staticmethod
    def upsert(pool_id, user_id, record, through_week, calculated_at=None):
        """Merge-write a SurvivorRecord over any stored row"""
        row = SurvivorStatus.query.filter_by(pool_id=pool_id, user_id=user_id).first()
        if row is None:
            row = SurvivorStatus(pool_id=pool_id, user_id=user_id)
            db.session.add(row)

        data = record.to_dict()
        row.alive = data["alive"]
        row.eliminated_week = data["eliminated_week"]
        row.elimination_reason = data["elimination_reason"]
        row.eliminated_by = data["eliminated_by"]
        row.weeks_survived = data["weeks_survived"]
        row.pick_history = data["pick_history"]
        row.evaluated_through_week = through_week
        row.calculated_at = calculated_at or datetime.now(timezone.utc)
        return row

    def to_dict(self):
        return {
            "pool_id": self.pool_id,
            "user_id": self.user_id,
            "alive": self.alive,
            "eliminated_week": self.eliminated_week,
            "elimination_reason": self.elimination_reason,
            "eliminated_by": self.eliminated_by,
            "weeks_survived": self.weeks_survived,
            "pick_history": self.pick_history or [],
            "evaluated_through_week": self.evaluated_through_week,
            "calculated_at": self.calculated_at.isoformat() if self.calculated_at else None,
        }
