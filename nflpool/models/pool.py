from datetime import datetime, timezone

from nflpool import db


class Pool(db.Model):
    __tablename__ = "pools"

    id = db.Column(db.String(64), primary_key=True)  # e.g. "nerduniverse-2025"
    name = db.Column(db.String(100), nullable=False)
    season = db.Column(db.Integer, nullable=False, index=True)

    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    members = db.relationship(
        "PoolMember", backref="pool", lazy="dynamic", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Pool {self.id} season={self.season}>"

    @staticmethod
    def create_pool(pool_id, name, season):
        """Create a new pool"""
        pool = Pool(id=pool_id, name=name, season=season)
        db.session.add(pool)
        return pool

    @staticmethod
    def get_active_pools():
        return Pool.query.filter_by(is_active=True).order_by(Pool.id).all()

    def get_members(self, game=None, include_inactive=False):
        """Get members keyed by user id, optionally only those enrolled in a game

        Args:
            game: "confidence", "survivor" or None for everyone
            include_inactive: include members removed from the pool
        """
        from .pool_member import PoolMember

        query = self.members
        if not include_inactive:
            query = query.filter_by(is_active=True)
        if game == "confidence":
            query = query.filter(PoolMember.confidence_enabled.is_(True))
        elif game == "survivor":
            query = query.filter(PoolMember.survivor_enabled.is_(True))

        return {m.user_id: m for m in query.order_by(PoolMember.user_id).all()}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "season": self.season,
            "is_active": self.is_active,
            "member_count": self.members.filter_by(is_active=True).count(),
        }
