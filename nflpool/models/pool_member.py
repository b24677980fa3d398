from datetime import datetime, timezone

from nflpool import db


class PoolMember(db.Model):
    __tablename__ = "pool_members"

    id = db.Column(db.Integer, primary_key=True)
    pool_id = db.Column(db.String(64), db.ForeignKey("pools.id"), nullable=False)
    user_id = db.Column(db.String(128), nullable=False)

    # Profile
    display_name = db.Column(db.String(100))
    email = db.Column(db.String(120))

    # Game enrollment
    confidence_enabled = db.Column(db.Boolean, default=True)
    survivor_enabled = db.Column(db.Boolean, default=False)

    # Membership status. Members are deactivated, never hard-deleted,
    # so their picks stay available for audit.
    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    left_at = db.Column(db.DateTime)

    # Constraints
    __table_args__ = (
        db.UniqueConstraint("pool_id", "user_id", name="unique_pool_member"),
        db.Index("idx_pool_members_active", "pool_id", "is_active"),
    )

    def __repr__(self):
        return f"<PoolMember {self.user_id} pool={self.pool_id}>"

    @property
    def full_name(self):
        """Return display name, email, or user id"""
        return self.display_name or self.email or self.user_id

    def deactivate(self):
        """Deactivate membership"""
        self.is_active = False
        self.left_at = datetime.now(timezone.utc)

    def reactivate(self):
        """Reactivate membership"""
        self.is_active = True
        self.left_at = None

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "pool_id": self.pool_id,
            "display_name": self.full_name,
            "email": self.email,
            "confidence_enabled": self.confidence_enabled,
            "survivor_enabled": self.survivor_enabled,
            "is_active": self.is_active,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
        }
