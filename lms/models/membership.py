from datetime import timedelta

from lms.extensions import db

MEMBERSHIP_TYPES = ("NORMAL", "PREMIUM")

# package -> subscription length
PACKAGE_DURATIONS = {
    "ONE_MONTH": timedelta(days=30),
    "SIX_MONTHS": timedelta(days=180),
    "ONE_YEAR": timedelta(days=365),
}


class Membership(db.Model):
    __tablename__ = "memberships"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False, index=True)

    type = db.Column(db.String(10), nullable=False, default="NORMAL")
    subscription_package = db.Column(db.String(20), nullable=True)
    subscription_start = db.Column(db.DateTime, nullable=True)
    subscription_end = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref=db.backref("membership", uselist=False))

    def is_premium_at(self, now) -> bool:
        return (
            self.type == "PREMIUM"
            and self.subscription_end is not None
            and now <= self.subscription_end
        )
