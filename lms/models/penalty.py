from lms.extensions import db
from lms.utils.clock import utcnow


class Penalty(db.Model):
    __tablename__ = "penalties"

    id = db.Column(db.Integer, primary_key=True)

    borrow_id = db.Column(db.Integer, db.ForeignKey("borrows.id"), unique=True, nullable=False, index=True)

    # lost > damage > late
    penalty_type = db.Column(db.String(10), nullable=False, default="LATE")

    days_overdue = db.Column(db.Integer, nullable=False, default=0)
    daily_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    replacement_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    borrow = db.relationship("Borrow", backref=db.backref("penalty", uselist=False))

    def to_dict(self):
        return {
            "id": self.id,
            "borrowId": self.borrow_id,
            "penaltyType": self.penalty_type,
            "daysOverdue": self.days_overdue,
            "dailyFee": float(self.daily_fee),
            "replacementFee": float(self.replacement_fee or 0),
            "amount": float(self.amount),
            "isPaid": bool(self.is_paid),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
