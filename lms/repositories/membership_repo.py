from lms.models.membership import Membership
from lms.extensions import db


class MembershipRepo:
    @staticmethod
    def get_for_user(user_id: int):
        return Membership.query.filter_by(user_id=user_id).first()

    @staticmethod
    def get_or_create(user_id: int):
        m = MembershipRepo.get_for_user(user_id)
        if not m:
            m = Membership(user_id=user_id, type="NORMAL")
            db.session.add(m)
        return m

    @staticmethod
    def commit():
        db.session.commit()
