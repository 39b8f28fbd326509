from sqlalchemy import func

from optica.extensions import db
from optica.models.catalog import Laboratory, Order
from optica.utils.pagination import paginate_query


class LaboratoryRepo:
    @staticmethod
    def get_by_id(lid):
        if lid is None:
            return None
        return db.session.get(Laboratory, int(lid))

    @staticmethod
    def find_by_email(email):
        return db.session.execute(
            db.select(Laboratory).where(func.lower(Laboratory.email) == (email or "").strip().lower())
        ).scalar_one_or_none()

    @staticmethod
    def find_all(page, per_page, is_active=None):
        query = db.select(Laboratory)
        if is_active is not None:
            query = query.where(Laboratory.is_active.is_(is_active))
        return paginate_query(query.order_by(Laboratory.name), page, per_page)

    @staticmethod
    def create(**data):
        obj = Laboratory(**data)
        db.session.add(obj)
        db.session.flush()
        return obj

    @staticmethod
    def update(obj, **data):
        for k, v in data.items():
            setattr(obj, k, v)
        db.session.flush()
        return obj

    @staticmethod
    def delete(obj):
        db.session.delete(obj)
        db.session.flush()

    @staticmethod
    def has_orders(lid):
        return db.session.execute(
            db.select(Order.id).where(Order.laboratory_id == int(lid)).limit(1)
        ).first() is not None
