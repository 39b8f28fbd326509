from sqlalchemy import or_, cast, String

from optica.extensions import db
from optica.models.catalog import CashRegister
from optica.utils.pagination import paginate_query


class CashRegisterRepo:
    @staticmethod
    def get_by_id(rid, include_deleted=False):
        register = db.session.get(CashRegister, int(rid))
        if register is None or (register.is_deleted and not include_deleted):
            return None
        return register

    @staticmethod
    def find_open():
        return db.session.execute(
            db.select(CashRegister)
            .where(CashRegister.status == "open", CashRegister.is_deleted.is_(False))
            .order_by(CashRegister.opening_date.desc())
        ).scalars().first()

    @staticmethod
    def create(**data):
        obj = CashRegister(**data)
        db.session.add(obj)
        db.session.flush()
        return obj

    @staticmethod
    def find_all(page, per_page, status=None, start_date=None, end_date=None, search=None,
                 deleted=False):
        query = db.select(CashRegister).where(CashRegister.is_deleted.is_(deleted))
        if status:
            query = query.where(CashRegister.status == status)
        if start_date:
            query = query.where(CashRegister.opening_date >= start_date)
        if end_date:
            query = query.where(CashRegister.opening_date < end_date)
        if search:
            like = f"%{search}%"
            query = query.where(or_(
                CashRegister.observations.ilike(like),
                cast(CashRegister.id, String).ilike(like),
            ))
        query = query.order_by(CashRegister.opening_date.desc(), CashRegister.id.desc())
        return paginate_query(query, page, per_page)

    @staticmethod
    def find_opened_between(start, end):
        return db.session.execute(
            db.select(CashRegister)
            .where(
                CashRegister.opening_date >= start,
                CashRegister.opening_date < end,
                CashRegister.is_deleted.is_(False),
            )
            .order_by(CashRegister.opening_date)
        ).scalars().all()
