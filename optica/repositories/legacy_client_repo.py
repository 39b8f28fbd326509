from sqlalchemy import or_

from optica.extensions import db
from optica.models.catalog import LegacyClient, LegacyClientPayment
from optica.utils.pagination import paginate_query


class LegacyClientRepo:
    @staticmethod
    def get_by_id(cid):
        if cid is None:
            return None
        return db.session.get(LegacyClient, int(cid))

    @staticmethod
    def find_by_document(document_id):
        return db.session.execute(
            db.select(LegacyClient).where(LegacyClient.document_id == document_id)
        ).scalar_one_or_none()

    @staticmethod
    def create(**data):
        obj = LegacyClient(**data)
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
    def find_all(page, per_page, status=None, search=None):
        query = db.select(LegacyClient)
        if status:
            query = query.where(LegacyClient.status == status)
        if search:
            like = f"%{search}%"
            query = query.where(or_(
                LegacyClient.name.ilike(like),
                LegacyClient.document_id.ilike(like),
                LegacyClient.email.ilike(like),
            ))
        return paginate_query(query.order_by(LegacyClient.name), page, per_page)

    @staticmethod
    def find_debtors(min_debt=None, max_debt=None):
        query = db.select(LegacyClient).where(
            LegacyClient.status == "active",
            LegacyClient.total_debt > 0,
        )
        if min_debt is not None:
            query = query.where(LegacyClient.total_debt >= min_debt)
        if max_debt is not None:
            query = query.where(LegacyClient.total_debt <= max_debt)
        return db.session.execute(query.order_by(LegacyClient.total_debt.desc())).scalars().all()

    @staticmethod
    def add_payment(client, amount, payment_id=None, date=None):
        entry = LegacyClientPayment(payment_id=payment_id, amount=amount)
        if date:
            entry.date = date
        client.payment_history.append(entry)
        db.session.flush()
        return entry

    @staticmethod
    def find_payments(client_id, start=None, end=None):
        query = db.select(LegacyClientPayment).where(LegacyClientPayment.legacy_client_id == int(client_id))
        if start:
            query = query.where(LegacyClientPayment.date >= start)
        if end:
            query = query.where(LegacyClientPayment.date < end)
        return db.session.execute(query.order_by(LegacyClientPayment.date.desc())).scalars().all()
