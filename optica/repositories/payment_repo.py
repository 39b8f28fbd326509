from optica.extensions import db
from optica.models.catalog import Payment
from optica.utils.pagination import paginate_query


class PaymentRepo:
    @staticmethod
    def get_by_id(pid, include_deleted=False):
        payment = db.session.get(Payment, int(pid))
        if payment is None or (payment.is_deleted and not include_deleted):
            return None
        return payment

    @staticmethod
    def create(**data):
        obj = Payment(**data)
        db.session.add(obj)
        db.session.flush()
        return obj

    @staticmethod
    def get_by_gateway_id(gateway_id):
        return db.session.execute(
            db.select(Payment).where(Payment.gateway_payment_id == str(gateway_id))
        ).scalar_one_or_none()

    @staticmethod
    def _filtered(filters, deleted=False):
        query = db.select(Payment).where(Payment.is_deleted.is_(deleted))
        for field in ("type", "method", "status", "cash_register_id", "order_id",
                      "customer_id", "legacy_client_id", "created_by"):
            value = filters.get(field)
            if value not in (None, ""):
                query = query.where(getattr(Payment, field) == value)
        if filters.get("start_date"):
            query = query.where(Payment.date >= filters["start_date"])
        if filters.get("end_date"):
            query = query.where(Payment.date < filters["end_date"])
        return query

    @staticmethod
    def find_all(page, per_page, deleted=False, **filters):
        query = PaymentRepo._filtered(filters, deleted).order_by(Payment.date.desc(), Payment.id.desc())
        return paginate_query(query, page, per_page)

    @staticmethod
    def find_list(**filters):
        query = PaymentRepo._filtered(filters).order_by(Payment.date, Payment.id)
        return db.session.execute(query).scalars().all()

    @staticmethod
    def find_by_register(register_id):
        return PaymentRepo.find_list(cash_register_id=register_id)

    @staticmethod
    def find_checks(compensation_status=None, start_date=None, end_date=None):
        query = PaymentRepo._filtered({"method": "check", "start_date": start_date, "end_date": end_date})
        if compensation_status:
            query = query.where(Payment.check_compensation_status == compensation_status)
        return db.session.execute(query.order_by(Payment.date.desc())).scalars().all()
