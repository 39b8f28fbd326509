from sqlalchemy import or_

from optica.extensions import db
from optica.models.catalog import Order, Counter, User
from optica.utils.pagination import paginate_query

SERVICE_ORDER_COUNTER = "serviceOrder"
SERVICE_ORDER_START = 300000


class OrderRepo:
    @staticmethod
    def get_by_id(oid, include_deleted=False):
        if oid is None:
            return None
        order = db.session.get(Order, int(oid))
        if order is None or (order.is_deleted and not include_deleted):
            return None
        return order

    @staticmethod
    def create(products, **data):
        obj = Order(**data)
        obj.products = list(products)
        db.session.add(obj)
        db.session.flush()
        return obj

    @staticmethod
    def next_service_order():
        counter = db.session.get(Counter, SERVICE_ORDER_COUNTER)
        if counter is None:
            counter = Counter(name=SERVICE_ORDER_COUNTER, sequence=SERVICE_ORDER_START)
            db.session.add(counter)
        counter.sequence += 1
        db.session.flush()
        return str(counter.sequence)

    @staticmethod
    def find_all(page, per_page, deleted=False, **filters):
        query = db.select(Order).where(Order.is_deleted.is_(deleted))
        for field in ("status", "client_id", "employee_id", "laboratory_id",
                      "payment_status", "service_order"):
            value = filters.get(field)
            if value not in (None, ""):
                query = query.where(getattr(Order, field) == value)
        if filters.get("start_date"):
            query = query.where(Order.order_date >= filters["start_date"])
        if filters.get("end_date"):
            query = query.where(Order.order_date < filters["end_date"])
        if filters.get("search"):
            like = f"%{filters['search']}%"
            query = query.join(User, User.id == Order.client_id).where(or_(
                User.name.ilike(like),
                Order.service_order.ilike(like),
                Order.observations.ilike(like),
            ))
        query = query.order_by(Order.order_date.desc(), Order.id.desc())
        return paginate_query(query, page, per_page)

    @staticmethod
    def find_by_client(client_id):
        return db.session.execute(
            db.select(Order)
            .where(Order.client_id == int(client_id), Order.is_deleted.is_(False))
            .order_by(Order.order_date.desc())
        ).scalars().all()

    @staticmethod
    def find_by_service_order(service_order):
        return db.session.execute(
            db.select(Order)
            .where(Order.service_order == str(service_order), Order.is_deleted.is_(False))
        ).scalars().all()

    @staticmethod
    def find_between(start, end):
        return db.session.execute(
            db.select(Order)
            .where(Order.order_date >= start, Order.order_date < end, Order.is_deleted.is_(False))
            .order_by(Order.order_date)
        ).scalars().all()

    @staticmethod
    def find_active_for_debtor(client_id):
        """Pedidos no cancelados donde el cliente responde por la deuda (incluye borrados: entregados siguen debiendo)."""
        cid = int(client_id)
        return db.session.execute(
            db.select(Order).where(
                or_(
                    Order.responsible_client_id == cid,
                    (Order.responsible_client_id.is_(None)) & (Order.client_id == cid),
                ),
                Order.status != "cancelled",
            )
        ).scalars().all()
