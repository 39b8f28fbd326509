from optica.extensions import db
from optica.models.catalog import User, Product


class UserRepo:
    @staticmethod
    def get_by_id(uid):
        if uid is None:
            return None
        return db.session.get(User, int(uid))

    @staticmethod
    def find_customers():
        return db.session.execute(
            db.select(User).where(User.role == "customer").order_by(User.id)
        ).scalars().all()


class ProductRepo:
    @staticmethod
    def get_by_ids(ids):
        ids = [int(i) for i in ids]
        if not ids:
            return []
        return db.session.execute(db.select(Product).where(Product.id.in_(ids))).scalars().all()
