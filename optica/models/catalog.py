# catalog.py (arriba del todo)
from datetime import datetime
from optica.extensions import db

# ==========================================================
# Definición de Modelos (TODOS AQUÍ)
# Esto asegura que se definan una sola vez al cargar el módulo.
# ==========================================================

def _f(value):
    return float(value) if value is not None else None

def _iso(value):
    return value.isoformat() if value else None

# ---------------------- catálogos de valores ----------------------

FRAME_TYPES = ("prescription_frame", "sunglasses_frame")

PAYMENT_TYPES = ("sale", "debt_payment", "expense")
PAYMENT_METHODS = (
    "credit", "debit", "cash", "pix", "bank_slip",
    "promissory_note", "check", "mercado_pago",
)
CHECK_STATUSES = ("pending", "compensated", "rejected")

LEGACY_CLIENT_STATUSES = ("active", "inactive")


class SoftDeleteMixin:
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime)
    deleted_by = db.Column(db.Integer)

    def mark_deleted(self, user_id):
        self.is_deleted = True
        self.deleted_at = datetime.now()
        self.deleted_by = int(user_id) if user_id is not None else None


class User(db.Model):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True)
    role = db.Column(db.String(20), nullable=False, default="customer")
    debts = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "debts": _f(self.debts),
        }


class Product(db.Model):
    __tablename__ = "products"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    product_type = db.Column(db.String(30), nullable=False)
    description = db.Column(db.Text)
    brand = db.Column(db.String(80))
    sell_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    # solo armazones llevan stock
    stock = db.Column(db.Integer)

    @property
    def is_frame(self):
        return self.product_type in FRAME_TYPES

    @property
    def is_lens(self):
        if self.product_type == "lenses":
            return True
        return self.product_type != "clean_lens" and "lente" in (self.name or "").lower()

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "product_type": self.product_type,
            "description": self.description,
            "brand": self.brand,
            "sell_price": _f(self.sell_price),
            "stock": self.stock,
        }


order_products = db.Table(
    "order_products",
    db.Column("order_id", db.Integer, db.ForeignKey("orders.id"), primary_key=True),
    db.Column("product_id", db.Integer, db.ForeignKey("products.id"), primary_key=True),
)


class Counter(db.Model):
    """Secuencias con nombre (número de O.S.)."""
    __tablename__ = "counters"
    name = db.Column(db.String(50), primary_key=True)
    sequence = db.Column(db.Integer, nullable=False)


class Order(SoftDeleteMixin, db.Model):
    __tablename__ = "orders"
    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    employee_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    # quien responde por la deuda (por defecto el cliente)
    responsible_client_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    laboratory_id = db.Column(db.Integer, db.ForeignKey("laboratories.id"))

    payment_method = db.Column(db.String(30), nullable=False)
    payment_entry = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    installments = db.Column(db.Integer, nullable=False, default=1)
    order_date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    delivery_date = db.Column(db.DateTime)
    status = db.Column(db.String(20), nullable=False, default="pending")
    service_order = db.Column(db.String(20), unique=True)

    # receta
    doctor_name = db.Column(db.String(120))
    clinic_name = db.Column(db.String(120))
    appointment_date = db.Column(db.DateTime)

    observations = db.Column(db.Text)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    final_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    products = db.relationship("Product", secondary=order_products, lazy="subquery")
    client = db.relationship("User", foreign_keys=[client_id])
    employee = db.relationship("User", foreign_keys=[employee_id])
    laboratory = db.relationship("Laboratory")
    payment_history = db.relationship(
        "OrderPaymentHistory",
        backref="order",
        cascade="all, delete-orphan",
        order_by="OrderPaymentHistory.date",
    )

    @property
    def debtor_id(self):
        return self.responsible_client_id or self.client_id

    @property
    def has_lenses(self):
        return any(p.is_lens for p in self.products)

    def to_dict(self):
        return {
            "id": self.id,
            "client_id": self.client_id,
            "employee_id": self.employee_id,
            "responsible_client_id": self.responsible_client_id,
            "laboratory_id": self.laboratory_id,
            "products": [p.to_dict() for p in self.products],
            "payment_method": self.payment_method,
            "payment_entry": _f(self.payment_entry),
            "installments": self.installments,
            "order_date": _iso(self.order_date),
            "delivery_date": _iso(self.delivery_date),
            "status": self.status,
            "service_order": self.service_order,
            "prescription_data": {
                "doctor_name": self.doctor_name,
                "clinic_name": self.clinic_name,
                "appointment_date": _iso(self.appointment_date),
            },
            "observations": self.observations,
            "total_price": _f(self.total_price),
            "discount": _f(self.discount),
            "final_price": _f(self.final_price),
            "payment_status": self.payment_status,
            "payment_history": [h.to_dict() for h in self.payment_history],
            "is_deleted": self.is_deleted,
            "created_at": _iso(self.created_at),
        }


class OrderPaymentHistory(db.Model):
    __tablename__ = "order_payment_history"
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    method = db.Column(db.String(30))

    def to_dict(self):
        return {
            "payment_id": self.payment_id,
            "amount": _f(self.amount),
            "date": _iso(self.date),
            "method": self.method,
        }


class Payment(SoftDeleteMixin, db.Model):
    __tablename__ = "payments"
    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    type = db.Column(db.String(20), nullable=False)
    method = db.Column(db.String(30), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="completed")

    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id"), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    legacy_client_id = db.Column(db.Integer, db.ForeignKey("legacy_clients.id"))
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"))
    category = db.Column(db.String(60))
    description = db.Column(db.Text)
    # id externo (Mercado Pago)
    gateway_payment_id = db.Column(db.String(64), unique=True)

    # cuotas de tarjeta
    installments_current = db.Column(db.Integer)
    installments_total = db.Column(db.Integer)
    installments_value = db.Column(db.Numeric(12, 2))

    # deuda generada (boleto / pagaré)
    generate_debt = db.Column(db.Boolean, nullable=False, default=False)
    debt_installments_total = db.Column(db.Integer)
    debt_installment_value = db.Column(db.Numeric(12, 2))
    due_dates = db.Column(db.JSON)

    bank_slip_code = db.Column(db.String(80))
    bank_slip_bank = db.Column(db.String(80))
    promissory_note_number = db.Column(db.String(40))

    # cheque
    check_bank = db.Column(db.String(80))
    check_number = db.Column(db.String(40))
    check_date = db.Column(db.DateTime)
    check_account_holder = db.Column(db.String(120))
    check_branch = db.Column(db.String(20))
    check_account_number = db.Column(db.String(30))
    check_presentation_date = db.Column(db.DateTime)
    check_compensation_status = db.Column(db.String(20))
    check_rejection_reason = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    cash_register = db.relationship("CashRegister", backref="register_payments")
    order = db.relationship("Order", backref="payments")

    def to_dict(self):
        data = {
            "id": self.id,
            "amount": _f(self.amount),
            "date": _iso(self.date),
            "type": self.type,
            "method": self.method,
            "status": self.status,
            "cash_register_id": self.cash_register_id,
            "created_by": self.created_by,
            "customer_id": self.customer_id,
            "legacy_client_id": self.legacy_client_id,
            "order_id": self.order_id,
            "category": self.category,
            "description": self.description,
            "gateway_payment_id": self.gateway_payment_id,
            "is_deleted": self.is_deleted,
        }
        if self.installments_total:
            data["credit_card_installments"] = {
                "current": self.installments_current,
                "total": self.installments_total,
                "value": _f(self.installments_value),
            }
        if self.generate_debt:
            data["client_debt"] = {
                "generate_debt": True,
                "installments": {
                    "total": self.debt_installments_total,
                    "value": _f(self.debt_installment_value),
                },
                "due_dates": self.due_dates or [],
            }
        if self.method == "bank_slip":
            data["bank_slip"] = {"code": self.bank_slip_code, "bank": self.bank_slip_bank}
        if self.method == "promissory_note":
            data["promissory_note"] = {"number": self.promissory_note_number}
        if self.method == "check":
            data["check"] = {
                "bank": self.check_bank,
                "check_number": self.check_number,
                "check_date": _iso(self.check_date),
                "account_holder": self.check_account_holder,
                "branch": self.check_branch,
                "account_number": self.check_account_number,
                "presentation_date": _iso(self.check_presentation_date),
                "compensation_status": self.check_compensation_status,
                "rejection_reason": self.check_rejection_reason,
            }
        return data


class CashRegister(SoftDeleteMixin, db.Model):
    __tablename__ = "cash_registers"
    id = db.Column(db.Integer, primary_key=True)
    opening_date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    closing_date = db.Column(db.DateTime)
    opening_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    current_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    closing_balance = db.Column(db.Numeric(12, 2))
    status = db.Column(db.String(10), nullable=False, default="open")

    sales_total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sales_cash = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sales_credit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sales_debit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sales_pix = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sales_check = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payments_received = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payments_made = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    opened_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    closed_by = db.Column(db.Integer, db.ForeignKey("users.id"))
    observations = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "opening_date": _iso(self.opening_date),
            "closing_date": _iso(self.closing_date),
            "opening_balance": _f(self.opening_balance),
            "current_balance": _f(self.current_balance),
            "closing_balance": _f(self.closing_balance),
            "status": self.status,
            "sales": {
                "total": _f(self.sales_total),
                "cash": _f(self.sales_cash),
                "credit": _f(self.sales_credit),
                "debit": _f(self.sales_debit),
                "pix": _f(self.sales_pix),
                "check": _f(self.sales_check),
            },
            "payments": {
                "received": _f(self.payments_received),
                "made": _f(self.payments_made),
            },
            "opened_by": self.opened_by,
            "closed_by": self.closed_by,
            "observations": self.observations,
            "is_deleted": self.is_deleted,
        }


class AddressMixin:
    street = db.Column(db.String(150))
    number = db.Column(db.String(20))
    complement = db.Column(db.String(100))
    neighborhood = db.Column(db.String(100))
    city = db.Column(db.String(100))
    state = db.Column(db.String(2))
    zip_code = db.Column(db.String(8))

    def address_dict(self):
        return {
            "street": self.street,
            "number": self.number,
            "complement": self.complement,
            "neighborhood": self.neighborhood,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }


class Laboratory(AddressMixin, db.Model):
    __tablename__ = "laboratories"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    contact_name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address_dict(),
            "phone": self.phone,
            "email": self.email,
            "contact_name": self.contact_name,
            "is_active": self.is_active,
        }


class LegacyClient(AddressMixin, db.Model):
    __tablename__ = "legacy_clients"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    document_id = db.Column(db.String(14), unique=True)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20))
    total_debt = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    last_payment_date = db.Column(db.DateTime)
    last_payment_amount = db.Column(db.Numeric(12, 2))
    status = db.Column(db.String(10), nullable=False, default="active")
    observations = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    payment_history = db.relationship(
        "LegacyClientPayment",
        backref="client",
        cascade="all, delete-orphan",
        order_by="LegacyClientPayment.date",
    )

    def to_dict(self):
        last_payment = None
        if self.last_payment_date:
            last_payment = {
                "date": _iso(self.last_payment_date),
                "amount": _f(self.last_payment_amount),
            }
        return {
            "id": self.id,
            "name": self.name,
            "document_id": self.document_id,
            "email": self.email,
            "phone": self.phone,
            "address": self.address_dict(),
            "total_debt": _f(self.total_debt),
            "last_payment": last_payment,
            "status": self.status,
            "observations": self.observations,
        }


class LegacyClientPayment(db.Model):
    __tablename__ = "legacy_client_payments"
    id = db.Column(db.Integer, primary_key=True)
    legacy_client_id = db.Column(db.Integer, db.ForeignKey("legacy_clients.id"), nullable=False)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"))
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {
            "payment_id": self.payment_id,
            "amount": _f(self.amount),
            "date": _iso(self.date),
        }
