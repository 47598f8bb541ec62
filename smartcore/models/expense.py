from datetime import datetime
from ..extensions import db

EXPENSE_CATEGORIES = ("travel", "supplies", "services", "equipment", "utilities", "maintenance", "other")
EXPENSE_STATUSES = ("pending", "approved", "rejected", "paid")


class Expense(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    expense_date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    category = db.Column(db.String(16), nullable=False, default="other")
    description = db.Column(db.String(500), nullable=False, default="")
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True)
    receipt_url = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")  # pending|approved|rejected|paid
    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    approved_by = db.Column(db.Integer, nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
