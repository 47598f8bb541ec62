# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import datetime

from ..extensions import db

TASK_STATUSES = ("unassigned", "assigned", "on_hold", "closed", "settled", "repeat")
# task_history.action_type
TASK_ACTIONS = ("created", "status_changed", "assigned", "updated")


class Vendor(db.Model):
    __tablename__ = "vendors"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False)
    contact_info = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Task(db.Model):
    """A vendor service call taken on by the team."""
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key=True)
    scs_id = db.Column(db.String(16), unique=True, nullable=True)  # SCS-000042, set after insert
    vendor_call_id = db.Column(db.String(64), nullable=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True, index=True)
    call_description = db.Column(db.Text, nullable=False)
    call_date = db.Column(db.Date, nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_address = db.Column(db.Text, nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    scs_remarks = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="unassigned", index=True)
    assigned_to = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = db.relationship("Vendor", lazy="joined")
    history = db.relationship(
        "TaskHistory", backref="task", lazy="select", cascade="all, delete-orphan",
        order_by="TaskHistory.id",
    )


class TaskHistory(db.Model):
    __tablename__ = "task_history"

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id"), nullable=False, index=True)
    changed_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    changed_at = db.Column(db.DateTime, default=datetime.utcnow)
    action_type = db.Column(db.String(16), nullable=False)  # created|status_changed|assigned|updated
    field_name = db.Column(db.String(64), nullable=True)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
