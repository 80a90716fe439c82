"""User account model."""
from datetime import datetime
from ellarises.extensions import db

ROLES = ['user', 'manager', 'admin']
ELEVATED_ROLES = ['manager', 'admin']
STATUSES = ['active', 'inactive']


class User(db.Model):
    __tablename__ = 'users'
    __table_args__ = (
        db.CheckConstraint("role IN ('user', 'manager', 'admin')", name='ck_users_role'),
        db.CheckConstraint("status IN ('active', 'inactive')", name='ck_users_status'),
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    role = db.Column(db.String(20), nullable=False, default='user')
    status = db.Column(db.String(20), nullable=False, default='active')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    last_password_change = db.Column(db.DateTime)

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def display_name(self):
        return self.full_name or self.username

    @property
    def is_active(self):
        return self.status == 'active'

    @property
    def is_elevated(self):
        return self.role in ELEVATED_ROLES
