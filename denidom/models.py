import uuid
from datetime import datetime, timezone

from denidom import db


def _new_id(prefix):
    return f'{prefix}-{uuid.uuid4().hex[:12].upper()}'


def _id_column(prefix):
    return db.Column(db.String(32), primary_key=True, default=lambda: _new_id(prefix))


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class User(TimestampMixin, db.Model):
    __tablename__ = 'user'
    id            = _id_column('USR')
    email         = db.Column(db.String(255), unique=True, nullable=False)
    name          = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role          = db.Column(db.String(16), nullable=False, default='USER')

    def to_dict(self, with_role=False):
        data = {'id': self.id, 'email': self.email, 'name': self.name}
        if with_role:
            data['role'] = self.role
        return data


class Client(TimestampMixin, db.Model):
    __tablename__ = 'client'
    id      = _id_column('CLI')
    name    = db.Column(db.String(255), nullable=False)
    type    = db.Column(db.String(16), nullable=False, default='COMPANY')
    contact = db.Column(db.String(255))
    phone   = db.Column(db.String(64))
    email   = db.Column(db.String(255))
    address = db.Column(db.Text)
    inn     = db.Column(db.String(12))
    kpp     = db.Column(db.String(9))
    notes   = db.Column(db.Text)
    user_id = db.Column(db.String(32), db.ForeignKey('user.id'), nullable=False)

    projects = db.relationship('Project', backref='client', lazy=True)

    def to_dict(self, with_projects=False):
        data = {
            'id'        : self.id,
            'name'      : self.name,
            'type'      : self.type,
            'contact'   : self.contact,
            'phone'     : self.phone,
            'email'     : self.email,
            'address'   : self.address,
            'inn'       : self.inn,
            'kpp'       : self.kpp,
            'notes'     : self.notes,
            'userId'    : self.user_id,
            'createdAt' : _iso(self.created_at),
            'updatedAt' : _iso(self.updated_at),
        }
        if with_projects:
            data['projects'] = [p.to_summary() for p in self.projects]
        return data


class Project(TimestampMixin, db.Model):
    __tablename__ = 'project'
    id           = _id_column('PRJ')
    name         = db.Column(db.String(255), nullable=False)
    description  = db.Column(db.Text)
    status       = db.Column(db.String(16), nullable=False, default='DRAFT')
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    client_id    = db.Column(db.String(32), db.ForeignKey('client.id'))
    user_id      = db.Column(db.String(32), db.ForeignKey('user.id'), nullable=False)

    estimates = db.relationship(
        'Estimate',
        backref='project',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='Estimate.created_at',
    )

    def recalculate_total(self):
        """Project total is the sum of its estimate totals."""
        self.total_amount = round(sum(e.total or 0 for e in self.estimates), 2)
        return self.total_amount

    def to_summary(self):
        return {
            'id'          : self.id,
            'name'        : self.name,
            'status'      : self.status,
            'totalAmount' : self.total_amount,
        }

    def to_dict(self, with_estimates=False):
        data = {
            'id'          : self.id,
            'name'        : self.name,
            'description' : self.description,
            'status'      : self.status,
            'totalAmount' : self.total_amount,
            'clientId'    : self.client_id,
            'userId'      : self.user_id,
            'client'      : {'id': self.client.id, 'name': self.client.name} if self.client else None,
            'createdAt'   : _iso(self.created_at),
            'updatedAt'   : _iso(self.updated_at),
        }
        if with_estimates:
            data['estimates'] = [e.to_dict() for e in self.estimates]
        else:
            data['estimates'] = [
                {'id': e.id, 'name': e.name, 'total': e.total} for e in self.estimates
            ]
        return data


class Estimate(TimestampMixin, db.Model):
    __tablename__ = 'estimate'
    id          = _id_column('EST')
    name        = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    type        = db.Column(db.String(16), nullable=False, default='COMMERCIAL')
    items       = db.Column(db.JSON, nullable=False, default=list)
    subtotal    = db.Column(db.Float, nullable=False, default=0.0)
    overhead    = db.Column(db.Float, nullable=False, default=0.0)
    profit      = db.Column(db.Float, nullable=False, default=0.0)
    total       = db.Column(db.Float, nullable=False, default=0.0)
    options     = db.Column(db.JSON, nullable=False, default=dict)
    user_id     = db.Column(db.String(32), db.ForeignKey('user.id'))
    project_id  = db.Column(db.String(32), db.ForeignKey('project.id'))

    def apply_totals(self, result):
        """Copy a calculator result onto the estimate."""
        self.items    = result['items']
        self.subtotal = result['subtotal']
        self.overhead = result['overhead']
        self.profit   = result['profit']
        self.total    = result['total']
        self.options  = result['options']

    def to_dict(self):
        return {
            'id'          : self.id,
            'name'        : self.name,
            'description' : self.description,
            'type'        : self.type,
            'items'       : self.items or [],
            'subtotal'    : self.subtotal,
            'overhead'    : self.overhead,
            'profit'      : self.profit,
            'total'       : self.total,
            'options'     : self.options or {},
            'userId'      : self.user_id,
            'projectId'   : self.project_id,
            'createdAt'   : _iso(self.created_at),
            'updatedAt'   : _iso(self.updated_at),
        }


class Normative(db.Model):
    __tablename__ = 'normative'
    id          = _id_column('NRM')
    code        = db.Column(db.String(64), unique=True, nullable=False)
    name        = db.Column(db.String(255), nullable=False)
    unit        = db.Column(db.String(32), nullable=False)
    price       = db.Column(db.Float, nullable=False, default=0.0)
    type        = db.Column(db.String(8), nullable=False, default='FER')
    category    = db.Column(db.String(128))
    description = db.Column(db.Text)
    region      = db.Column(db.String(64))
    year        = db.Column(db.Integer)

    commercial_prices = db.relationship('CommercialPrice', backref='normative', lazy=True)

    def to_dict(self):
        return {
            'id'          : self.id,
            'code'        : self.code,
            'name'        : self.name,
            'unit'        : self.unit,
            'price'       : self.price,
            'type'        : self.type,
            'category'    : self.category,
            'description' : self.description,
            'region'      : self.region,
            'year'        : self.year,
        }

    def to_summary(self):
        return {
            'id'    : self.id,
            'code'  : self.code,
            'name'  : self.name,
            'unit'  : self.unit,
            'price' : self.price,
        }


class CommercialPrice(TimestampMixin, db.Model):
    __tablename__ = 'commercial_price'
    id             = _id_column('CPR')
    normative_id   = db.Column(db.String(32), db.ForeignKey('normative.id'))
    code           = db.Column(db.String(64))
    name           = db.Column(db.String(255), nullable=False)
    unit           = db.Column(db.String(32), nullable=False)
    category       = db.Column(db.String(128))
    price          = db.Column(db.Float, nullable=False)
    min_price      = db.Column(db.Float)
    max_price      = db.Column(db.Float)
    cost_price     = db.Column(db.Float)
    margin_percent = db.Column(db.Float)
    region         = db.Column(db.String(64))
    source         = db.Column(db.String(255))
    notes          = db.Column(db.Text)
    is_active      = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (
        db.UniqueConstraint('normative_id', 'region', name='uq_commercial_normative_region'),
    )

    def to_dict(self):
        return {
            'id'            : self.id,
            'normativeId'   : self.normative_id,
            'code'          : self.code,
            'name'          : self.name,
            'unit'          : self.unit,
            'category'      : self.category,
            'price'         : self.price,
            'minPrice'      : self.min_price,
            'maxPrice'      : self.max_price,
            'costPrice'     : self.cost_price,
            'marginPercent' : self.margin_percent,
            'region'        : self.region,
            'source'        : self.source,
            'notes'         : self.notes,
            'isActive'      : self.is_active,
            'normative'     : self.normative.to_summary() if self.normative else None,
        }


class CustomPrice(TimestampMixin, db.Model):
    __tablename__ = 'custom_price'
    id           = _id_column('CUS')
    user_id      = db.Column(db.String(32), db.ForeignKey('user.id'), nullable=False)
    normative_id = db.Column(db.String(32), db.ForeignKey('normative.id'))
    code         = db.Column(db.String(64))
    name         = db.Column(db.String(255), nullable=False)
    unit         = db.Column(db.String(32), nullable=False)
    category     = db.Column(db.String(128))
    price        = db.Column(db.Float, nullable=False)
    notes        = db.Column(db.Text)

    normative = db.relationship('Normative', lazy=True)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'normative_id', name='uq_custom_user_normative'),
        db.UniqueConstraint('user_id', 'code', name='uq_custom_user_code'),
    )

    def to_dict(self):
        return {
            'id'          : self.id,
            'userId'      : self.user_id,
            'normativeId' : self.normative_id,
            'code'        : self.code,
            'name'        : self.name,
            'unit'        : self.unit,
            'category'    : self.category,
            'price'       : self.price,
            'notes'       : self.notes,
            'normative'   : self.normative.to_summary() if self.normative else None,
            'updatedAt'   : _iso(self.updated_at),
        }


class Material(db.Model):
    __tablename__ = 'material'
    id       = _id_column('MAT')
    code     = db.Column(db.String(64), unique=True, nullable=False)
    name     = db.Column(db.String(255), nullable=False)
    unit     = db.Column(db.String(32), nullable=False)
    price    = db.Column(db.Float, nullable=False, default=0.0)
    category = db.Column(db.String(128))

    def to_dict(self):
        return {
            'id'       : self.id,
            'code'     : self.code,
            'name'     : self.name,
            'unit'     : self.unit,
            'price'    : self.price,
            'category' : self.category,
        }


class PriceTemplate(TimestampMixin, db.Model):
    __tablename__ = 'price_template'
    id                  = _id_column('TPL')
    user_id             = db.Column(db.String(32), db.ForeignKey('user.id'), nullable=False)
    name                = db.Column(db.String(255), nullable=False)
    description         = db.Column(db.Text)
    labor_multiplier    = db.Column(db.Float, nullable=False, default=1.0)
    material_multiplier = db.Column(db.Float, nullable=False, default=1.0)
    overhead_percent    = db.Column(db.Float, nullable=False, default=0.12)
    profit_percent      = db.Column(db.Float, nullable=False, default=0.08)
    is_default          = db.Column(db.Boolean, nullable=False, default=False)
