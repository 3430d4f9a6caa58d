# denidom/export/routes.py

from urllib.parse import quote

from flask import Blueprint, Response, jsonify, request
from pydantic import Field

from denidom import db
from denidom.errors import ApiError, not_found
from denidom.export.documents import (
    estimate_to_csv,
    generate_ks2,
    generate_ks3,
    generate_m29,
    to_csv,
    today,
)
from denidom.models import Estimate
from denidom.schemas import CamelModel, load_json

bp = Blueprint('export', __name__)


class M29Material(CamelModel):
    code: str
    name: str
    unit: str
    normative_quantity: float = Field(ge=0)
    actual_quantity: float = Field(ge=0)
    price: float = Field(ge=0)


class M29Request(CamelModel):
    materials: list[M29Material]
    report_number: str = 'М-001'
    object_name: str = 'Объект'
    contractor: str = 'Подрядчик'
    report_period_from: str = Field(default_factory=today)
    report_period_to: str = Field(default_factory=today)


def _query_options(defaults: dict) -> dict:
    return {key: request.args.get(key, default) for key, default in defaults.items()}


def _content_disposition(filename: str) -> str:
    if filename.isascii():
        return f'attachment; filename="{filename}"'
    # header values are latin-1; non-ASCII names use RFC 5987
    return f"attachment; filename*=UTF-8''{quote(filename)}"


def _csv_response(body: str, filename: str) -> Response:
    return Response(
        body,
        mimetype='text/csv',
        headers={'Content-Disposition': _content_disposition(filename)},
    )


def _wants_csv() -> bool:
    return request.args.get('format', 'json') == 'csv'


@bp.route('/ks2/<estimate_id>')
def export_ks2(estimate_id):
    estimate = db.session.get(Estimate, estimate_id)
    if estimate is None:
        raise not_found('Estimate')

    form = generate_ks2(estimate, _query_options({
        'actNumber': 'A-001',
        'contractNumber': 'Д-001',
        'contractDate': today(),
        'investor': 'Инвестор',
        'customer': 'Заказчик',
        'contractor': 'Подрядчик',
        'objectAddress': 'Адрес объекта',
        'reportPeriodFrom': today(),
        'reportPeriodTo': today(),
    }))
    if _wants_csv():
        return _csv_response(to_csv(form, 'ks2'), f"KS-2_{form['actNumber']}.csv")
    return jsonify(form)


@bp.route('/ks3/<project_id>')
def export_ks3(project_id):
    estimates = (
        Estimate.query.filter_by(project_id=project_id)
        .order_by(Estimate.created_at)
        .all()
    )
    if not estimates:
        raise ApiError('No estimates found for this project', 404, 'NOT_FOUND')

    form = generate_ks3(estimates, _query_options({
        'referenceNumber': 'С-001',
        'contractNumber': 'Д-001',
        'investor': 'Инвестор',
        'customer': 'Заказчик',
        'contractor': 'Подрядчик',
        'reportPeriodFrom': today(),
        'reportPeriodTo': today(),
    }))
    if _wants_csv():
        return _csv_response(to_csv(form, 'ks3'), f"KS-3_{form['referenceNumber']}.csv")
    return jsonify(form)


@bp.route('/m29', methods=['POST'])
def export_m29():
    data = load_json(M29Request)
    options = data.dump(exclude={'materials'})
    form = generate_m29([m.dump() for m in data.materials], options)
    if _wants_csv():
        return _csv_response(to_csv(form, 'm29'), f"M-29_{form['reportNumber']}.csv")
    return jsonify(form)


@bp.route('/estimate/<estimate_id>')
def export_estimate(estimate_id):
    estimate = db.session.get(Estimate, estimate_id)
    if estimate is None:
        raise not_found('Estimate')
    return _csv_response(estimate_to_csv(estimate), f'estimate_{estimate_id}.csv')
