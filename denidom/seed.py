"""``flask seed`` loads demo data: users, clients, a project and FER normatives."""

import logging

import click
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash

from denidom import db
from denidom.calculator.utils import calculate_estimate
from denidom.ml.normalization import round_half_up
from denidom.models import (
    Client,
    CommercialPrice,
    Estimate,
    Material,
    Normative,
    PriceTemplate,
    Project,
    User,
)

logger = logging.getLogger(__name__)

USERS = [
    {'email': 'admin@smeta-pro.ru', 'name': 'Администратор', 'password': 'admin123', 'role': 'ADMIN'},
    {'email': 'user@smeta-pro.ru', 'name': 'Тестовый пользователь', 'password': 'user123', 'role': 'USER'},
]

CLIENTS = [
    {
        'name': 'ООО "Технологии Будущего"',
        'type': 'COMPANY',
        'contact': 'Иванов Иван Иванович',
        'phone': '+7 (495) 123-45-67',
        'email': 'info@techfuture.ru',
        'inn': '7712345678',
        'kpp': '771201001',
    },
    {
        'name': 'ИП Петров А.С.',
        'type': 'INDIVIDUAL',
        'contact': 'Петров Алексей Сергеевич',
        'phone': '+7 (916) 987-65-43',
        'email': 'petrov.as@mail.ru',
        'inn': '771234567890',
    },
]

ESTIMATE_ITEMS = [
    {'id': 'work-1', 'name': 'Штукатурка стен', 'unit': 'м²', 'quantity': 300, 'price': 450},
    {'id': 'work-2', 'name': 'Шпаклевка стен', 'unit': 'м²', 'quantity': 300, 'price': 280},
    {'id': 'work-3', 'name': 'Покраска стен', 'unit': 'м²', 'quantity': 300, 'price': 180},
]

NORMATIVES = [
    ('ФЕР11-01-001-01', 'Кладка перегородок из кирпича', 'м³', 4500, 'Кладка',
     'Кладка перегородок из керамического кирпича толщиной в полкирпича'),
    ('ФЕР15-02-001-01', 'Штукатурка стен цементным раствором', 'м²', 450, 'Отделка',
     'Оштукатуривание поверхностей цементным раствором'),
    ('ФЕР15-02-002-01', 'Шпаклевка стен', 'м²', 280, 'Отделка',
     'Шпаклевка поверхностей под покраску'),
    ('ФЕР15-04-001-01', 'Покраска стен водоэмульсионной краской', 'м²', 180, 'Отделка',
     'Окраска поверхностей водоэмульсионными составами за 2 раза'),
    ('ФЕР11-01-002-01', 'Демонтаж перегородок кирпичных', 'м³', 1250, 'Демонтаж',
     'Разборка кирпичных перегородок'),
    ('ФЕР15-01-002-01', 'Штукатурка улучшенная по камню и бетону', '100 м²', 12340, 'Отделка',
     'Улучшенная штукатурка по камню и бетону стен'),
    ('ФЕР15-04-002-01', 'Окраска улучшенная поливинилацетатными водоэмульсионными', '100 м²', 4890,
     'Отделка', 'Окраска улучшенная поливинилацетатными водоэмульсионными составами'),
    ('ФЕР11-02-001-01', 'Укладка ламината', '100 м²', 5670, 'Полы',
     'Устройство покрытий из ламинированных паркетных досок'),
    ('ФЕР11-03-001-01', 'Укладка керамической плитки на пол', 'м²', 650, 'Плиточные работы',
     'Облицовка пола керамической плиткой'),
    ('ФЕР11-03-002-01', 'Облицовка стен керамической плиткой', 'м²', 750, 'Плиточные работы',
     'Облицовка стен керамическими плитками'),
]

# market markup over the FER base price
COMMERCIAL_MULTIPLIERS = {
    'ФЕР11-01-001-01': 1.8,
    'ФЕР15-02-001-01': 1.67,
    'ФЕР15-02-002-01': 1.75,
    'ФЕР15-04-001-01': 1.72,
    'ФЕР11-01-002-01': 1.6,
    'ФЕР15-01-002-01': 1.5,
    'ФЕР15-04-002-01': 1.53,
    'ФЕР11-02-001-01': 1.5,
    'ФЕР11-03-001-01': 1.85,
    'ФЕР11-03-002-01': 1.87,
}

COMMERCIAL_REGION = 'Москва'

MATERIALS = [
    ('М-001', 'Кирпич керамический М150', 'шт', 12, 'Кладочные материалы'),
    ('М-002', 'Цемент М500', 'кг', 8, 'Вяжущие'),
    ('М-003', 'Песок строительный', 'м³', 1200, 'Заполнители'),
    ('М-004', 'Штукатурка гипсовая', 'кг', 15, 'Отделочные материалы'),
    ('М-005', 'Краска водоэмульсионная', 'л', 350, 'Лакокрасочные материалы'),
]

DEFAULT_TEMPLATE_ID = 'default-template'


def _get_or_create(model, defaults=None, **lookup):
    obj = model.query.filter_by(**lookup).first()
    if obj is None:
        obj = model(**lookup, **(defaults or {}))
        db.session.add(obj)
        db.session.flush()
    return obj


def seed_users():
    users = {}
    for data in USERS:
        users[data['role']] = _get_or_create(
            User,
            email=data['email'],
            defaults={
                'name': data['name'],
                'role': data['role'],
                'password_hash': generate_password_hash(data['password']),
            },
        )
    return users


def seed_demo_project(user):
    clients = [
        _get_or_create(Client, name=c['name'], user_id=user.id,
                       defaults={k: v for k, v in c.items() if k != 'name'})
        for c in CLIENTS
    ]
    project = _get_or_create(
        Project,
        name='Ремонт офиса "Технопарк"',
        user_id=user.id,
        defaults={
            'description': 'Капитальный ремонт офисного помещения площадью 150 м²',
            'status': 'IN_PROGRESS',
            'client_id': clients[0].id,
        },
    )
    estimate = Estimate.query.filter_by(name='Смета на отделочные работы', project_id=project.id).first()
    if estimate is None:
        estimate = Estimate(
            name='Смета на отделочные работы',
            description='Штукатурка, шпаклевка, покраска стен',
            type='COMMERCIAL',
            user_id=user.id,
            project_id=project.id,
        )
        estimate.apply_totals(calculate_estimate([dict(i) for i in ESTIMATE_ITEMS]))
        db.session.add(estimate)
        db.session.flush()
    db.session.refresh(project)
    project.recalculate_total()
    return project


def seed_normatives():
    normatives = []
    for code, name, unit, price, category, description in NORMATIVES:
        normatives.append(_get_or_create(
            Normative,
            code=code,
            defaults={
                'name': name,
                'unit': unit,
                'price': price,
                'type': 'FER',
                'category': category,
                'description': description,
            },
        ))

    for normative in normatives:
        multiplier = COMMERCIAL_MULTIPLIERS.get(normative.code, 1.5)
        price = round_half_up(normative.price * multiplier)
        commercial = _get_or_create(
            CommercialPrice,
            normative_id=normative.id,
            region=COMMERCIAL_REGION,
            defaults={
                'code': normative.code,
                'name': normative.name,
                'unit': normative.unit,
                'category': normative.category,
                'source': 'Рыночный анализ 2024',
                'is_active': True,
                'price': price,
            },
        )
        commercial.price = price
        commercial.min_price = round_half_up(price * 0.85)
        commercial.max_price = round_half_up(price * 1.15)
        commercial.cost_price = round_half_up(normative.price * 1.1)
        commercial.margin_percent = round_half_up((multiplier - 1) * 100)
    return normatives


def seed_materials():
    for code, name, unit, price, category in MATERIALS:
        _get_or_create(Material, code=code,
                       defaults={'name': name, 'unit': unit, 'price': price, 'category': category})


def seed_template(user):
    _get_or_create(
        PriceTemplate,
        id=DEFAULT_TEMPLATE_ID,
        defaults={
            'user_id': user.id,
            'name': 'Стандартный шаблон',
            'description': 'Стандартные коэффициенты для типовых проектов',
            'labor_multiplier': 1.0,
            'material_multiplier': 1.0,
            'overhead_percent': 0.12,
            'profit_percent': 0.08,
            'is_default': True,
        },
    )


def seed_all():
    """Insert demo data; rows that already exist are left in place."""
    users = seed_users()
    user = users['USER']
    project = seed_demo_project(user)
    normatives = seed_normatives()
    seed_materials()
    seed_template(user)
    db.session.commit()
    logger.info('Seeded project %s and %d normatives', project.id, len(normatives))
    return {'users': len(users), 'normatives': len(normatives), 'materials': len(MATERIALS)}


@click.command('seed')
@with_appcontext
def seed_cli() -> None:
    """Load demo users, clients, normatives and materials."""
    counts = seed_all()
    click.echo(
        f"Seeded {counts['users']} users, {counts['normatives']} normatives, "
        f"{counts['materials']} materials"
    )
