# denidom/calculator/utils.py

"""Estimate arithmetic shared by the calculator, projects and exports."""

from decimal import Decimal, ROUND_HALF_UP

DEFAULT_OPTIONS = {
    'overheadRate': 0.12,
    'profitRate': 0.08,
    'vatRate': 0.20,
    'includeVat': True,
}


def round2(value) -> float:
    """Round half-up to kopecks (``round()`` would round half to even)."""
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def line_total(item: dict) -> float:
    coefficient = item.get('coefficient') or 1
    return item['quantity'] * item['price'] * coefficient


def calculate_estimate(items: list, options: dict | None = None) -> dict:
    """Subtotal, overhead, profit and total for a list of line items.

    ``overhead`` is charged on the subtotal and ``profit`` on subtotal plus
    overhead. VAT is applied to the final sum only when ``includeVat`` is set.
    """
    opts = {**DEFAULT_OPTIONS, **(options or {})}

    subtotal = sum(line_total(i) for i in items)
    overhead = subtotal * opts['overheadRate']
    profit = (subtotal + overhead) * opts['profitRate']
    total = subtotal + overhead + profit
    if opts['includeVat']:
        total *= 1 + opts['vatRate']

    return {
        'items': items,
        'subtotal': round2(subtotal),
        'overhead': round2(overhead),
        'profit': round2(profit),
        'total': round2(total),
        'options': opts,
    }


TEMPLATES = [
    {
        'id': 'renovation-basic',
        'name': 'Базовый ремонт квартиры',
        'description': 'Шаблон для типового ремонта квартиры',
        'items': [
            {'id': 'work-1', 'name': 'Демонтаж старых покрытий', 'unit': 'м²', 'price': 150},
            {'id': 'work-2', 'name': 'Штукатурка стен', 'unit': 'м²', 'price': 450},
            {'id': 'work-3', 'name': 'Шпаклевка стен', 'unit': 'м²', 'price': 280},
            {'id': 'work-4', 'name': 'Покраска стен', 'unit': 'м²', 'price': 180},
            {'id': 'work-5', 'name': 'Укладка ламината', 'unit': 'м²', 'price': 350},
        ],
    },
    {
        'id': 'renovation-premium',
        'name': 'Премиум ремонт квартиры',
        'description': 'Шаблон для премиального ремонта',
        'items': [
            {'id': 'work-1', 'name': 'Демонтаж старых покрытий', 'unit': 'м²', 'price': 200},
            {'id': 'work-2', 'name': 'Выравнивание стен (штукатурка по маякам)', 'unit': 'м²', 'price': 650},
            {'id': 'work-3', 'name': 'Шпаклевка стен под покраску', 'unit': 'м²', 'price': 380},
            {'id': 'work-4', 'name': 'Покраска стен (2 слоя)', 'unit': 'м²', 'price': 280},
            {'id': 'work-5', 'name': 'Укладка паркетной доски', 'unit': 'м²', 'price': 550},
        ],
    },
]


def items_payload(items) -> list:
    """Validated item schemas as plain dicts, dropping unset coefficients."""
    return [i.model_dump(by_alias=True, exclude_none=True) for i in items]


def recalculate(estimate, items=None, options=None):
    """Recompute the stored totals of ``estimate`` in place."""
    result = calculate_estimate(
        items if items is not None else (estimate.items or []),
        options if options is not None else (estimate.options or None),
    )
    estimate.apply_totals(result)
    if estimate.project is not None:
        estimate.project.recalculate_total()
    return estimate
