"""Build a priced estimate draft from a text description."""

import uuid

from denidom.ai.matcher import find_best_match, price_info
from denidom.ai.parse_request import parse_request
from denidom.ml.normalization import round_half_up

DEFAULT_AREA = 100

# Walls are roughly floor area times an average 2.8 m ceiling height
AREA_MULTIPLIERS = {
    'plastering': 2.8,
    'painting': 2.8,
    'flooring': 1.0,
    'tiling': 1.0,
    'drywall': 2.8,
    'demolition': 1.0,
    'masonry': 0.5,
    'electrical': 1.0,
    'plumbing': 0.3,
    'insulation': 1.0,
    'roofing': 1.0,
    'windows': 0.1,
    'doors': 0.05,
    'general': 1.0,
}

FALLBACK_PRICES = {
    'plastering': 450,
    'painting': 250,
    'flooring': 400,
    'tiling': 800,
    'demolition': 200,
    'masonry': 3000,
    'electrical': 500,
    'plumbing': 600,
    'drywall': 350,
    'insulation': 300,
    'roofing': 500,
    'windows': 3000,
    'doors': 2500,
    'general': 400,
}


def quantity_from_area(category: str, area: float, unit: str | None = None) -> float:
    raw = area * AREA_MULTIPLIERS.get(category, 1.0)
    if unit == '100 м²':
        raw /= 100
    return round_half_up(raw, 2)


def fallback_price(category: str) -> float:
    return FALLBACK_PRICES.get(category, 400)


def generate_estimate(description, estimate_type='COMMERCIAL', area=None, region=None, user_id=None) -> dict:
    parsed = parse_request(description)
    effective_area = area or parsed.total_area or DEFAULT_AREA

    items = []
    fer_subtotal = commercial_subtotal = 0.0

    for work in parsed.works:
        quantity = work.estimated_quantity or quantity_from_area(work.category, effective_area, work.unit)
        match = find_best_match(work, user_id, region)

        if match is None:
            price = fallback_price(work.category)
            total = price * quantity
            items.append({
                'id': f'placeholder-{uuid.uuid4().hex[:9]}',
                'type': 'COMMERCIAL',
                'name': work.description,
                'unit': work.unit or 'м²',
                'quantity': quantity,
                'price': price,
                'total': total,
                'editable': True,
                'priceSource': 'DATABASE',
                'originalPrice': price,
                'notes': 'Норматив не найден в базе',
            })
            commercial_subtotal += total
            continue

        normative = match.normative
        fer_total = normative.price * quantity
        fer_subtotal += fer_total

        if estimate_type == 'FER':
            items.append({
                'id': f'fer-{normative.id}',
                'type': 'FER',
                'code': normative.code,
                'name': normative.name,
                'unit': normative.unit,
                'quantity': quantity,
                'price': normative.price,
                'total': fer_total,
                'editable': False,
            })
            continue

        info = price_info(match)
        total = info.effective_price * quantity
        items.append({
            'id': f'comm-{normative.id}',
            'type': 'COMMERCIAL',
            'code': normative.code,
            'name': normative.name,
            'unit': normative.unit,
            'quantity': quantity,
            'price': info.effective_price,
            'total': total,
            'editable': True,
            'ferCode': normative.code,
            'ferPrice': normative.price,
            'priceSource': info.price_source,
            'originalPrice': info.effective_price,
        })
        commercial_subtotal += total

    result = {
        'items': items,
        'parsed': parsed.dump(exclude_none=True),
        'subtotal': fer_subtotal if estimate_type == 'FER' else commercial_subtotal,
    }
    if fer_subtotal > 0:
        result['ferSubtotal'] = fer_subtotal
        result['difference'] = round_half_up((commercial_subtotal - fer_subtotal) / fer_subtotal * 100)
    if commercial_subtotal > 0:
        result['commercialSubtotal'] = commercial_subtotal
    return result
