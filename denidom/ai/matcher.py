"""Find FER normatives for parsed works and pick the price to use."""

from dataclasses import dataclass
from typing import Optional

from denidom.models import CommercialPrice, CustomPrice, Normative

CATEGORY_MAPPING = {
    'plastering': ['Отделка', 'Штукатурка'],
    'painting': ['Отделка', 'Покраска', 'Окраска'],
    'flooring': ['Полы', 'Напольные покрытия'],
    'demolition': ['Демонтаж'],
    'masonry': ['Кладка'],
    'tiling': ['Плиточные работы', 'Отделка'],
    'electrical': ['Электромонтаж', 'Электрика'],
    'plumbing': ['Сантехника', 'Водопровод'],
    'drywall': ['Гипсокартон', 'Отделка'],
    'insulation': ['Утепление', 'Изоляция'],
    'roofing': ['Кровля'],
    'windows': ['Окна', 'Остекление'],
    'doors': ['Двери'],
    'general': ['Общестроительные работы'],
}

KEYWORD_MAPPING = {
    'штукатурка': ['штукатурка', 'оштукатуривание'],
    'покраска': ['покраска', 'окраска', 'краска'],
    'ламинат': ['ламинат', 'укладка ламината', 'напольное покрытие'],
    'плитка': ['плитка', 'керамическая плитка', 'укладка плитки'],
    'демонтаж': ['демонтаж', 'разборка'],
    'шпаклевка': ['шпаклевка', 'шпатлевка'],
}

MAX_MATCHES = 10


@dataclass
class Match:
    normative: Normative
    commercial_price: Optional[CommercialPrice]
    custom_price: Optional[CustomPrice]
    score: int


@dataclass
class PriceInfo:
    fer_price: float
    commercial_price: Optional[float]
    custom_price: Optional[float]
    effective_price: float
    price_source: str


def _description_words(work):
    return [w for w in work.description.lower().split() if len(w) > 3]


def build_search_terms(work) -> list[str]:
    terms = list(work.keywords)
    terms += _description_words(work)[:5]
    for keyword in work.keywords:
        terms += KEYWORD_MAPPING.get(keyword.lower(), [])
    # dict keeps first-seen order
    return list(dict.fromkeys(t.lower() for t in terms))


def category_search(category: str) -> list[str]:
    return CATEGORY_MAPPING.get(category.lower(), [category])


def match_score(normative: Normative, work) -> int:
    name = normative.name.lower()
    score = sum(10 for k in work.keywords if k.lower() in name)
    if normative.category and normative.category in category_search(work.category):
        score += 5
    score += sum(2 for w in _description_words(work) if w in name)
    return score


def _commercial_price(normative, region=None):
    query = CommercialPrice.query.filter_by(normative_id=normative.id, is_active=True)
    if region:
        query = query.filter_by(region=region)
    return query.first()


def _custom_price(normative, user_id=None):
    if not user_id:
        return None
    return CustomPrice.query.filter_by(normative_id=normative.id, user_id=user_id).first()


def find_normatives(work, user_id=None, region=None) -> list[Match]:
    """Normatives in the work's categories whose name contains a search term.

    Text matching happens in Python because SQLite only folds ASCII case.
    """
    terms = build_search_terms(work)
    candidates = (
        Normative.query.filter(Normative.category.in_(category_search(work.category)))
        .order_by(Normative.code)
        .all()
    )
    if terms:
        candidates = [n for n in candidates if any(t in n.name.lower() for t in terms)]

    matches = [
        Match(n, _commercial_price(n, region), _custom_price(n, user_id), match_score(n, work))
        for n in candidates[:MAX_MATCHES]
    ]
    matches.sort(key=lambda m: m.score, reverse=True)
    return matches


def find_best_match(work, user_id=None, region=None) -> Optional[Match]:
    matches = find_normatives(work, user_id, region)
    return matches[0] if matches else None


def price_info(match: Match) -> PriceInfo:
    """Custom price beats commercial price beats the FER base price."""
    fer = match.normative.price
    commercial = match.commercial_price.price if match.commercial_price else None
    custom = match.custom_price.price if match.custom_price else None

    if custom is not None:
        return PriceInfo(fer, commercial, custom, custom, 'USER')
    if commercial is not None:
        return PriceInfo(fer, commercial, custom, commercial, 'DATABASE')
    return PriceInfo(fer, commercial, custom, fer, 'DATABASE')


def search_normatives(query: str, type=None, category=None, limit=20,
                      include_commercial=False, user_id=None, region=None) -> list[dict]:
    q = Normative.query
    if type:
        q = q.filter_by(type=type)
    if category:
        q = q.filter_by(category=category)

    needle = query.lower()
    found = [
        n for n in q.order_by(Normative.code).all()
        if needle in n.name.lower() or needle in n.code.lower()
    ][:limit]

    results = []
    for normative in found:
        data = normative.to_dict()
        if include_commercial:
            commercial = _commercial_price(normative, region)
            data['commercialPrices'] = [commercial.to_dict()] if commercial else []
            if user_id:
                custom = _custom_price(normative, user_id)
                data['customPrices'] = [custom.to_dict()] if custom else []
        results.append(data)
    return results
