"""Price forecasts and project recommendations, AI first with rule based fallbacks."""

import logging
from datetime import date

from denidom.ai.client import AIError, ai_configured, get_client
from denidom.ml.normalization import round_half_up
from denidom.ml.price_predictor import add_months

logger = logging.getLogger(__name__)

ANNUAL_INFLATION = 1.05

SEASONAL_MULTIPLIERS = {
    'весна': 1.05,
    'лето': 1.08,
    'осень': 1.02,
    'зима': 0.98,
}

PREDICT_PROMPT = """Ты эксперт по ценообразованию в строительной отрасли России.

Проанализируй следующие позиции и дай прогноз изменения цен на {months} месяца вперед.

Текущая дата: {today}
Сезон: {season}
Регион: {region}

Позиции для анализа:
{items}

Учитывай следующие факторы:
1. Сезонность (зимой строительные материалы могут быть дешевле)
2. Курс валют (для импортных материалов)
3. Спрос (весна-лето - пик ремонтов)
4. Логистика (удаленность региона)
5. Инфляция
6. Рыночные тренды

Для каждой позиции укажи itemId, itemName, currentPrice, predictedPrice, priceChange,
confidence (0-100), factors и помесячный forecast. Также дай общие рыночные тренды
по категориям в поле marketTrends.

Ответь в формате JSON: {{"predictions": [...], "marketTrends": [...]}}"""

RECOMMEND_PROMPT = """Ты AI-консультант по ремонту и строительству в системе "ДениДом".

Проанализируй проект и дай умные рекомендации для оптимизации сметы.

Проект:
{project}

Текущий сезон: {season}

Дай рекомендации следующих типов: similar_project, cost_saving, quality_upgrade,
seasonal, regional. Для каждой укажи type, title, description, confidence (0-100),
savings (если применимо) и items для замены (если есть).

Ответь в формате JSON: {{"recommendations": [...]}}"""


def get_season(month_index: int) -> str:
    """Season for a 0-based month index."""
    if 2 <= month_index <= 4:
        return 'весна'
    if 5 <= month_index <= 7:
        return 'лето'
    if 8 <= month_index <= 10:
        return 'осень'
    return 'зима'


def fallback_predictions(items: list[dict], months: int, today: date | None = None) -> dict:
    today = today or date.today()
    season = get_season(today.month - 1)
    multiplier = SEASONAL_MULTIPLIERS[season]
    inflation = ANNUAL_INFLATION ** (months / 12)

    predictions = []
    for item in items:
        current = item['currentPrice']
        predicted = round_half_up(current * multiplier * inflation)
        change = (predicted - current) / current * 100 if current else 0.0
        forecast = [
            {
                'date': add_months(today, i).isoformat(),
                'price': round_half_up(current * ANNUAL_INFLATION ** (i / 12)),
                'confidence': max(50, 85 - i * 5),
            }
            for i in range(1, months + 1)
        ]
        predictions.append({
            'itemId': item['id'],
            'itemName': item['name'],
            'currentPrice': current,
            'predictedPrice': predicted,
            'priceChange': round_half_up(change, 1),
            'confidence': 65,
            'factors': [
                {
                    'factor': 'Сезонность',
                    'impact': 'negative' if multiplier > 1 else 'positive',
                    'weight': 0.3,
                    'description': f"{season} - {'повышенный спрос' if multiplier > 1 else 'низкий спрос'}",
                },
                {
                    'factor': 'Инфляция',
                    'impact': 'negative',
                    'weight': 0.4,
                    'description': 'Общий рост цен в экономике',
                },
            ],
            'forecast': forecast,
            'season': season,
        })

    trends = [{
        'category': 'Строительные материалы',
        'trend': 'rising',
        'changePercent': 5,
        'period': 'last_quarter',
        'forecast': 'up',
        'forecastPeriod': '3_months',
        'reasons': ['Сезонный спрос', 'Рост стоимости логистики'],
        'affectedItems': [],
    }]
    return {'predictions': predictions, 'marketTrends': trends}


def predict_prices(items: list[dict], region=None, forecast_months: int = 3) -> dict:
    if ai_configured():
        today = date.today()
        prompt = PREDICT_PROMPT.format(
            months=forecast_months,
            today=today.isoformat(),
            season=get_season(today.month - 1),
            region=region or 'Россия (среднее)',
            items='\n'.join(
                f"- {i['name']} ({i['category']}): {i['currentPrice']} ₽/{i['unit']}" for i in items
            ),
        )
        try:
            data = get_client().generate_json(prompt)
            if isinstance(data.get('predictions'), list):
                data.setdefault('marketTrends', [])
                return data
            logger.warning('AI price prediction returned no predictions')
        except AIError as e:
            logger.warning('AI price prediction failed: %s', e)
    return fallback_predictions(items, forecast_months)


def fallback_recommendations(project_type: str, total_area: float, budget=None,
                             today: date | None = None) -> dict:
    today = today or date.today()
    premises = 'квартирах' if project_type == 'apartment' else 'помещениях'
    seasonal = {
        'type': 'seasonal',
        'title': 'Сезонная рекомендация',
        'description': 'Закупайте материалы заранее — в сезон цены вырастают на 10-15%.',
        'confidence': 80,
        'basedOn': {'season': get_season(today.month - 1)},
    }
    if budget:
        seasonal['savings'] = round_half_up(budget * 0.1)
    return {'recommendations': [
        {
            'type': 'similar_project',
            'title': 'Типичный ремонт для вашего проекта',
            'description': (f'В {premises} площадью {total_area:g} м² обычно выполняют стандартный '
                            'набор работ: выравнивание стен, укладка полов, покраска потолков.'),
            'confidence': 75,
            'basedOn': {'similarProjects': 150, 'projectType': project_type},
        },
        seasonal,
    ]}


def generate_recommendations(data: dict) -> dict:
    if ai_configured():
        lines = [f"- Тип: {data['projectType']}", f"- Площадь: {data['totalArea']:g} м²"]
        if data.get('rooms'):
            lines.append(f"- Комнаты: {', '.join(data['rooms'])}")
        if data.get('budget'):
            lines.append(f"- Бюджет: {data['budget']:,.0f} ₽".replace(',', ' '))
        if data.get('region'):
            lines.append(f"- Регион: {data['region']}")
        if data.get('preferences'):
            lines.append(f"- Предпочтения: {', '.join(data['preferences'])}")
        for item in data.get('currentItems') or []:
            lines.append(f"- Позиция: {item['name']}: {item['price']} ₽")
        prompt = RECOMMEND_PROMPT.format(
            project='\n'.join(lines), season=get_season(date.today().month - 1)
        )
        try:
            result = get_client().generate_json(prompt)
            if isinstance(result.get('recommendations'), list):
                return result
            logger.warning('AI recommendations returned an unexpected shape')
        except AIError as e:
            logger.warning('AI recommendations failed: %s', e)
    return fallback_recommendations(data['projectType'], data['totalArea'], data.get('budget'))
