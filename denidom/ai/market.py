"""Static market trend and regional pricing tables."""

from datetime import date

from denidom.ai.pricing import get_season


def market_trends(today: date | None = None) -> dict:
    season = get_season((today or date.today()).month - 1)
    if season == 'зима':
        seasonal_message = 'Сейчас выгодное время для закупки материалов — цены ниже на 5-10%'
    else:
        seasonal_message = 'Пик сезона ремонтов — ожидается рост цен на материалы'

    return {
        'season': season,
        'trends': [
            {
                'category': 'Строительные смеси',
                'trend': 'rising',
                'changePercent': 8,
                'period': 'last_quarter',
                'forecast': 'up',
                'forecastPeriod': '3_months',
                'reasons': ['Рост стоимости логистики', 'Сезонный спрос'],
                'affectedItems': [
                    {'name': 'Цемент М500', 'currentPrice': 450, 'expectedChange': 5},
                    {'name': 'Штукатурка гипсовая', 'currentPrice': 380, 'expectedChange': 7},
                ],
            },
            {
                'category': 'Напольные покрытия',
                'trend': 'stable',
                'changePercent': 2,
                'period': 'last_quarter',
                'forecast': 'stable',
                'forecastPeriod': '3_months',
                'reasons': ['Стабильный спрос', 'Достаточные запасы'],
                'affectedItems': [
                    {'name': 'Ламинат 32 класс', 'currentPrice': 850, 'expectedChange': 2},
                    {'name': 'Линолеум бытовой', 'currentPrice': 450, 'expectedChange': 1},
                ],
            },
            {
                'category': 'Сантехника',
                'trend': 'falling',
                'changePercent': -3,
                'period': 'last_quarter',
                'forecast': 'stable',
                'forecastPeriod': '3_months',
                'reasons': ['Снижение спроса в несезон', 'Распродажи'],
                'affectedItems': [
                    {'name': 'Унитаз компакт', 'currentPrice': 8500, 'expectedChange': -2},
                    {'name': 'Смеситель для ванны', 'currentPrice': 4500, 'expectedChange': -3},
                ],
            },
        ],
        'insights': [
            {'type': 'seasonal', 'message': seasonal_message, 'priority': 'high'},
            {
                'type': 'forecast',
                'message': 'Прогноз: цены на металлопрокат вырастут на 10-12% в следующем квартале',
                'priority': 'medium',
            },
        ],
    }


REGIONS = [
    {
        'region': 'moscow',
        'regionName': 'Москва',
        'priceMultiplier': 1.0,
        'averageWage': 75000,
        'materialCostIndex': 1.0,
        'seasonalFactors': [
            {'month': 1, 'factor': 0.95, 'description': 'Низкий сезон'},
            {'month': 4, 'factor': 1.05, 'description': 'Начало сезона'},
            {'month': 7, 'factor': 1.10, 'description': 'Пик сезона'},
            {'month': 10, 'factor': 1.0, 'description': 'Конец сезона'},
        ],
    },
    {
        'region': 'spb',
        'regionName': 'Санкт-Петербург',
        'priceMultiplier': 0.95,
        'averageWage': 65000,
        'materialCostIndex': 0.98,
        'seasonalFactors': [
            {'month': 1, 'factor': 0.92, 'description': 'Низкий сезон'},
            {'month': 5, 'factor': 1.08, 'description': 'Начало сезона'},
            {'month': 8, 'factor': 1.05, 'description': 'Пик сезона'},
        ],
    },
    {
        'region': 'krasnodar',
        'regionName': 'Краснодар',
        'priceMultiplier': 0.85,
        'averageWage': 45000,
        'materialCostIndex': 0.90,
        'seasonalFactors': [
            {'month': 1, 'factor': 1.0, 'description': 'Активный сезон (теплая зима)'},
            {'month': 7, 'factor': 0.95, 'description': 'Жара - снижение активности'},
        ],
    },
    {
        'region': 'novosibirsk',
        'regionName': 'Новосибирск',
        'priceMultiplier': 0.80,
        'averageWage': 50000,
        'materialCostIndex': 0.88,
        'seasonalFactors': [
            {'month': 1, 'factor': 0.85, 'description': 'Холода - сложная логистика'},
            {'month': 6, 'factor': 1.10, 'description': 'Короткий сезон - высокий спрос'},
        ],
    },
    {
        'region': 'kazan',
        'regionName': 'Казань',
        'priceMultiplier': 0.82,
        'averageWage': 48000,
        'materialCostIndex': 0.85,
        'seasonalFactors': [],
    },
]
