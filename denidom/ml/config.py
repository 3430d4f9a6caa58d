"""Thresholds, category tables and price factors for the ml package."""

import os
from copy import deepcopy

DEFAULT_ML_CONFIG = {
    'price_predictor': {
        'enabled': True,
        'cache_enabled': True,
        'cache_ttl': 3600,  # seconds
        'fallback_enabled': True,
        'confidence_threshold': 0.6,
    },
    'recommendation_engine': {
        'enabled': True,
        'max_recommendations': 10,
        'min_score': 0.5,
        'similarity_threshold': 0.7,
    },
    'work_classifier': {
        'enabled': True,
        'confidence_threshold': 0.7,
        'max_categories': 5,
    },
    'anomaly_detector': {
        'enabled': True,
        'anomaly_threshold': 0.8,
        'min_sample_size': 10,
    },
    'cost_optimizer': {
        'enabled': True,
        'max_iterations': 100,
        'quality_weight': 0.4,
        'price_weight': 0.6,
    },
}

ENV_FLAGS = {
    'price_predictor': 'ML_PRICE_PREDICTOR_ENABLED',
    'recommendation_engine': 'ML_RECOMMENDATION_ENABLED',
    'work_classifier': 'ML_CLASSIFIER_ENABLED',
    'anomaly_detector': 'ML_ANOMALY_ENABLED',
    'cost_optimizer': 'ML_OPTIMIZER_ENABLED',
}

CATEGORIES = [
    'plastering',
    'painting',
    'flooring',
    'tiling',
    'electrical',
    'plumbing',
    'drywall',
    'demolition',
    'masonry',
    'insulation',
    'roofing',
    'windows',
    'doors',
    'general',
]

CATEGORY_NAMES = {
    'plastering': 'Штукатурные работы',
    'painting': 'Малярные работы',
    'flooring': 'Напольные покрытия',
    'tiling': 'Плиточные работы',
    'electrical': 'Электромонтаж',
    'plumbing': 'Сантехника',
    'drywall': 'Гипсокартон',
    'demolition': 'Демонтаж',
    'masonry': 'Кладочные работы',
    'insulation': 'Утепление',
    'roofing': 'Кровля',
    'windows': 'Окна',
    'doors': 'Двери',
    'general': 'Общестроительные',
}

SUBCATEGORIES = {
    'plastering': ['внутренняя', 'наружная', 'декоративная', 'машинная'],
    'painting': ['внутренняя', 'наружная', 'декоративная', 'лакировка'],
    'flooring': ['ламинат', 'паркет', 'линолеум', 'плитка', 'наливной'],
    'tiling': ['напольная', 'настенная', 'мозаика', 'керамогранит'],
    'electrical': ['проводка', 'освещение', 'розетки', 'щитовое'],
    'plumbing': ['водопровод', 'канализация', 'отопление', 'сантехприборы'],
    'drywall': ['стены', 'потолки', 'перегородки', 'короба'],
    'demolition': ['полный', 'частичный', 'вынос мусора'],
    'masonry': ['кирпичная', 'блочная', 'перегородки'],
    'insulation': ['минвата', 'пенопласт', 'пенополистирол'],
    'roofing': ['мягкая', 'металлическая', 'черепица'],
    'windows': ['пластиковые', 'деревянные', 'алюминиевые'],
    'doors': ['межкомнатные', 'входные', 'раздвижные'],
    'general': ['подготовительные', 'завершающие'],
}

# Index 0 is January
SEASONAL_FACTORS = [0.95, 0.95, 1.0, 1.05, 1.08, 1.10, 1.10, 1.08, 1.05, 1.0, 0.98, 0.95]

REGIONAL_FACTORS = {
    'moscow': 1.0,
    'spb': 0.95,
    'krasnodar': 0.85,
    'novosibirsk': 0.80,
    'kazan': 0.82,
    'yekaterinburg': 0.85,
    'default': 0.88,
}

VOLATILITY = {
    'строительные_смеси': 0.08,
    'металлопрокат': 0.12,
    'пиломатериалы': 0.10,
    'краски': 0.06,
    'напольные_покрытия': 0.05,
    'сантехника': 0.04,
    'электрика': 0.05,
    'default': 0.07,
}


def regional_factor(region) -> float:
    if not region:
        return REGIONAL_FACTORS['default']
    return REGIONAL_FACTORS.get(region.lower(), REGIONAL_FACTORS['default'])


def get_ml_config() -> dict:
    """Defaults with the ``ML_*_ENABLED=false`` environment switches applied."""
    config = deepcopy(DEFAULT_ML_CONFIG)
    for section, env_name in ENV_FLAGS.items():
        if os.getenv(env_name, 'true').lower() == 'false':
            config[section]['enabled'] = False
    return config
