"""Classify free-text work descriptions into categories and subcategories."""

import logging

from denidom.ml.config import get_ml_config
from denidom.ml.embeddings import (
    classify_intent,
    cosine_similarity,
    create_text_embedding,
    extract_numeric_entities,
)
from denidom.ml.normalization import round_half_up

logger = logging.getLogger(__name__)

CATEGORY_PATTERNS = {
    'plastering': ['штукатур', 'оштукатур', 'выравнива', 'шпакл', 'шпатл'],
    'painting': ['покрас', 'окрас', 'малярн', 'краск', 'грунтов', 'обо', 'побел'],
    'flooring': ['пол', 'ламинат', 'паркет', 'линолеум', 'напольн', 'стяжк', 'уклад'],
    'tiling': ['плитк', 'кафел', 'керамо', 'облицов', 'мозаик'],
    'electrical': ['электр', 'провод', 'розетк', 'освещен', 'выключатель', 'монтаж', 'установ'],
    'plumbing': ['сантехн', 'водопровод', 'канализ', 'труб', 'смесител', 'унитаз', 'ванн', 'раковин'],
    'drywall': ['гипсокартон', 'гкл', 'перегородк', 'подвесн'],
    'demolition': ['демонтаж', 'снос', 'разбор', 'удален'],
    'masonry': ['кладк', 'кирпич', 'блок', 'камен'],
    'insulation': ['утеплен', 'изоляц', 'минват', 'пеноплас', 'пенопласт'],
    'roofing': ['кровл', 'крыш', 'черепиц', 'профнастил'],
    'windows': ['окн', 'остеклен', 'стеклопакет'],
    'doors': ['двер', 'дверн', 'порог'],
    'general': ['подготов', 'уборк', 'вывоз', 'прочие'],
}

SUBCATEGORY_PATTERNS = {
    'plastering': {
        'внутренняя': ['внутрен', 'комнат', 'помещен'],
        'наружная': ['наружн', 'фасад', 'внешн'],
        'декоративная': ['декоратив', 'венецианск', 'фактурн'],
        'машинная': ['машинн', 'механизир'],
    },
    'painting': {
        'внутренняя': ['внутрен', 'комнат'],
        'наружная': ['наружн', 'фасад'],
        'декоративная': ['декоратив'],
        'лакировка': ['лак', 'лакиров'],
    },
    'flooring': {
        'ламинат': ['ламинат'],
        'паркет': ['паркет'],
        'линолеум': ['линолеум'],
        'плитка': ['плитк', 'керамо'],
        'наливной': ['налив'],
    },
    'tiling': {
        'напольная': ['пол', 'напольн'],
        'настенная': ['стен', 'настенн'],
        'мозаика': ['мозаик'],
        'керамогранит': ['керамогранит'],
    },
    'electrical': {
        'проводка': ['провод', 'кабел'],
        'освещение': ['освещен', 'свет', 'люстр'],
        'розетки': ['розетк', 'выключател'],
        'щитовое': ['щит', 'автомат'],
    },
    'plumbing': {
        'водопровод': ['водопровод', 'водоснабж'],
        'канализация': ['канализ', 'слив'],
        'отопление': ['отоплен', 'радиатор', 'батаре'],
        'сантехприборы': ['унитаз', 'раковин', 'ванн', 'смесител'],
    },
}

MATERIAL_KEYWORDS = [
    'гипсокартон', 'ламинат', 'линолеум', 'плитка', 'паркет', 'обои', 'краска',
    'штукатурка', 'шпаклевка', 'грунтовка', 'цемент', 'песок', 'керамогранит',
    'мозаика', 'провод', 'кабель', 'труба', 'пенопласт', 'минвата',
]

WORK_KEYWORDS = [
    'укладка', 'монтаж', 'демонтаж', 'установка', 'покраска', 'штукатурка',
    'шпаклевка', 'грунтовка', 'облицовка', 'утепление', 'разводка', 'прокладка',
]

NORMATIVE_HINTS = {
    'plastering': ['ФЕР15-02-001', 'ФЕР15-02-002', 'ФЕР15-02-016'],
    'painting': ['ФЕР15-04-001', 'ФЕР15-04-002', 'ФЕР15-04-025'],
    'flooring': ['ФЕР11-01-001', 'ФЕР11-01-002', 'ФЕР11-01-036'],
    'tiling': ['ФЕР11-01-027', 'ФЕР11-01-028', 'ФЕР11-01-034'],
    'electrical': ['ФЕР08-01-001', 'ФЕР08-02-001', 'ФЕР08-03-001'],
    'plumbing': ['ФЕР16-01-001', 'ФЕР16-02-001', 'ФЕР16-03-001'],
    'drywall': ['ФЕР10-01-034', 'ФЕР10-01-035', 'ФЕР10-01-036'],
    'demolition': ['ФЕР46-01-001', 'ФЕР46-01-002', 'ФЕР46-02-001'],
}

PATTERN_WEIGHT = 0.6
EMBEDDING_WEIGHT = 0.4


def _pattern_score(text: str, patterns: list[str]) -> float:
    return sum(1 for p in patterns if p in text) / len(patterns)


class WorkClassifier:
    def __init__(self):
        self.config = get_ml_config()['work_classifier']
        self.category_embeddings = {
            category: create_text_embedding(' '.join(patterns))
            for category, patterns in CATEGORY_PATTERNS.items()
        }
        logger.debug('WorkClassifier initialized')

    def get_status(self) -> dict:
        return {
            'name': 'WorkClassifier',
            'version': '1.0.0',
            'isLoaded': True,
            'status': 'ready',
            'accuracy': 0.82,
        }

    def classify(self, text: str) -> dict:
        text = (text or '').lower()
        entities = self.extract_entities(text)
        category, confidence = self.classify_category(text)
        subcategory = self.classify_subcategory(text, category)
        return {
            'category': category,
            'subcategory': subcategory,
            'confidence': confidence,
            'extractedEntities': entities,
            'suggestedNormatives': NORMATIVE_HINTS.get(category, ['ФЕР01-01-001']),
        }

    def classify_batch(self, texts: list[str]) -> list[dict]:
        return [self.classify(text) for text in texts]

    def classify_category(self, text: str) -> tuple[str, float]:
        embedding = create_text_embedding(text)
        scores = []
        for category, patterns in CATEGORY_PATTERNS.items():
            score = _pattern_score(text, patterns) * PATTERN_WEIGHT
            score += cosine_similarity(embedding, self.category_embeddings[category]) * EMBEDDING_WEIGHT
            scores.append((category, score))

        scores.sort(key=lambda s: s[1], reverse=True)
        best_category, best_score = scores[0]
        confidence = self.calculate_confidence([s for _, s in scores])

        if confidence < self.config['confidence_threshold'] and best_score < 0.3:
            return 'general', 0.5
        return best_category, round_half_up(confidence, 2)

    @staticmethod
    def classify_subcategory(text: str, category: str) -> str:
        best, best_score = 'общая', 0.0
        for subcategory, patterns in SUBCATEGORY_PATTERNS.get(category, {}).items():
            score = _pattern_score(text, patterns)
            if score > best_score:
                best, best_score = subcategory, score
        return best

    @staticmethod
    def calculate_confidence(scores: list[float]) -> float:
        """Confidence grows with the best score and its lead over the runner-up."""
        if len(scores) < 2:
            return scores[0] if scores else 0.0
        ordered = sorted(scores, reverse=True)
        best, second = ordered[0], ordered[1]
        confidence = min(1.0, best + (best - second) * 0.5)
        if best < 0.3:
            confidence *= 0.7
        return confidence

    @staticmethod
    def extract_entities(text: str) -> dict:
        entities = extract_numeric_entities(text)
        materials = [m for m in MATERIAL_KEYWORDS if m in text]
        if materials:
            entities['materials'] = materials
        work_types = [w for w in WORK_KEYWORDS if w in text]
        if work_types:
            entities['workTypes'] = work_types
        return entities

    def parse_voice_command(self, command: str) -> dict:
        return {
            'intent': classify_intent(command)['intent'],
            'classification': self.classify(command),
        }


work_classifier = WorkClassifier()
