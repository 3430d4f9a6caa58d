"""Hashed bag-of-words embeddings and light text parsing for work descriptions."""

import math
import re

import numpy as np

CONSTRUCTION_VOCABULARY = [
    # work types
    'штукатурка', 'шпаклевка', 'покраска', 'окраска', 'грунтовка', 'укладка',
    'монтаж', 'демонтаж', 'установка', 'разборка', 'облицовка', 'утепление',
    'гидроизоляция', 'звукоизоляция', 'проводка', 'разводка',
    # materials
    'гипсокартон', 'ламинат', 'линолеум', 'плитка', 'керамогранит', 'паркет',
    'обои', 'краска', 'грунт', 'клей', 'затирка', 'подложка',
    # surfaces
    'стена', 'стены', 'потолок', 'потолки', 'пол', 'полы', 'перегородка',
    'откос', 'ниша', 'короб',
    # rooms
    'комната', 'кухня', 'ванная', 'туалет', 'санузел', 'прихожая', 'коридор',
    'балкон', 'лоджия', 'спальня', 'гостиная', 'кабинет',
    # measurements
    'метр', 'квадратный', 'кубический', 'погонный', 'штука', 'комплект', 'слой',
    # quality
    'простой', 'улучшенный', 'высококачественный', 'машинный', 'ручной',
    # actions
    'выровнять', 'подготовить', 'загрунтовать', 'оштукатурить', 'зашпаклевать',
    'покрасить', 'уложить', 'установить', 'смонтировать',
]

INTENT_KEYWORDS = {
    'add': ['добавить', 'добавь', 'включить', 'внести', 'новый', 'создать'],
    'remove': ['удалить', 'удали', 'убрать', 'убери', 'исключить'],
    'update': ['изменить', 'измени', 'обновить', 'обнови', 'заменить', 'поменять'],
    'calculate': ['посчитать', 'посчитай', 'рассчитать', 'подсчитать', 'сколько', 'итого'],
    'query': ['показать', 'покажи', 'найти', 'найди', 'поиск', 'список', 'какой', 'что'],
}

_NUMBER = r'(\d+(?:[.,]\d+)?)'
AREA_RE = re.compile(_NUMBER + r'\s*(?:м²|м2|кв\.?\s*м)', re.IGNORECASE)
COUNT_RE = re.compile(r'(\d+)\s*(?:шт|штук)', re.IGNORECASE)
DIMENSIONS_RE = re.compile(_NUMBER + r'\s*(?:x|х|на)\s*' + _NUMBER, re.IGNORECASE)
HEIGHT_RE = re.compile(r'высот[аы]?\s*(?::|-)?\s*' + _NUMBER, re.IGNORECASE)


def in_vocabulary(word: str) -> bool:
    return any(v in word or word in v for v in CONSTRUCTION_VOCABULARY)


def string_hash(text: str) -> int:
    """31-multiplier string hash kept in signed 32-bit range, then made positive."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def calculate_tf_idf(text: str, document_frequencies: dict, total_documents: int) -> dict:
    words = text.lower().split()
    if not words:
        return {}
    tf = {}
    for word in words:
        tf[word] = tf.get(word, 0) + 1
    max_tf = max(tf.values())
    return {
        word: (count / max_tf) * math.log(total_documents / (document_frequencies.get(word) or 1))
        for word, count in tf.items()
    }


def create_text_embedding(text: str, size: int = 64) -> list[float]:
    embedding = np.zeros(size)
    for i, word in enumerate(text.lower().split()):
        # earlier words weigh more; construction terms count double
        weight = 1 / (1 + i * 0.1)
        boost = 2 if in_vocabulary(word) else 1
        embedding[string_hash(word) % size] += weight * boost

    magnitude = np.linalg.norm(embedding)
    if magnitude > 0:
        embedding /= magnitude
    return embedding.tolist()


def cosine_similarity(a, b) -> float:
    if len(a) != len(b):
        return 0.0
    va, vb = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
    magnitude = np.linalg.norm(va) * np.linalg.norm(vb)
    if magnitude == 0:
        return 0.0
    return float(va.dot(vb) / magnitude)


def euclidean_distance(a, b) -> float:
    if len(a) != len(b):
        return math.inf
    return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))


def find_most_similar(query, items, k: int = 5) -> list[dict]:
    """``items`` is a list of ``(item, embedding)`` pairs."""
    scored = [
        {'item': item, 'similarity': cosine_similarity(query, embedding)}
        for item, embedding in items
    ]
    scored.sort(key=lambda s: s['similarity'], reverse=True)
    return scored[:k]


def extract_keywords(text: str, max_keywords: int = 10) -> list[str]:
    seen = []
    for word in text.lower().split():
        if len(word) <= 2 or word in seen:
            continue
        if in_vocabulary(word) or re.search(r'\d', word):
            seen.append(word)
    return seen[:max_keywords]


def classify_intent(text: str) -> dict:
    lowered = text.lower()
    best_intent, best_score = 'unknown', 0.0
    for intent, keywords in INTENT_KEYWORDS.items():
        score = sum(1 for k in keywords if k in lowered) / len(keywords)
        if score > best_score:
            best_intent, best_score = intent, score
    return {'intent': best_intent, 'confidence': min(1.0, best_score * 2)}


def _num(raw: str) -> float:
    return float(raw.replace(',', '.'))


def extract_numeric_entities(text: str) -> dict:
    result = {}

    match = AREA_RE.search(text)
    if match:
        result['area'] = _num(match.group(1))

    match = COUNT_RE.search(text)
    if match:
        result['quantity'] = int(match.group(1))

    match = DIMENSIONS_RE.search(text)
    if match:
        result['dimensions'] = {'length': _num(match.group(1)), 'width': _num(match.group(2))}

    match = HEIGHT_RE.search(text)
    if match:
        result.setdefault('dimensions', {})['height'] = _num(match.group(1))

    return result
