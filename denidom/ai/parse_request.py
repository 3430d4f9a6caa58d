"""Turn a free-text job description into a list of categorised works."""

import logging
import re

from pydantic import ValidationError

from denidom.ai.client import AIError, ai_configured, get_client
from denidom.ai.schemas import ParsedRequest
from denidom.ml.embeddings import extract_keywords, extract_numeric_entities
from denidom.ml.work_classifier import CATEGORY_PATTERNS

logger = logging.getLogger(__name__)

PROMPT = """Ты эксперт по строительным сметам в России. Проанализируй следующее описание работ и извлеки структурированную информацию.

Описание работ:
"{description}"

Извлеки следующую информацию:
1. projectType - тип проекта (apartment, house, office, commercial, industrial)
2. totalArea - общая площадь в квадратных метрах (если упоминается)
3. roomCount - количество комнат (если упоминается)
4. works - список работ, для каждой работы укажи:
   - description: описание работы
   - category: категория (plastering, painting, flooring, demolition, masonry, tiling, electrical, plumbing, drywall, insulation, roofing, windows, doors, general)
   - keywords: ключевые слова для поиска в базе нормативов ФЕР
   - estimatedQuantity: примерное количество (если можно определить из контекста)
   - unit: единица измерения (м², м³, шт, п.м.)

Верни JSON объект строго в следующем формате:
{{
  "projectType": "apartment",
  "totalArea": 60,
  "works": [
    {{
      "description": "штукатурка стен",
      "category": "plastering",
      "keywords": ["штукатурка", "оштукатуривание"],
      "estimatedQuantity": 120,
      "unit": "м²"
    }}
  ]
}}

ВАЖНО:
- Используй только указанные категории
- Ключевые слова должны быть на русском языке
- Если площадь не указана, не включай totalArea
- Если количество можно примерно рассчитать из площади (например, стены = площадь * 2.8), сделай это
"""

PROJECT_TYPE_PATTERNS = [
    (re.compile(r'\b(?:дом|коттедж|дач)'), 'house'),
    (re.compile(r'\bофис'), 'office'),
    (re.compile(r'\b(?:магазин|кафе|ресторан|салон)'), 'commercial'),
    (re.compile(r'\b(?:склад|цех|завод|производ)'), 'industrial'),
]

ROOM_COUNT_RE = re.compile(r'(\d+)\s*-?\s*(?:х\s*)?комнат')
FRAGMENT_SPLIT_RE = re.compile(r'[;\n]|[,.](?=\s|$)|\s+и\s+')

PIECE_CATEGORIES = ('windows', 'doors')


def _detect_category(text: str) -> str | None:
    best, best_hits = None, 0
    for category, patterns in CATEGORY_PATTERNS.items():
        hits = sum(1 for p in patterns if p in text)
        if hits > best_hits:
            best, best_hits = category, hits
    return best


def parse_locally(description: str) -> ParsedRequest:
    """Keyword based parse used when no model is available."""
    text = description.lower()

    project_type = 'apartment'
    for pattern, kind in PROJECT_TYPE_PATTERNS:
        if pattern.search(text):
            project_type = kind
            break

    numbers = extract_numeric_entities(text)
    room_match = ROOM_COUNT_RE.search(text)

    works = []
    for fragment in FRAGMENT_SPLIT_RE.split(text):
        fragment = fragment.strip()
        if len(fragment) < 4:
            continue
        category = _detect_category(fragment)
        if category is None:
            continue
        keywords = extract_keywords(fragment) or [w for w in fragment.split() if len(w) > 3]
        works.append({
            'description': fragment,
            'category': category,
            'keywords': keywords[:5],
            'estimatedQuantity': extract_numeric_entities(fragment).get('area'),
            'unit': 'шт' if category in PIECE_CATEGORIES else 'м²',
        })

    if not works:
        works.append({
            'description': description.strip(),
            'category': 'general',
            'keywords': extract_keywords(text)[:5],
            'unit': 'м²',
        })

    return ParsedRequest.model_validate({
        'projectType': project_type,
        'totalArea': numbers.get('area'),
        'roomCount': int(room_match.group(1)) if room_match else None,
        'works': works,
    })


def parse_request(description: str) -> ParsedRequest:
    if not ai_configured():
        return parse_locally(description)
    try:
        raw = get_client().generate_json(PROMPT.format(description=description))
        parsed = ParsedRequest.model_validate(raw)
    except (AIError, ValidationError) as e:
        logger.warning('AI parse failed, using keyword parser: %s', e)
        return parse_locally(description)
    if not parsed.works:
        return parse_locally(description)
    return parsed
