"""Parse spoken Russian commands such as "добавь кухню 12 квадратов"."""

import logging
import re

from denidom.ai.client import AIError, get_client

logger = logging.getLogger(__name__)

ACTIONS = ('add', 'remove', 'update', 'calculate', 'query')

COMMAND_PATTERNS = [
    (re.compile(r'добав[ьи]?\s+(.+)', re.I), 'add'),
    (re.compile(r'убер[иь]?\s+(.+)', re.I), 'remove'),
    (re.compile(r'удал[иь]?\s+(.+)', re.I), 'remove'),
    (re.compile(r'обнов[иь]?\s+(.+)', re.I), 'update'),
    (re.compile(r'измен[иь]?\s+(.+)', re.I), 'update'),
    (re.compile(r'рассчита[йь]?\s+(.+)', re.I), 'calculate'),
    (re.compile(r'посчита[йь]?\s+(.+)', re.I), 'calculate'),
    (re.compile(r'сколько\s+(.+)', re.I), 'query'),
    (re.compile(r'как[ая]?\s+цен[аы]?\s+(.+)', re.I), 'query'),
]

ROOM_PATTERNS = [
    (re.compile(r'кухн[яиею]', re.I), 'кухня'),
    (re.compile(r'ванн[аяуой]', re.I), 'ванная'),
    (re.compile(r'спальн[яиею]', re.I), 'спальня'),
    (re.compile(r'гостин[аяуой]', re.I), 'гостиная'),
    (re.compile(r'коридор', re.I), 'коридор'),
    (re.compile(r'прихож[аяуой]', re.I), 'прихожая'),
    (re.compile(r'балкон', re.I), 'балкон'),
    (re.compile(r'туалет', re.I), 'туалет'),
    (re.compile(r'детск[аяуой]', re.I), 'детская'),
    (re.compile(r'кабинет', re.I), 'кабинет'),
]

MATERIAL_PATTERNS = [
    (re.compile(r'ламинат', re.I), 'ламинат'),
    (re.compile(r'плитк[аиуой]', re.I), 'плитка'),
    (re.compile(r'паркет', re.I), 'паркет'),
    (re.compile(r'линолеум', re.I), 'линолеум'),
    (re.compile(r'обо[ийев]', re.I), 'обои'),
    (re.compile(r'краск[аиуой]', re.I), 'краска'),
    (re.compile(r'штукатурк[аиуой]', re.I), 'штукатурка'),
    (re.compile(r'гипсокартон', re.I), 'гипсокартон'),
    (re.compile(r'натяжн[ыоа][йеа]', re.I), 'натяжной потолок'),
]

_N = r'(\d+(?:[.,]\d+)?)\s*'
UNIT_PATTERNS = [
    (re.compile(_N + r'(?:квадрат|кв\.?\s*м|м²|метр[аов]*\s*квадрат)', re.I), 'м²'),
    (re.compile(_N + r'(?:куб|м³|метр[аов]*\s*куб)', re.I), 'м³'),
    (re.compile(_N + r'(?:штук|шт)', re.I), 'шт'),
    (re.compile(_N + r'(?:погон|п\.?\s*м|метр[аов]*\s*погон)', re.I), 'м.п.'),
    (re.compile(_N + r'метр', re.I), 'м'),
]

ANY_NUMBER_RE = re.compile(r'(\d+(?:[.,]\d+)?)')

PROMPT = """Ты AI-ассистент для системы сметных расчетов "ДениДом".

Проанализируй голосовую команду пользователя на русском языке и извлеки структурированные данные.

Голосовая команда: "{command}"
{context}
Определи:
1. action: действие (add, remove, update, calculate, query)
2. target: что именно (работа, материал, комната)
3. quantity: количество (число)
4. unit: единица измерения (м², м³, шт, и т.д.)
5. room: комната/зона (кухня, ванная, спальня и т.д.)
6. material: материал если указан
7. notes: дополнительные заметки
8. confidence: уверенность в распознавании (0-100)

Ответь в формате JSON."""


def _first(patterns, text):
    for pattern, value in patterns:
        if pattern.search(text):
            return value
    return None


def _number(raw):
    return float(raw.replace(',', '.'))


def parse_command_locally(command: str) -> dict:
    action, target = 'query', command
    for pattern, act in COMMAND_PATTERNS:
        match = pattern.search(command)
        if match:
            action, target = act, match.group(1) or command
            break

    quantity = unit = None
    for pattern, u in UNIT_PATTERNS:
        match = pattern.search(command)
        if match:
            quantity, unit = _number(match.group(1)), u
            break
    if not quantity:
        match = ANY_NUMBER_RE.search(command)
        if match:
            quantity = _number(match.group(1))

    result = {'action': action, 'target': target.strip()}
    optional = {
        'quantity': quantity,
        'unit': unit,
        'room': _first(ROOM_PATTERNS, command),
        'material': _first(MATERIAL_PATTERNS, command),
    }
    result.update({k: v for k, v in optional.items() if v is not None})
    return result


def _context_block(context: dict | None) -> str:
    if not context:
        return ''
    rooms = ', '.join(context.get('currentRooms') or []) or 'не указаны'
    items = ', '.join(context.get('currentItems') or []) or 'не указаны'
    project_type = context.get('projectType') or 'не указан'
    return (f'\nКонтекст:\n- Текущие комнаты: {rooms}\n- Текущие позиции: {items}\n'
            f'- Тип проекта: {project_type}\n')


def parse_command_with_ai(command: str, context: dict | None = None) -> dict:
    """Raises ``AIError`` when the model is unreachable or answers nonsense."""
    data = get_client().generate_json(PROMPT.format(command=command, context=_context_block(context)))
    if data.get('action') not in ACTIONS:
        raise AIError(f"Unknown action {data.get('action')!r}")
    data.setdefault('target', command)
    data.setdefault('confidence', 50)
    return data


def parse_command(command: str, context: dict | None = None, use_ai: bool = False) -> dict:
    if use_ai:
        try:
            return parse_command_with_ai(command, context)
        except AIError as e:
            logger.warning('AI voice parsing failed, using local parser: %s', e)
    return parse_command_locally(command)
