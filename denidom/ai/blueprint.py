"""Room lists from floor plans: typed in by hand or read from an image."""

import base64
import binascii
import logging

from denidom.ai.client import AIError, get_client

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 10 * 1024 * 1024
ALLOWED_TYPES = ('image/jpeg', 'image/png', 'image/webp', 'image/gif')

ROOM_TYPES = [
    (('кухн',), 'kitchen'),
    (('ванн', 'санузел'), 'bathroom'),
    (('спальн',), 'bedroom'),
    (('гостин', 'зал'), 'living_room'),
    (('детск',), 'children_room'),
    (('кабинет',), 'office'),
    (('коридор', 'прихож'), 'hallway'),
    (('балкон', 'лодж'), 'balcony'),
    (('туалет', 'wc'), 'toilet'),
]

WORK_SUGGESTIONS = {
    'kitchen': [
        'Укладка напольной плитки',
        'Укладка фартука из плитки',
        'Покраска стен',
        'Монтаж натяжного потолка',
        'Установка кухонного гарнитура',
        'Электромонтажные работы',
    ],
    'bathroom': [
        'Гидроизоляция',
        'Укладка напольной плитки',
        'Укладка настенной плитки',
        'Монтаж подвесного потолка',
        'Установка сантехники',
        'Монтаж полотенцесушителя',
    ],
    'toilet': [
        'Гидроизоляция',
        'Укладка плитки',
        'Установка унитаза',
        'Монтаж потолка',
    ],
    'bedroom': [
        'Штукатурка стен',
        'Шпаклевка под покраску',
        'Покраска стен',
        'Укладка ламината',
        'Монтаж плинтусов',
        'Монтаж натяжного потолка',
    ],
    'living_room': [
        'Штукатурка стен',
        'Шпаклевка под покраску',
        'Покраска стен',
        'Укладка ламината/паркета',
        'Монтаж плинтусов',
        'Монтаж натяжного потолка',
    ],
    'children_room': [
        'Штукатурка стен',
        'Покраска стен (экологичная краска)',
        'Укладка ламината',
        'Монтаж плинтусов',
        'Монтаж натяжного потолка',
    ],
    'office': [
        'Штукатурка стен',
        'Покраска стен',
        'Укладка ламината',
        'Монтаж плинтусов',
        'Электромонтажные работы',
    ],
    'hallway': [
        'Штукатурка стен',
        'Покраска стен',
        'Укладка ламината/плитки',
        'Монтаж плинтусов',
        'Монтаж потолка',
    ],
    'balcony': [
        'Остекление',
        'Утепление',
        'Обшивка стен',
        'Укладка напольного покрытия',
    ],
}

PROMPT = """Ты эксперт по анализу архитектурных чертежей и планов помещений.

Проанализируй прикрепленное изображение плана/чертежа и извлеки следующую информацию:

1. Список комнат (rooms) с их названием (name), площадью в м² (area), периметром
   (perimeter, если можно определить) и типом помещения (type)
2. Общая площадь помещения (totalArea)
3. Количество этажей (floorCount, если видно)
4. Тип здания (buildingType: квартира, дом, офис)
{works}{context}
Если изображение не является планом помещения или недостаточно четкое, верни пустой результат.

Ответь в формате JSON."""

WORKS_BLOCK = """5. Предложи типичные работы для каждой комнаты (suggestedWorks: [{room, works}]):
   - Для ванной: укладка плитки, гидроизоляция, сантехника
   - Для кухни: укладка плитки/ламината, установка мебели
   - Для жилых комнат: покраска/обои, укладка полов
"""


class ImageRejected(ValueError):
    pass


def detect_room_type(name: str) -> str:
    lowered = name.lower()
    for needles, room_type in ROOM_TYPES:
        if any(n in lowered for n in needles):
            return room_type
    return 'other'


def suggested_works(room_type: str) -> list[str]:
    return WORK_SUGGESTIONS.get(room_type, WORK_SUGGESTIONS['bedroom'])


def analyze_rooms(rooms: list[dict]) -> dict:
    typed = [
        {'name': r['name'], 'area': r['area'], 'type': r.get('type') or detect_room_type(r['name'])}
        for r in rooms
    ]
    return {
        'rooms': typed,
        'totalArea': sum(r['area'] for r in typed),
        'suggestedWorks': [{'room': r['name'], 'works': suggested_works(r['type'])} for r in typed],
    }


def empty_analysis() -> dict:
    return {'rooms': [], 'totalArea': 0, 'suggestedWorks': []}


def validate_image(image_base64: str, image_type: str | None = None) -> None:
    if image_type and image_type not in ALLOWED_TYPES:
        raise ImageRejected('Allowed types: JPEG, PNG, WebP, GIF')
    try:
        size = len(base64.b64decode(image_base64, validate=False))
    except (binascii.Error, ValueError):
        raise ImageRejected('Image is not valid base64')
    if size > MAX_IMAGE_SIZE:
        raise ImageRejected('Maximum image size is 10MB')


def analyze_image(image_base64, image_type=None, project_type=None, include_work_suggestions=True) -> dict:
    """Ask the vision model for rooms; an unusable answer yields an empty analysis."""
    mime = image_type or 'image/jpeg'
    prompt = PROMPT.format(
        works=WORKS_BLOCK if include_work_suggestions else '',
        context=f'\nКонтекст: это {project_type}\n' if project_type else '',
    )
    try:
        data = get_client().generate_json(prompt, image_url=f'data:{mime};base64,{image_base64}')
    except AIError as e:
        logger.warning('Blueprint analysis failed: %s', e)
        return empty_analysis()
    if not isinstance(data.get('rooms'), list):
        return empty_analysis()
    data.setdefault('totalArea', sum(r.get('area') or 0 for r in data['rooms']))
    data.setdefault('suggestedWorks', [])
    return data
