"""Material recommendations from similar projects, price and text similarity."""

from datetime import date

from denidom.ml.config import CATEGORY_NAMES, SEASONAL_FACTORS, get_ml_config
from denidom.ml.embeddings import cosine_similarity, create_text_embedding


def _m(id, name, category, price, quality, alternatives):
    return {'id': id, 'name': name, 'category': category, 'price': price,
            'quality': quality, 'alternatives': alternatives}


MATERIALS = [
    _m('lam-economy', 'Ламинат эконом 31 класс', 'flooring', 450, 0.5, ['lam-standard', 'lin-economy']),
    _m('lam-standard', 'Ламинат стандарт 32 класс', 'flooring', 750, 0.7, ['lam-economy', 'lam-premium']),
    _m('lam-premium', 'Ламинат премиум 33 класс', 'flooring', 1200, 0.9, ['lam-standard', 'parquet']),
    _m('lin-economy', 'Линолеум бытовой', 'flooring', 350, 0.4, ['lin-standard', 'lam-economy']),
    _m('lin-standard', 'Линолеум полукоммерческий', 'flooring', 550, 0.6, ['lin-economy', 'lam-standard']),
    _m('parquet', 'Паркетная доска', 'flooring', 2500, 0.95, ['lam-premium']),
    _m('paint-economy', 'Краска водоэмульсионная', 'painting', 180, 0.5, ['paint-standard']),
    _m('paint-standard', 'Краска латексная', 'painting', 350, 0.7, ['paint-economy', 'paint-premium']),
    _m('paint-premium', 'Краска силиконовая', 'painting', 650, 0.9, ['paint-standard']),
    _m('wallpaper-vinyl', 'Обои виниловые', 'painting', 450, 0.6, ['wallpaper-fleece']),
    _m('wallpaper-fleece', 'Обои флизелиновые', 'painting', 750, 0.8, ['wallpaper-vinyl']),
    _m('plaster-gypsum', 'Штукатурка гипсовая', 'plastering', 320, 0.7, ['plaster-cement']),
    _m('plaster-cement', 'Штукатурка цементная', 'plastering', 280, 0.6, ['plaster-gypsum']),
    _m('plaster-machine', 'Штукатурка машинная', 'plastering', 250, 0.8, ['plaster-gypsum']),
    _m('tile-economy', 'Плитка керамическая эконом', 'tiling', 450, 0.5, ['tile-standard']),
    _m('tile-standard', 'Плитка керамическая стандарт', 'tiling', 850, 0.7, ['tile-economy', 'tile-premium']),
    _m('tile-premium', 'Керамогранит премиум', 'tiling', 1500, 0.9, ['tile-standard']),
]

MATERIALS_BY_ID = {m['id']: m for m in MATERIALS}

PROJECT_PROFILES = [
    {'projectType': 'apartment', 'area': 60,
     'commonMaterials': ['lam-standard', 'paint-standard', 'tile-standard'], 'avgBudgetPerSqm': 8000},
    {'projectType': 'apartment', 'area': 100,
     'commonMaterials': ['lam-premium', 'paint-premium', 'tile-premium'], 'avgBudgetPerSqm': 12000},
    {'projectType': 'house', 'area': 150,
     'commonMaterials': ['parquet', 'paint-premium', 'tile-premium'], 'avgBudgetPerSqm': 15000},
    {'projectType': 'office', 'area': 200,
     'commonMaterials': ['lin-standard', 'paint-standard', 'tile-standard'], 'avgBudgetPerSqm': 6000},
]


class RecommendationEngine:
    def __init__(self):
        self.config = get_ml_config()['recommendation_engine']
        self.embeddings = {
            m['id']: create_text_embedding(f"{m['name']} {m['category']}") for m in MATERIALS
        }

    def get_status(self) -> dict:
        return {
            'name': 'RecommendationEngine',
            'version': '1.0.0',
            'isLoaded': True,
            'status': 'ready',
            'accuracy': 0.72,
        }

    def get_recommendations(self, data: dict, month: int | None = None) -> list[dict]:
        recs = self.similar_project_recommendations(data)
        if data.get('currentItems'):
            recs += self.cost_saving_recommendations(data['currentItems'])
        recs += self.category_recommendations(data)
        recs += self.seasonal_recommendations(month)

        recs.sort(key=lambda r: r['score'], reverse=True)
        recs = recs[:self.config['max_recommendations']]
        return [r for r in recs if r['score'] >= self.config['min_score']]

    def similar_project_recommendations(self, data: dict) -> list[dict]:
        area = data.get('totalArea') or 0
        if area <= 0:
            return []
        similar = [
            p for p in PROJECT_PROFILES
            if p['projectType'] == data.get('projectType') and abs(p['area'] - area) / area < 0.3
        ]
        if not similar:
            return []

        counts = {}
        for profile in similar:
            for material_id in profile['commonMaterials']:
                counts[material_id] = counts.get(material_id, 0) + 1

        recs = []
        for material_id, count in counts.items():
            material = MATERIALS_BY_ID.get(material_id)
            score = count / len(similar)
            if material and score >= self.config['min_score']:
                recs.append({
                    'itemId': material['id'],
                    'name': material['name'],
                    'score': score,
                    'reason': f'Используется в {round(score * 100)}% похожих проектов',
                    'type': 'material',
                    'alternatives': self.get_alternatives(material['id']),
                })
        return recs

    def cost_saving_recommendations(self, items: list[dict]) -> list[dict]:
        recs = []
        for item in items:
            price = item.get('price') or 0
            if price <= 0:
                continue
            alternatives = self.find_cheaper_alternatives(item.get('name', ''), item.get('category', ''), price)
            if not alternatives:
                continue
            best = alternatives[0]
            savings = (price - best['price']) / price * 100
            # small savings are not worth a recommendation
            if savings < 10:
                continue
            recs.append({
                'itemId': best['id'],
                'name': best['name'],
                'score': min(0.9, 0.5 + savings / 100),
                'reason': f'Экономия {savings:.0f}% без потери качества',
                'type': 'material',
                'savingsPercent': savings,
                'alternatives': [
                    {
                        'id': alt['id'],
                        'name': alt['name'],
                        'price': alt['price'],
                        'qualityDiff': 'same' if alt['quality'] >= 0.7 else 'lower',
                        'savingsPercent': (price - alt['price']) / price * 100,
                    }
                    for alt in alternatives
                ],
            })
        return recs

    def category_recommendations(self, data: dict) -> list[dict]:
        target = 0.7
        budget, area = data.get('budget'), data.get('totalArea')
        if budget and area:
            per_sqm = budget / area
            if per_sqm < 5000:
                target = 0.5
            elif per_sqm > 10000:
                target = 0.9

        recs = []
        for category in ('flooring', 'painting', 'plastering'):
            candidates = [m for m in MATERIALS if m['category'] == category]
            if not candidates:
                continue
            best = min(candidates, key=lambda m: abs(m['quality'] - target))
            recs.append({
                'itemId': best['id'],
                'name': best['name'],
                'score': 0.7 - abs(best['quality'] - target) * 0.3,
                'reason': f'Рекомендуется для категории "{CATEGORY_NAMES.get(category, category)}"',
                'type': 'material',
                'alternatives': self.get_alternatives(best['id']),
            })
        return recs

    @staticmethod
    def seasonal_recommendations(month: int | None = None) -> list[dict]:
        month = date.today().month - 1 if month is None else month
        factor = SEASONAL_FACTORS[month]
        if factor < 1:
            score = 0.75
            reason = (f'Сейчас низкий сезон - цены ниже на {(1 - factor) * 100:.0f}%. '
                      'Хорошее время для закупки материалов.')
        elif factor > 1.05:
            score = 0.6
            reason = (f'Сейчас высокий сезон - цены выше на {(factor - 1) * 100:.0f}%. '
                      'Рассмотрите отложенную закупку.')
        else:
            return []
        return [{
            'itemId': 'seasonal-advice',
            'name': 'Сезонная рекомендация',
            'score': score,
            'reason': reason,
            'type': 'bundle',
            'alternatives': [],
        }]

    def find_cheaper_alternatives(self, name: str, category: str, price: float) -> list[dict]:
        query = create_text_embedding(f'{name} {category}')
        scored = []
        for m in MATERIALS:
            if m['category'] != category or m['price'] >= price:
                continue
            similarity = cosine_similarity(query, self.embeddings[m['id']])
            if similarity > self.config['similarity_threshold']:
                scored.append({**m, 'similarity': similarity})
        scored.sort(key=lambda m: m['similarity'], reverse=True)
        return scored[:5]

    @staticmethod
    def get_alternatives(material_id: str) -> list[dict]:
        material = MATERIALS_BY_ID.get(material_id)
        if not material:
            return []
        result = []
        for alt_id in material['alternatives']:
            alt = MATERIALS_BY_ID.get(alt_id)
            if not alt:
                continue
            if alt['quality'] > material['quality']:
                diff = 'better'
            elif alt['quality'] < material['quality']:
                diff = 'lower'
            else:
                diff = 'same'
            result.append({
                'id': alt['id'],
                'name': alt['name'],
                'price': alt['price'],
                'qualityDiff': diff,
                'savingsPercent': (material['price'] - alt['price']) / material['price'] * 100,
            })
        return result

    def content_based_recommendations(self, query: str, limit: int = 5) -> list[dict]:
        query_embedding = create_text_embedding(query)
        recs = []
        for m in MATERIALS:
            similarity = cosine_similarity(query_embedding, self.embeddings[m['id']])
            if similarity >= self.config['similarity_threshold']:
                recs.append({
                    'itemId': m['id'],
                    'name': m['name'],
                    'score': similarity,
                    'reason': f'Совпадение по запросу "{query}"',
                    'type': 'material',
                    'alternatives': self.get_alternatives(m['id']),
                })
        recs.sort(key=lambda r: r['score'], reverse=True)
        return recs[:limit]


recommendation_engine = RecommendationEngine()
