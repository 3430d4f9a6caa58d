"""Greedy material substitution that trades price against a quality target."""

from datetime import date

from denidom.ml.config import SEASONAL_FACTORS, get_ml_config
from denidom.ml.normalization import round_half_up

MATERIAL_ALTERNATIVES = {
    'flooring': [
        {'id': 'lin-economy', 'name': 'Линолеум бытовой', 'price': 350, 'quality': 0.4},
        {'id': 'lin-standard', 'name': 'Линолеум полукоммерческий', 'price': 550, 'quality': 0.6},
        {'id': 'lam-economy', 'name': 'Ламинат 31 класс', 'price': 450, 'quality': 0.5},
        {'id': 'lam-standard', 'name': 'Ламинат 32 класс', 'price': 750, 'quality': 0.7},
        {'id': 'lam-premium', 'name': 'Ламинат 33 класс', 'price': 1200, 'quality': 0.85},
        {'id': 'parquet', 'name': 'Паркетная доска', 'price': 2500, 'quality': 0.95},
    ],
    'painting': [
        {'id': 'paint-water', 'name': 'Краска водоэмульсионная', 'price': 180, 'quality': 0.5},
        {'id': 'paint-latex', 'name': 'Краска латексная', 'price': 350, 'quality': 0.7},
        {'id': 'paint-silicone', 'name': 'Краска силиконовая', 'price': 650, 'quality': 0.9},
        {'id': 'wallpaper-paper', 'name': 'Обои бумажные', 'price': 250, 'quality': 0.4},
        {'id': 'wallpaper-vinyl', 'name': 'Обои виниловые', 'price': 450, 'quality': 0.6},
        {'id': 'wallpaper-fleece', 'name': 'Обои флизелиновые', 'price': 750, 'quality': 0.8},
    ],
    'plastering': [
        {'id': 'plaster-cement', 'name': 'Штукатурка цементная', 'price': 280, 'quality': 0.6},
        {'id': 'plaster-gypsum', 'name': 'Штукатурка гипсовая', 'price': 320, 'quality': 0.7},
        {'id': 'plaster-machine', 'name': 'Штукатурка машинная', 'price': 250, 'quality': 0.75},
        {'id': 'plaster-decorative', 'name': 'Штукатурка декоративная', 'price': 800, 'quality': 0.9},
    ],
    'tiling': [
        {'id': 'tile-economy', 'name': 'Плитка эконом', 'price': 450, 'quality': 0.5},
        {'id': 'tile-standard', 'name': 'Плитка стандарт', 'price': 850, 'quality': 0.7},
        {'id': 'tile-premium', 'name': 'Керамогранит', 'price': 1500, 'quality': 0.85},
        {'id': 'tile-mosaic', 'name': 'Мозаика', 'price': 2500, 'quality': 0.9},
    ],
    'electrical': [
        {'id': 'wire-economy', 'name': 'Провод ВВГ', 'price': 50, 'quality': 0.6},
        {'id': 'wire-standard', 'name': 'Провод NYM', 'price': 80, 'quality': 0.8},
        {'id': 'socket-economy', 'name': 'Розетка эконом', 'price': 100, 'quality': 0.5},
        {'id': 'socket-standard', 'name': 'Розетка стандарт', 'price': 250, 'quality': 0.7},
        {'id': 'socket-premium', 'name': 'Розетка премиум', 'price': 500, 'quality': 0.9},
    ],
    'plumbing': [
        {'id': 'pipe-ppr', 'name': 'Труба ППР', 'price': 80, 'quality': 0.6},
        {'id': 'pipe-metal', 'name': 'Труба металлопластик', 'price': 120, 'quality': 0.75},
        {'id': 'mixer-economy', 'name': 'Смеситель эконом', 'price': 2000, 'quality': 0.5},
        {'id': 'mixer-standard', 'name': 'Смеситель стандарт', 'price': 4500, 'quality': 0.7},
        {'id': 'mixer-premium', 'name': 'Смеситель премиум', 'price': 8000, 'quality': 0.9},
    ],
}

QUALITY_LEVELS = {'economy': 0.4, 'standard': 0.7, 'premium': 0.9}


def format_rub(amount: float) -> str:
    return f'{amount:,.0f}'.replace(',', ' ')


class CostOptimizer:
    def __init__(self):
        self.config = get_ml_config()['cost_optimizer']

    def get_status(self) -> dict:
        return {
            'name': 'CostOptimizer',
            'version': '1.0.0',
            'isLoaded': True,
            'status': 'ready',
            'accuracy': 0.78,
        }

    @staticmethod
    def normalize_category(category: str) -> str:
        lowered = (category or '').lower()
        for key in MATERIAL_ALTERNATIVES:
            if lowered and (key in lowered or lowered in key):
                return key
        return 'general'

    def get_alternatives(self, category: str) -> list[dict]:
        return MATERIAL_ALTERNATIVES.get(self.normalize_category(category), [])

    def find_best_alternative(self, item: dict, target_quality: float, constraints: dict | None = None):
        constraints = constraints or {}
        category = self.normalize_category(item.get('category', ''))
        alternatives = MATERIAL_ALTERNATIVES.get(category)
        if not alternatives or category in (constraints.get('excludeCategories') or []):
            return None

        min_quality = constraints.get('minQuality')
        if min_quality is None:
            min_quality = target_quality * 0.8
        current = item['currentPrice']

        best, best_score = None, 0.0
        for alt in alternatives:
            if alt['quality'] < min_quality or alt['price'] >= current:
                continue
            savings_ratio = (current - alt['price']) / current
            quality_match = 1 - abs(alt['quality'] - target_quality)
            score = (savings_ratio * self.config['price_weight']
                     + quality_match * self.config['quality_weight'])
            if score > best_score:
                best, best_score = alt, score
        return best

    @staticmethod
    def _change(item, alt, reason) -> dict:
        return {
            'itemId': item['id'],
            'originalItem': item['name'],
            'suggestedItem': alt['name'],
            'originalPrice': item['currentPrice'],
            'suggestedPrice': alt['price'],
            'savings': (item['currentPrice'] - alt['price']) * item['quantity'],
            'reason': reason,
        }

    def optimize(self, data: dict) -> dict:
        quality_level = data.get('qualityLevel') or 'standard'
        target = QUALITY_LEVELS[quality_level]
        items = data.get('items') or []
        changes = []
        original_total = optimized_total = 0.0

        for item in items:
            original_total += item['currentPrice'] * item['quantity']
            alt = self.find_best_alternative(item, target, data.get('constraints'))
            if alt and alt['price'] < item['currentPrice']:
                optimized_total += alt['price'] * item['quantity']
                changes.append(self._change(item, alt, self._change_reason(item, alt, target)))
            else:
                optimized_total += item['currentPrice'] * item['quantity']

        budget = data.get('budget')
        if budget and optimized_total > budget:
            extra, optimized_total = self.apply_budget_constraint(items, changes, budget, target)
            changes.extend(extra)

        savings = original_total - optimized_total
        savings_percent = savings / original_total * 100 if original_total > 0 else 0.0

        return {
            'originalTotal': round_half_up(original_total),
            'optimizedTotal': round_half_up(optimized_total),
            'savings': round_half_up(savings),
            'savingsPercent': round_half_up(savings_percent, 1),
            'changes': changes,
            'qualityImpact': self.assess_quality_impact(changes),
            'recommendations': self._recommendations(quality_level, items, savings),
        }

    def apply_budget_constraint(self, items, existing, budget, target):
        """Swap in the cheapest acceptable alternatives until the budget fits.

        Returns ``(additional_changes, new_total)``.
        """
        changed = {c['itemId']: c['suggestedPrice'] for c in existing}
        total = sum(changed.get(i['id'], i['currentPrice']) * i['quantity'] for i in items)
        extra = []

        for item in items:
            if total <= budget:
                break
            if item['id'] in changed:
                continue
            alternatives = MATERIAL_ALTERNATIVES.get(self.normalize_category(item.get('category', '')))
            if not alternatives:
                continue
            acceptable = [
                a for a in alternatives
                if a['quality'] >= target * 0.7 and a['price'] < item['currentPrice']
            ]
            if not acceptable:
                continue
            cheapest = min(acceptable, key=lambda a: a['price'])
            change = self._change(item, cheapest, 'Оптимизация для соблюдения бюджета')
            total -= change['savings']
            extra.append(change)

        return extra, total

    @staticmethod
    def assess_quality_impact(changes) -> str:
        if not changes:
            return 'none'
        # quality is assumed to fall half as fast as price
        drops = [
            (c['originalPrice'] - c['suggestedPrice']) / c['originalPrice'] * 0.5
            for c in changes
        ]
        avg = sum(drops) / len(drops)
        if avg < 0.1:
            return 'none'
        if avg < 0.2:
            return 'minimal'
        return 'moderate'

    @staticmethod
    def _change_reason(item, alt, target) -> str:
        savings = (item['currentPrice'] - alt['price']) / item['currentPrice'] * 100
        if alt['quality'] >= target:
            return f'Экономия {savings:.0f}% при сохранении целевого качества'
        if alt['quality'] >= target * 0.9:
            return f'Экономия {savings:.0f}% с минимальным снижением качества'
        return f'Экономия {savings:.0f}% при переходе на бюджетный вариант'

    @staticmethod
    def _recommendations(quality_level, items, savings, month=None) -> list[str]:
        recs = []
        if savings > 0:
            recs.append(f'Применив предложенные замены, можно сэкономить {format_rub(savings)} ₽')

        month = date.today().month - 1 if month is None else month
        seasonal = SEASONAL_FACTORS[month]
        if seasonal > 1.05:
            recs.append('Сейчас высокий сезон. Рассмотрите возможность отложить закупку материалов '
                        'на 2-3 месяца для дополнительной экономии.')
        elif seasonal < 0.98:
            recs.append('Сейчас низкий сезон - отличное время для закупки материалов по сниженным ценам.')

        if quality_level == 'economy':
            recs.append('При выборе бюджетных материалов обратите внимание на гарантийные сроки '
                        'и условия эксплуатации.')
        elif quality_level == 'premium':
            recs.append('Премиум материалы обычно имеют длительную гарантию и лучшие '
                        'эксплуатационные характеристики.')

        if any(i['quantity'] > 50 for i in items):
            recs.append('При больших объемах закупки запросите скидку у поставщика - '
                        'обычно возможна экономия 5-10%.')
        return recs

    def calculate_potential_savings(self, items: list[dict], quality_level: str = 'standard') -> dict:
        target = QUALITY_LEVELS[quality_level]
        current_total = sum(i['currentPrice'] * i['quantity'] for i in items)
        lowest = highest = 0.0

        for item in items:
            cost = item['currentPrice'] * item['quantity']
            alternatives = MATERIAL_ALTERNATIVES.get(self.normalize_category(item.get('category', '')))
            acceptable = [a['price'] for a in alternatives or [] if a['quality'] >= target * 0.8]
            if not acceptable:
                lowest += cost
                highest += cost
                continue
            lowest += min(min(acceptable), item['currentPrice']) * item['quantity']
            highest += max(max(acceptable), item['currentPrice']) * item['quantity']

        max_savings = (current_total - lowest) / current_total * 100 if current_total > 0 else 0.0
        return {
            'currentTotal': round_half_up(current_total),
            'potentialMinimum': round_half_up(lowest),
            'potentialMaximum': round_half_up(highest),
            'maxSavingsPercent': round_half_up(max_savings, 1),
        }


cost_optimizer = CostOptimizer()
