# denidom/export/documents.py

"""Russian reporting forms built from estimates.

* KS-2: act of work completed, one row per estimate item.
* KS-3: certificate of work cost, one row per project estimate.
* M-29: material report comparing normative and actual consumption.

Each builder returns a plain dict ready for ``jsonify``; ``to_csv`` renders
the same dict as semicolon separated text with a UTF-8 byte order mark so
spreadsheet software picks the right encoding for Cyrillic text.
"""

import csv
import io
from datetime import date

from denidom.calculator.utils import round2

BOM = '\ufeff'
VAT_RATE = 0.2


def today() -> str:
    return date.today().isoformat()


def _coefficient(item):
    return item.get('coefficient') or 1


def generate_ks2(estimate, options: dict) -> dict:
    items = []
    for index, item in enumerate(estimate.items or [], start=1):
        coef = _coefficient(item)
        items.append({
            'number': index,
            'estimateNumber': estimate.id[:8],
            'name': item['name'],
            'unit': item['unit'],
            'quantityEstimate': item['quantity'],
            'quantityActual': item['quantity'],
            'unitPrice': round2(item['price'] * coef),
            'total': round2(item['quantity'] * item['price'] * coef),
        })

    total_without_vat = estimate.subtotal + estimate.overhead + estimate.profit
    vat = total_without_vat * VAT_RATE

    return {
        'actNumber': options['actNumber'],
        'actDate': today(),
        'contractNumber': options['contractNumber'],
        'contractDate': options['contractDate'],
        'investor': options['investor'],
        'customer': options['customer'],
        'contractor': options['contractor'],
        'objectName': estimate.project.name if estimate.project else estimate.name,
        'objectAddress': options['objectAddress'],
        'reportPeriodFrom': options['reportPeriodFrom'],
        'reportPeriodTo': options['reportPeriodTo'],
        'items': items,
        'totalWithoutVat': round2(total_without_vat),
        'vat': round2(vat),
        'totalWithVat': round2(total_without_vat + vat),
    }


def generate_ks3(estimates, options: dict) -> dict:
    items = [
        {
            'number': index,
            'name': est.name,
            'code': est.id[:8],
            'contractAmount': est.total,
            # no payment history is kept, so nothing was billed before
            'previousAmount': 0,
            'currentAmount': est.total,
        }
        for index, est in enumerate(estimates, start=1)
    ]
    project = estimates[0].project if estimates else None

    return {
        'referenceNumber': options['referenceNumber'],
        'referenceDate': today(),
        'contractNumber': options['contractNumber'],
        'investor': options['investor'],
        'customer': options['customer'],
        'contractor': options['contractor'],
        'objectName': project.name if project else 'Объект',
        'reportPeriodFrom': options['reportPeriodFrom'],
        'reportPeriodTo': options['reportPeriodTo'],
        'items': items,
        'total': round2(sum(i['currentAmount'] for i in items)),
    }


def generate_m29(materials: list, options: dict) -> dict:
    rows = []
    for index, mat in enumerate(materials, start=1):
        price = mat['price']
        rows.append({
            'number': index,
            'code': mat['code'],
            'name': mat['name'],
            'unit': mat['unit'],
            'normativeQuantity': mat['normativeQuantity'],
            'actualQuantity': mat['actualQuantity'],
            'price': price,
            'normativeTotal': round2(mat['normativeQuantity'] * price),
            'actualTotal': round2(mat['actualQuantity'] * price),
            'deviation': round2((mat['actualQuantity'] - mat['normativeQuantity']) * price),
        })

    return {
        'reportNumber': options['reportNumber'],
        'reportDate': today(),
        'objectName': options['objectName'],
        'contractor': options['contractor'],
        'reportPeriodFrom': options['reportPeriodFrom'],
        'reportPeriodTo': options['reportPeriodTo'],
        'materials': rows,
        'total': round2(sum(m['actualTotal'] for m in rows)),
    }


def fmt(value):
    """Render numbers the way spreadsheets expect: ``45000`` not ``45000.0``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _render(rows) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=';', lineterminator='\n')
    for row in rows:
        writer.writerow([fmt(v) for v in row])
    return BOM + buf.getvalue()


def ks2_rows(form):
    yield ['Акт о приемке выполненных работ (КС-2)']
    yield ['Номер акта', form['actNumber']]
    yield ['Дата акта', form['actDate']]
    yield ['Договор', f"{form['contractNumber']} от {form['contractDate']}"]
    yield ['Объект', form['objectName']]
    yield []
    yield ['№ п/п', 'Номер сметы', 'Наименование', 'Ед.изм.', 'По смете', 'Выполнено', 'Цена', 'Стоимость']
    for i in form['items']:
        yield [i['number'], i['estimateNumber'], i['name'], i['unit'],
               i['quantityEstimate'], i['quantityActual'], i['unitPrice'], i['total']]
    yield []
    yield ['Итого без НДС', '', '', '', '', '', form['totalWithoutVat']]
    yield ['НДС 20%', '', '', '', '', '', form['vat']]
    yield ['Всего с НДС', '', '', '', '', '', form['totalWithVat']]


def ks3_rows(form):
    yield ['Справка о стоимости выполненных работ (КС-3)']
    yield ['Номер справки', form['referenceNumber']]
    yield ['Дата справки', form['referenceDate']]
    yield ['Договор', form['contractNumber']]
    yield []
    yield ['№ п/п', 'Наименование', 'Код', 'По договору', 'С начала года', 'За период']
    for i in form['items']:
        yield [i['number'], i['name'], i['code'],
               i['contractAmount'], i['previousAmount'], i['currentAmount']]
    yield []
    yield ['ИТОГО', '', '', '', '', form['total']]


def m29_rows(form):
    yield ['Материальный отчет (М-29)']
    yield ['Номер отчета', form['reportNumber']]
    yield ['Дата отчета', form['reportDate']]
    yield ['Объект', form['objectName']]
    yield []
    yield ['№ п/п', 'Код', 'Наименование', 'Ед.изм.', 'Норма', 'Факт', 'Цена',
           'По норме', 'Фактически', 'Отклонение']
    for m in form['materials']:
        yield [m['number'], m['code'], m['name'], m['unit'], m['normativeQuantity'],
               m['actualQuantity'], m['price'], m['normativeTotal'], m['actualTotal'],
               m['deviation']]
    yield []
    yield ['ИТОГО', '', '', '', '', '', '', form['total']]


def estimate_rows(estimate):
    yield ['Локальная смета']
    yield ['Название', estimate.name]
    yield ['Проект', estimate.project.name if estimate.project else 'Не указан']
    yield ['Дата создания', estimate.created_at.strftime('%d.%m.%Y')]
    yield []
    yield ['№ п/п', 'Наименование', 'Ед.изм.', 'Количество', 'Цена', 'Коэф.', 'Стоимость']
    for index, item in enumerate(estimate.items or [], start=1):
        coef = _coefficient(item)
        yield [index, item['name'], item['unit'], item['quantity'], item['price'], coef,
               round2(item['quantity'] * item['price'] * coef)]
    yield []
    yield ['Итого прямые затраты', '', '', '', '', estimate.subtotal]
    yield ['Накладные расходы', '', '', '', '', estimate.overhead]
    yield ['Сметная прибыль', '', '', '', '', estimate.profit]
    yield ['ВСЕГО', '', '', '', '', estimate.total]


ROW_BUILDERS = {
    'ks2': ks2_rows,
    'ks3': ks3_rows,
    'm29': m29_rows,
}


def to_csv(form, kind: str) -> str:
    return _render(ROW_BUILDERS[kind](form))


def estimate_to_csv(estimate) -> str:
    return _render(estimate_rows(estimate))
