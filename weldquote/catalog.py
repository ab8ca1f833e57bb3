"""
Form vocabulary — every enumerated JobSpec value with its display label.

Served to the intake form (GET /api/options) and used to render order
notifications. Labels are the Russian wording the customers see.
"""

WORK_TYPES = [
    ("welding", "Сварка"),
    ("cutting", "Резка"),
    ("overlay", "Наплавка"),
    ("grinding", "Зачистка"),
    ("complex", "Комплекс"),
]

WORK_SCOPES = [
    ("from_scratch", "Изготовление с нуля"),
    ("pre_cut", "Из готовых заготовок"),
    ("repair", "Ремонт / переделка"),
]

MATERIALS = [
    ("steel", "Черная сталь"),
    ("stainless", "Нержавейка"),
    ("aluminium", "Алюминий"),
    ("cast_iron", "Чугун"),
    ("copper", "Медь"),
    ("brass", "Латунь"),
    ("titanium", "Титан"),
]

THICKNESSES = [
    ("lt_3", "до 3 мм"),
    ("mm_3_6", "3–6 мм"),
    ("mm_6_12", "6–12 мм"),
    ("gt_12", "12+ мм"),
    ("unknown", "Не знаю"),
]

WELD_TYPES = [
    ("butt", "Стыковой"),
    ("corner", "Угловой"),
    ("tee", "Тавровый"),
    ("lap", "Нахлёст"),
    ("pipe", "Труба-труба"),
]

POSITIONS = [
    ("flat", "Нижнее"),
    ("vertical", "Вертикальное"),
    ("overhead", "Потолочное"),
    ("mixed", "Смешанное"),
]

CONDITIONS = [
    ("indoor", "В помещении"),
    ("outdoor", "На улице"),
    ("height", "Высота/леса"),
    ("tight_space", "Стеснённый доступ"),
]

MATERIAL_OWNERS = [
    ("client", "Материал заказчика"),
    ("contractor", "Материал исполнителя"),
]

DEADLINES = [
    ("normal", "Обычно"),
    ("urgent", "Срочно"),
    ("night", "Ночью/сменами"),
]

EXTRA_SERVICES = [
    ("visual_inspection", "ВИК"),
    ("ultrasonic_test", "УЗК"),
    ("pressure_test", "Опрессовка"),
    ("soap_test", "Проверка мылом"),
    ("documentation", "Акты и протоколы"),
]

OPTIONS = {
    "work_type": WORK_TYPES,
    "work_scope": WORK_SCOPES,
    "material": MATERIALS,
    "thickness": THICKNESSES,
    "weld_type": WELD_TYPES,
    "position": POSITIONS,
    "conditions": CONDITIONS,
    "material_owner": MATERIAL_OWNERS,
    "deadline": DEADLINES,
    "extra_services": EXTRA_SERVICES,
}


def get_label(field: str, value) -> str:
    """Display label for a field value; unknown values are shown as-is."""
    if not value:
        return "не указан"
    for option, label in OPTIONS.get(field, []):
        if option == value:
            return label
    return str(value)


def options_payload() -> dict:
    return {
        field: [{"value": value, "label": label} for value, label in choices]
        for field, choices in OPTIONS.items()
    }
