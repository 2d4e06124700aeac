"""
Explicit name mappings.

Sheet titles (banks) and sheet header cells (insurers) are written by people,
in Russian, in whatever casing they prefer. The upstream API identifies the
same entities with short lowercase ASCII ids. Names listed here resolve to the
configured id; everything else falls back to transliteration
(see src/integrations/policy/name_mapper.py).
"""

from types import MappingProxyType

BANK_NAME_MAPPINGS = MappingProxyType({
    "Сбербанк": "sberbank",
    "СберБанк": "sberbank",
    "ВТБ": "vtb",
    "Альфа-Банк": "alfabank",
    "Газпромбанк": "gazprombank",
    "Россельхозбанк": "rshb",
    "Открытие": "otkritie",
    "Совкомбанк": "sovcombank",
    "Промсвязьбанк": "psb",
    "Райффайзенбанк": "raiffeisen",
    "Росбанк": "rosbank",
    "Дом.РФ": "domrf",
    "Банк ДОМ.РФ": "domrf",
    "Уралсиб": "uralsib",
    "Абсолют Банк": "absolutbank",
    "Металлинвестбанк": "metallinvestbank",
})

COMPANY_NAME_MAPPINGS = MappingProxyType({
    "МАКС": "makc",
    "КАРДИФ": "cardif",
    "АльфаСтрахование": "alfastrah",
    "ВСК": "vsk",
    "Пульс": "puls",
    "Индивидуальная заявка": "nonsegment",
    "ПАРИ": "skpari",
    "Абсолют Cтрахование": "absolutv2",
    "Совкомбанк Страхование": "sovcomins",
    "Югория": "yugoria",
    "Росгосстрах": "rgs",
    "Ренессанс Страхование": "renins",
    "Зетта Страхование": "zettains",
    "Согласие": "soglasie",
    "ЭНЕРГОГАРАНТ": "energogarant",
})
