"""
Default catalog content written the first time the store is opened.

Only the seeding mechanism is a contract; the seed section below is
illustrative and can change freely.
"""

from __future__ import annotations

import copy
from typing import Any

# Insertion order is display order.
SERVICE_NAMES: dict[str, str] = {
    "schedule": "الجدول الدراسي",
    "homework": "الواجبات",
    "ai": "ربوت الذكاء الاصطناعي",
    "broadcast": "البروكاست",
    "programs": "البرامج والمسابقات",
    "files": "الملفات المرسلة",
    "exams": "الاختبارات",
    "contact": "تواصل معنا",
}

_SCHEDULE_SEED: dict[str, Any] = {
    "id": "schedule-1",
    "name": "الجدول الأسبوعي",
    "description": "جدول الحصص لهذا الأسبوع",
    "type": "text",
    "content": [
        {
            "type": "text",
            "title": "الأحد",
            "content": "رياضيات - علوم - لغة عربية",
        }
    ],
}


def default_catalog() -> dict[str, Any]:
    """
    Build a fresh default catalog. Callers may mutate the returned value.
    """
    services: dict[str, Any] = {
        key: {"name": name, "sections": []} for key, name in SERVICE_NAMES.items()
    }
    services["schedule"]["sections"].append(copy.deepcopy(_SCHEDULE_SEED))
    return {"services": services}
