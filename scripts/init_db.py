#!/usr/bin/env python3
"""
Script para inicializar MongoDB con índices y encuestas de ejemplo
"""

from pymongo import ASCENDING

from app.core.database import (
    get_feed_collection,
    get_messages_collection,
    get_users_collection,
)

SAMPLE_SURVEYS = [
    {
        "title": "Satisfacción con el servicio de salud",
        "category": "Salud",
        "question": "¿Cómo califica el servicio de salud pública en su municipio?",
        "chartType": "bar",
        "description": "Distribución de calificaciones del servicio de salud.",
        "chartData": {"labels": ["Muy malo", "Malo", "Regular", "Bueno", "Muy bueno"], "values": [120, 210, 340, 280, 90]},
    },
    {
        "title": "Percepción de seguridad",
        "category": "Seguridad",
        "question": "¿Qué tan seguro se siente al caminar de noche en su colonia?",
        "chartType": "pie",
        "description": "Proporción de personas según su percepción de seguridad.",
        "chartData": {"labels": ["Seguro", "Poco seguro", "Inseguro"], "values": [28.5, 35.0, 36.5]},
    },
    {
        "title": "Calidad del transporte público por municipio",
        "category": "Movilidad",
        "question": "¿Cómo califica el transporte público que utiliza?",
        "chartType": "stackedBar",
        "description": "Calificación del transporte público en los municipios metropolitanos.",
        "chartData": {
            "labels": ["Guadalajara", "Zapopan", "Tlaquepaque"],
            "datasets": [
                {"name": "Bueno", "data": [45, 52, 38]},
                {"name": "Regular", "data": [35, 30, 40]},
                {"name": "Malo", "data": [20, 18, 22]},
            ],
        },
    },
    {
        "title": "Respuestas recibidas por día",
        "category": "Participación ciudadana",
        "question": "Participación diaria en la encuesta",
        "chartType": "contribution",
        "description": "Número de encuestas respondidas cada día del levantamiento.",
        "chartData": {
            "values": [
                {"date": "2025-03-01", "count": 42},
                {"date": "2025-03-02", "count": 57},
                {"date": "2025-03-03", "count": 31},
            ]
        },
    },
    {
        "title": "Confianza en el gobierno municipal",
        "category": "Gobierno",
        "question": "¿Cuánta confianza tiene en su gobierno municipal?",
        "chartType": "line",
        "description": "Evolución anual del porcentaje de confianza.",
        "chartData": {"labels": ["2021", "2022", "2023", "2024"], "values": [31.2, 29.8, 33.4, 35.1]},
    },
]


def init_db():
    """Crear índices y sembrar el feed con encuestas de ejemplo"""
    feed = get_feed_collection()
    messages = get_messages_collection()
    users = get_users_collection()

    users.create_index([("email", ASCENDING)], unique=True)
    messages.create_index([("timestamp", ASCENDING)])
    feed.create_index([("category", ASCENDING)])
    print("✅ Índices creados")

    if feed.count_documents({}) > 0:
        print("⚠️  El feed ya tiene encuestas. No se insertan datos de ejemplo.")
        return

    result = feed.insert_many(SAMPLE_SURVEYS)
    print(f"✅ {len(result.inserted_ids)} encuestas de ejemplo insertadas")


if __name__ == "__main__":
    init_db()
