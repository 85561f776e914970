"""
Script de prueba manual para la API de tamizaje
Ejecutar después de iniciar el servidor: python run.py
"""

import io
import json

import requests
from PIL import Image

# Configuración
BASE_URL = "http://localhost:8000"
PATIENT_ID = "smoke-patient"

# Estado compartido entre pasos
STATE = {}


def print_response(response, title="Response"):
    """Imprimir respuesta formateada"""
    print(f"\n{'=' * 60}")
    print(f"{title}")
    print(f"{'=' * 60}")
    print(f"Status Code: {response.status_code}")
    try:
        print(f"Response: {json.dumps(response.json(), indent=2, ensure_ascii=False)}")
    except ValueError:
        print(f"Response: {response.text[:500]}")
    print(f"{'=' * 60}\n")


def sample_image():
    """Imagen de prueba: conjuntiva rosada de 300x200"""
    img = Image.new('RGB', (300, 200), color=(200, 90, 100))
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    buffer.seek(0)
    return buffer


def check_health():
    """1: Health check"""
    response = requests.get(f"{BASE_URL}/health")
    print_response(response, "Health Check")
    return response.status_code == 200


def check_model_status():
    """2: Estado del modelo"""
    response = requests.get(f"{BASE_URL}/model/status")
    print_response(response, "Estado del Modelo")
    return response.status_code == 200


def check_predict():
    """3: Predicción sin guardar"""
    files = {"eyelid": ("eyelid.png", sample_image(), "image/png")}
    response = requests.post(f"{BASE_URL}/predict", files=files)
    print_response(response, "Predicción")
    return response.status_code == 200


def check_rejects_text():
    """4: Archivo de texto rechazado"""
    files = {"eyelid": ("notes.txt", io.BytesIO(b"x" * 2048), "text/plain")}
    response = requests.post(f"{BASE_URL}/predict", files=files)
    print_response(response, "Archivo Rechazado")
    return response.status_code == 400


def check_create_assessment():
    """5: Crear evaluación"""
    files = {"eyelid": ("eyelid.png", sample_image(), "image/png")}
    response = requests.post(
        f"{BASE_URL}/assessments",
        data={"patient_id": PATIENT_ID},
        files=files
    )
    print_response(response, "Crear Evaluación")
    if response.status_code == 201:
        STATE["assessment_id"] = response.json()["_id"]
        return True
    return False


def check_history():
    """6: Historial y estadísticas"""
    history = requests.get(f"{BASE_URL}/assessments", params={"patient_id": PATIENT_ID})
    print_response(history, "Historial")
    stats = requests.get(f"{BASE_URL}/assessments/stats", params={"patient_id": PATIENT_ID})
    print_response(stats, "Estadísticas")
    return history.status_code == 200 and stats.status_code == 200


def check_send_to_doctor():
    """7: Enviar evaluación al primer médico"""
    doctors = requests.get(f"{BASE_URL}/doctors").json()
    if not doctors or "assessment_id" not in STATE:
        print("⚠️ Sin médicos o sin evaluación (ejecuta scripts/init_db.py)")
        return False

    payload = {
        "doctorId": doctors[0]["_id"],
        "symptoms": {"fatigue": True, "paleSkin": True},
        "message": "Prueba de envío"
    }
    response = requests.post(
        f"{BASE_URL}/assessments/{STATE['assessment_id']}/send",
        json=payload
    )
    print_response(response, "Enviar a Médico")
    return response.status_code == 200


def run_all_checks():
    """Ejecutar todas las pruebas"""
    print("\n" + "=" * 60)
    print("🧪 INICIANDO PRUEBAS DE LA API")
    print("=" * 60)

    checks = [
        ("Health Check", check_health),
        ("Estado del Modelo", check_model_status),
        ("Predicción", check_predict),
        ("Archivo Rechazado", check_rejects_text),
        ("Crear Evaluación", check_create_assessment),
        ("Historial", check_history),
        ("Enviar a Médico", check_send_to_doctor),
    ]

    passed = 0
    for name, check in checks:
        try:
            result = check()
        except requests.RequestException as e:
            print(f"❌ Error en {name}: {e}")
            result = False
        print(f"{'✅ PASS' if result else '❌ FAIL'} - {name}")
        passed += int(result)

    print("\n" + "-" * 60)
    print(f"Total: {len(checks)} | Exitosas: {passed} | Fallidas: {len(checks) - passed}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    try:
        requests.get(f"{BASE_URL}/")
        print("✅ Servidor detectado y en línea")
        run_all_checks()
    except requests.exceptions.ConnectionError:
        print("❌ No se puede conectar al servidor")
