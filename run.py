#!/usr/bin/env python3
"""
Anemia Screening API - Script de inicio
Ejecutar este archivo para iniciar el servidor
"""

import uvicorn

from anemia_screening.config import settings

if __name__ == "__main__":
    print("=" * 60)
    print("🚀 Anemia Screening API - Iniciando servidor...")
    print("=" * 60)
    print()
    base_url = f"http://localhost:{settings.port}"
    print(f"📍 URL: {base_url}")
    print(f"📚 Documentación: {base_url}/docs")
    print(f"🔧 Health Check: {base_url}/health")
    print(f"🤖 Estado del modelo: {base_url}/model/status")
    print(f"🧠 Modelo: {settings.model_path}")
    print()
    print("Presiona Ctrl+C para detener el servidor")
    print("=" * 60)
    print()
    
    uvicorn.run(
        "anemia_screening.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower()
    )
