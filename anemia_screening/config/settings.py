from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "anemia_screening"
    mongodb_timeout_ms: int = 5000
    
    # File Storage
    upload_folder: str = "./uploads"
    save_uploads: bool = True
    max_upload_size: int = 10485760  # 10MB
    min_upload_size: int = 1024  # 1KB
    
    # AI Model
    model_path: str = "models/eyelid_anemia_model.onnx"
    model_max_load_attempts: int = 3
    model_retry_delay: float = 2.0  # segundos entre intentos
    inference_timeout: float = 10.0
    ai_enabled: bool = True  # Si False, todas las predicciones son por defecto
    
    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = True
    
    # CORS
    allowed_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    
    # Logging
    log_level: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = False
        protected_namespaces = ()

settings = Settings()
