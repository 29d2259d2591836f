from .connection import get_db, engine, AsyncSessionLocal, init_db, Base

# Import OCR models to ensure they are registered with Base
from .ocr_models import OcrDataDB

__all__ = [
    'get_db', 'engine', 'AsyncSessionLocal', 'init_db', 'Base',
    'OcrDataDB',
]
