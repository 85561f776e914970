"""
Anemia Screening API
Tamizaje de anemia mediante análisis de imágenes de párpado
"""

__version__ = "1.0.0"
