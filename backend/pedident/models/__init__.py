from pedident.models.base import Base
from pedident.models.patient import Patient
from pedident.models.dental_chart import DentalChart

__all__ = ["Base", "DentalChart", "Patient"]
