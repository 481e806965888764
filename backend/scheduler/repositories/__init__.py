from .appointments import AppointmentRepository
from .catalog import CatalogRepository

__all__ = [
    "AppointmentRepository",
    "CatalogRepository",
]
