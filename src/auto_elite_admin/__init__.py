"""Auto Elite Admin - manage a vehicle listing inventory from the command line."""

__version__ = "0.1.0"

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.auth import AuthSessionMachine, AuthState
from auto_elite_admin.car_form import CarForm, CarFormController
from auto_elite_admin.config import AdminConfig
from auto_elite_admin.encoder import ImageBatch, ImageBatchEncoder
from auto_elite_admin.models import CarDraftPayload, Session, StorageTier
from auto_elite_admin.routing import Page, Router
from auto_elite_admin.storage import SessionStore

__all__ = [
    "AutoEliteAPIClient",
    "AuthSessionMachine",
    "AuthState",
    "CarForm",
    "CarFormController",
    "AdminConfig",
    "ImageBatch",
    "ImageBatchEncoder",
    "CarDraftPayload",
    "Session",
    "StorageTier",
    "Page",
    "Router",
    "SessionStore",
]
