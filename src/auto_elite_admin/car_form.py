"""Car creation form: state, submit guard and payload assembly."""

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.auth import AuthSessionMachine
from auto_elite_admin.encoder import ImageBatch, ImageBatchEncoder
from auto_elite_admin.exceptions import (
    AdminAPIError,
    AuthError,
    ImageReadError,
    NetworkError,
    ValidationError,
)
from auto_elite_admin.models import CAR_FIELDS, CarDraftPayload, SubmitResult
from auto_elite_admin.ui import Notifier

logger = logging.getLogger(__name__)

SUBMIT_SUCCESS_MESSAGE = "Car added successfully!"
SUBMIT_FAILED_MESSAGE = "Failed to add car. Please try again."
SUBMIT_ERROR_MESSAGE = "Something went wrong. Please try again later."
NO_IMAGES_MESSAGE = "Please select at least one image."
IMAGE_READ_MESSAGE = "Failed to read images. Please try again."
SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
SUBMIT_IN_PROGRESS_MESSAGE = "A submission is already in progress."


class FormState(enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


@dataclass
class ImagePreview:
    """A thumbnail shown as soon as its file has been encoded."""

    path: Path
    data_uri: str

    @property
    def size_bytes(self) -> int:
        # Approximate decoded size of the base64 body.
        body = self.data_uri.partition(",")[2]
        return len(body) * 3 // 4


@dataclass
class CarForm:
    """Current values of the car form."""

    values: dict[str, Any] = field(default_factory=dict)
    features: set[str] = field(default_factory=set)
    images: list[Path] = field(default_factory=list)
    previews: list[ImagePreview] = field(default_factory=list)

    def set_field(self, name: str, value: Any) -> None:
        if name not in CAR_FIELDS:
            raise KeyError(f"Unknown car field: {name}")
        self.values[name] = value

    def set_feature(self, name: str, checked: bool = True) -> None:
        if checked:
            self.features.add(name)
        else:
            self.features.discard(name)

    def reset(self) -> None:
        self.values.clear()
        self.features.clear()
        self.images.clear()
        self.previews.clear()


class CarFormController:
    """Gathers the form and encoded images into one creation request."""

    def __init__(
        self,
        api_client: AutoEliteAPIClient,
        auth: AuthSessionMachine,
        notifier: Notifier,
        encoder: ImageBatchEncoder | None = None,
        form: CarForm | None = None,
    ) -> None:
        self.api_client = api_client
        self.auth = auth
        self.notifier = notifier
        self.encoder = encoder or ImageBatchEncoder()
        self.form = form or CarForm()
        self.state = FormState.IDLE

    async def load_feature_options(self) -> list[str]:
        """Names of the feature checkboxes offered by the API."""
        try:
            features = await self.api_client.get_car_features()
        except AuthError:
            self.auth.invalidate()
            self.notifier.error(SESSION_EXPIRED_MESSAGE)
            return []
        except AdminAPIError as e:
            logger.error(f"Failed to load car features: {e}")
            self.notifier.warning("Could not load feature options.")
            return []

        names = []
        for feature in features:
            if isinstance(feature, dict):
                name = feature.get("name") or feature.get("feature")
            else:
                name = feature
            if name:
                names.append(str(name))
        return names

    async def select_images(self, paths: list[Path]) -> list[ImagePreview]:
        """Replace the selected images and build their previews.

        Previews appear in completion order. A preview failure is reported
        but leaves the selection in place; submit reads the files again.
        """
        self.form.images = list(paths)
        self.form.previews.clear()

        def add_preview(index: int, path: Path, data_uri: str) -> None:
            preview = ImagePreview(path=path, data_uri=data_uri)
            self.form.previews.append(preview)
            logger.info(f"Preview ready: {path.name} ({preview.size_bytes / 1024:.0f} KB)")

        try:
            await self.encoder.encode(self.form.images, on_encoded=add_preview)
        except ImageReadError as e:
            self.notifier.warning(str(e))
        else:
            if self.form.images:
                self.notifier.success("Images uploaded!")
        return list(self.form.previews)

    async def submit(self) -> SubmitResult:
        """Encode the selected images, then create the car in one request.

        Returns:
            Result carrying a user-facing message; failures never raise
        """
        if self.state is FormState.SUBMITTING:
            logger.warning("Ignoring submit while another one is in flight")
            return self._fail(SUBMIT_IN_PROGRESS_MESSAGE)

        if not self.form.images:
            return self._fail(NO_IMAGES_MESSAGE)

        self.state = FormState.SUBMITTING
        try:
            return await self._submit()
        finally:
            self.state = FormState.IDLE

    async def _submit(self) -> SubmitResult:
        batch = ImageBatch(self.form.images)
        try:
            await self.encoder.encode_batch(batch)
        except ImageReadError as e:
            logger.error(f"Error reading files: {e}")
            return self._fail(IMAGE_READ_MESSAGE)

        # Fields are read only now that encoding has finished.
        try:
            payload = CarDraftPayload.from_form(
                self.form.values, self.form.features, batch.consume()
            )
        except ValidationError as e:
            return self._fail(str(e))

        logger.info(
            f"Submitting {payload.make} {payload.model} with {len(payload.images)} image(s)"
        )
        try:
            car = await self.api_client.create_car(payload.to_api())
        except AuthError:
            self.auth.invalidate()
            return self._fail(SESSION_EXPIRED_MESSAGE)
        except NetworkError as e:
            logger.error(f"Error: {e}")
            return self._fail(SUBMIT_ERROR_MESSAGE)
        except AdminAPIError as e:
            logger.error(f"Failed to add car: {e}")
            return self._fail(e.server_message or SUBMIT_FAILED_MESSAGE)

        self.form.reset()
        self.notifier.success(SUBMIT_SUCCESS_MESSAGE)
        return SubmitResult(success=True, message=SUBMIT_SUCCESS_MESSAGE, car=car)

    def _fail(self, message: str) -> SubmitResult:
        self.notifier.error(message)
        return SubmitResult(success=False, message=message)
