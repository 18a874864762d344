"""Data models for the Auto Elite admin client."""

import enum
from dataclasses import dataclass, field
from typing import Any

from auto_elite_admin.exceptions import ValidationError

DEFAULT_PROFILE_NAME = "Admin User"
DEFAULT_PROFILE_ROLE = "Administrator"

# Form fields in the order the car form presents them.
CAR_FIELDS = (
    "make",
    "model",
    "year",
    "price",
    "mileage",
    "fuelType",
    "transmission",
    "color",
    "bodyType",
    "status",
    "description",
)


class StorageTier(enum.Enum):
    """Which storage tier holds the session."""

    LOCAL = "local"
    SESSION = "session"


@dataclass(frozen=True)
class UserProfile:
    """Profile of the signed-in user as returned by the login endpoint."""

    name: str | None = None
    role: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "UserProfile":
        return cls(
            name=data.get("name"),
            role=data.get("role"),
            avatar_url=data.get("avatar") or data.get("avatarUrl"),
        )

    def to_api(self) -> dict[str, Any]:
        return {"name": self.name, "role": self.role, "avatar": self.avatar_url}

    @property
    def display_name(self) -> str:
        return self.name or DEFAULT_PROFILE_NAME

    @property
    def display_role(self) -> str:
        return self.role or DEFAULT_PROFILE_ROLE


@dataclass(frozen=True)
class Session:
    """Authenticated-user context, rebuilt from storage on each page load."""

    logged_in: bool = False
    username: str | None = None
    token: str | None = None
    profile: UserProfile | None = None
    persistence: StorageTier | None = None

    @property
    def is_authenticated(self) -> bool:
        """A token or a logged-in flag is enough to enter protected pages."""
        return bool(self.token) or self.logged_in


ANONYMOUS_SESSION = Session()


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a login attempt."""

    success: bool
    message: str
    session: Session | None = None

    def __post_init__(self) -> None:
        if self.success and self.session is None:
            raise ValueError("Successful login must carry a session")


@dataclass(frozen=True)
class Car:
    """Car record mapped defensively from API JSON."""

    id: str
    make: str = "Unknown"
    model: str = "Unknown"
    year: str = "N/A"
    price: float = 0.0
    mileage: str = "N/A"
    fuel_type: str = "N/A"
    transmission: str = "N/A"
    color: str = "N/A"
    body_type: str = "N/A"
    status: str = "Unknown"
    description: str = ""
    features: tuple[str, ...] = ()
    images: tuple[str, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Car":
        def pick(*keys: str) -> Any:
            for key in keys:
                value = data.get(key)
                if value not in (None, ""):
                    return value
            return None

        price = pick("price")
        try:
            price_value = float(price) if price is not None else 0.0
        except (TypeError, ValueError):
            price_value = 0.0

        features = pick("features") or []
        images = pick("images") or []
        return cls(
            id=str(pick("id", "carId", "_id") or ""),
            make=str(pick("make") or "Unknown"),
            model=str(pick("model") or "Unknown"),
            year=str(pick("year") or "N/A"),
            price=price_value,
            mileage=str(pick("mileage") or "N/A"),
            fuel_type=str(pick("fuelType", "fuel_type") or "N/A"),
            transmission=str(pick("transmission") or "N/A"),
            color=str(pick("color") or "N/A"),
            body_type=str(pick("bodyType", "body_type") or "N/A"),
            status=str(pick("status") or "Unknown"),
            description=str(pick("description") or ""),
            features=tuple(_feature_name(f) for f in features),
            images=tuple(image_source(i) for i in images),
        )


def _feature_name(feature: Any) -> str:
    if isinstance(feature, dict):
        return str(feature.get("name") or feature.get("feature") or "")
    return str(feature)


def image_source(image: Any) -> str:
    if isinstance(image, dict):
        return str(image.get("url") or image.get("imageUrl") or image.get("data") or "")
    return str(image)


def _coerce_number(name: str, value: Any, kind: type) -> int | float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class CarDraftPayload:
    """Assembled car-creation request body."""

    make: str
    model: str
    year: int | None
    price: float | None
    mileage: int | None
    fuel_type: str | None
    transmission: str | None
    color: str | None
    body_type: str | None
    status: str | None
    description: str | None
    features: frozenset[str]
    images: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.images:
            raise ValidationError("Please select at least one image.")

    @classmethod
    def from_form(
        cls, values: dict[str, Any], features: set[str], images: list[str]
    ) -> "CarDraftPayload":
        """Build a payload from raw form values, coercing numeric fields.

        Raises:
            ValidationError: If a numeric field is not a number or no image is given
        """
        return cls(
            make=values.get("make") or "",
            model=values.get("model") or "",
            year=_coerce_number("Year", values.get("year"), int),
            price=_coerce_number("Price", values.get("price"), float),
            mileage=_coerce_number("Mileage", values.get("mileage"), int),
            fuel_type=values.get("fuelType"),
            transmission=values.get("transmission"),
            color=values.get("color"),
            body_type=values.get("bodyType"),
            status=values.get("status"),
            description=values.get("description"),
            features=frozenset(features),
            images=tuple(images),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "price": self.price,
            "mileage": self.mileage,
            "fuelType": self.fuel_type,
            "transmission": self.transmission,
            "color": self.color,
            "bodyType": self.body_type,
            "status": self.status,
            "description": self.description,
            "features": sorted(self.features),
            "images": list(self.images),
        }


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of a car form submission."""

    success: bool
    message: str
    car: dict[str, Any] | None = None


@dataclass(frozen=True)
class DashboardStats:
    """Headline figures shown on the dashboard."""

    total_cars: str
    total_views: str
    pending_orders: str
    total_revenue: str


@dataclass(frozen=True)
class CarMake:
    id: str
    name: str


@dataclass
class CarImageGallery:
    """Thumbnails of a car with a single active selection."""

    images: list[str] = field(default_factory=list)
    active_index: int = 0

    def select(self, index: int) -> str:
        if not 0 <= index < len(self.images):
            raise IndexError(f"No image at position {index}")
        self.active_index = index
        return self.images[index]

    @property
    def active(self) -> str | None:
        if not self.images:
            return None
        return self.images[self.active_index]
