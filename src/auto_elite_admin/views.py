"""Car list and detail views rendered with rich."""

import logging
from collections.abc import Callable

from rich.console import Console
from rich.table import Table
from rich.text import Text

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.auth import AuthSessionMachine
from auto_elite_admin.exceptions import AdminAPIError, AuthError
from auto_elite_admin.models import Car, CarImageGallery, image_source
from auto_elite_admin.routing import Page, Router
from auto_elite_admin.ui import Notifier, format_currency, status_style

logger = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


def _describe_image(source: str) -> str:
    if source.startswith("data:"):
        mime = source[5:].partition(";")[0] or "image"
        return f"inline {mime}"
    return source


class _CarView:
    def __init__(
        self,
        api_client: AutoEliteAPIClient,
        auth: AuthSessionMachine,
        router: Router,
        console: Console,
    ) -> None:
        self.api_client = api_client
        self.auth = auth
        self.router = router
        self.console = console
        self.notifier = Notifier(console)

    def _report(self, error: AdminAPIError, context: str) -> None:
        if isinstance(error, AuthError):
            self.auth.invalidate()
            self.notifier.error(SESSION_EXPIRED_MESSAGE)
            return
        logger.error(f"Failed while {context}: {error}")
        self.notifier.error(f"Failed while {context}: {error}")


class CarListView(_CarView):
    """Inventory table with view, edit and delete actions per row."""

    async def load(self) -> list[Car] | None:
        """Fetch and render every car. Returns None on failure."""
        try:
            records = await self.api_client.get_cars()
        except AdminAPIError as e:
            self._report(e, "loading cars")
            return None

        cars = [Car.from_api(record) for record in records if isinstance(record, dict)]
        self.console.print(self.render(cars))

        try:
            count = await self.api_client.get_car_count()
        except AdminAPIError as e:
            logger.warning(f"Could not fetch car count: {e}")
        else:
            self.console.print(f"Total cars: {count}")
        return cars

    def render(self, cars: list[Car]) -> Table:
        table = Table(title="Inventory")
        table.add_column("ID", style="dim")
        table.add_column("Make")
        table.add_column("Model")
        table.add_column("Year")
        table.add_column("Price", justify="right")
        table.add_column("Mileage", justify="right")
        table.add_column("Status")

        for car in cars:
            table.add_row(
                car.id or "-",
                car.make,
                car.model,
                car.year,
                format_currency(car.price),
                car.mileage,
                Text(car.status, style=status_style(car.status)),
            )

        if not cars:
            table.caption = "No cars found"
        return table

    def view(self, car_id: str) -> None:
        self.router.navigate(Page.CAR_DETAIL, id=car_id)

    def edit(self, car_id: str) -> None:
        self.router.navigate(Page.CAR_EDIT, id=car_id)

    async def delete(self, car_id: str, confirm: Callable[[str], bool]) -> bool:
        """Delete a car after confirmation, then reload the table.

        Args:
            car_id: Car to delete
            confirm: Asked with a question; False aborts without a request

        Returns:
            True if the car was deleted
        """
        if not confirm(f"Are you sure you want to delete car {car_id}?"):
            logger.info(f"Deletion of car {car_id} cancelled")
            return False

        try:
            await self.api_client.delete_car(car_id)
        except AdminAPIError as e:
            self._report(e, f"deleting car {car_id}")
            return False

        self.notifier.success(f"Car {car_id} deleted.")
        await self.load()
        return True


class CarDetailView(_CarView):
    """Single car with its features and a thumbnail gallery."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.gallery = CarImageGallery()

    async def load(self, car_id: str) -> Car | None:
        try:
            record = await self.api_client.get_car(car_id)
        except AdminAPIError as e:
            self._report(e, f"loading car {car_id}")
            return None

        car = Car.from_api({"id": car_id, **record})

        images = list(car.images)
        try:
            fetched = await self.api_client.get_car_images(car_id)
        except AuthError as e:
            self._report(e, f"loading images of car {car_id}")
            return None
        except AdminAPIError as e:
            logger.warning(f"Could not fetch images of car {car_id}: {e}")
        else:
            if fetched:
                images = [image_source(item) for item in fetched]

        self.gallery = CarImageGallery(images=images)
        self.console.print(self.render(car))
        return car

    def select_image(self, index: int) -> str:
        """Make the thumbnail at ``index`` the active one."""
        source = self.gallery.select(index)
        self.console.print(self.render_gallery())
        return source

    def render(self, car: Car) -> Table:
        table = Table(title=f"{car.make} {car.model}", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("ID", car.id or "-")
        table.add_row("Year", car.year)
        table.add_row("Price", format_currency(car.price))
        table.add_row("Mileage", car.mileage)
        table.add_row("Fuel type", car.fuel_type)
        table.add_row("Transmission", car.transmission)
        table.add_row("Color", car.color)
        table.add_row("Body type", car.body_type)
        table.add_row("Status", Text(car.status, style=status_style(car.status)))
        table.add_row("Features", ", ".join(car.features) or "None listed")
        table.add_row("Description", car.description or "-")
        table.add_row("Images", self.render_gallery())
        return table

    def render_gallery(self) -> str:
        if not self.gallery.images:
            return "No images"
        lines = []
        for index, source in enumerate(self.gallery.images):
            marker = "*" if index == self.gallery.active_index else " "
            lines.append(f"{marker} {index + 1}. {_describe_image(source)}")
        return "\n".join(lines)
