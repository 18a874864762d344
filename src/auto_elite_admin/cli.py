"""Command-line interface for the Auto Elite admin client."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.auth import AuthSessionMachine
from auto_elite_admin.car_form import CarFormController
from auto_elite_admin.config import AdminConfig
from auto_elite_admin.pages import DashboardPage, LoginPage, open_page
from auto_elite_admin.routing import Page, Router
from auto_elite_admin.storage import JsonFileStorage, SessionStore, prune_session_files
from auto_elite_admin.ui import Notifier
from auto_elite_admin.utils import collect_images
from auto_elite_admin.views import CarDetailView, CarListView

app = typer.Typer(
    name="auto-elite-admin",
    help="Manage the Auto Elite vehicle inventory",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = "Please log in first: auto-elite-admin login USERNAME"


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


@dataclass
class AdminContext:
    """Collaborators shared by every command of one invocation."""

    config: AdminConfig
    store: SessionStore
    router: Router
    api_client: AutoEliteAPIClient
    auth: AuthSessionMachine
    notifier: Notifier


@asynccontextmanager
async def admin_context(config: AdminConfig) -> AsyncIterator[AdminContext]:
    prune_session_files(config.state_dir)
    store = SessionStore(
        local=JsonFileStorage(config.local_storage_path),
        session=JsonFileStorage(config.session_storage_path),
    )
    router = Router()
    async with AutoEliteAPIClient(config) as api_client:
        yield AdminContext(
            config=config,
            store=store,
            router=router,
            api_client=api_client,
            auth=AuthSessionMachine(store, api_client, router),
            notifier=Notifier(console),
        )


def run_command(
    config: AdminConfig, command: Callable[[AdminContext], Awaitable[int]]
) -> None:
    """Run an async command and exit with its code."""

    async def runner() -> int:
        try:
            async with admin_context(config) as ctx:
                return await command(ctx)
        except Exception as e:
            logger.error(f"Command failed: {e}", exc_info=True)
            return 1

    raise typer.Exit(asyncio.run(runner()))


def guard(ctx: AdminContext, page: Page, **params: object) -> bool:
    if open_page(ctx.router, ctx.auth, page, **params):
        return True
    ctx.notifier.error(LOGIN_REQUIRED_MESSAGE)
    return False


@app.callback()
def main(
    ctx: typer.Context,
    auth_url: str = typer.Option(
        None,
        "--auth-url",
        help="Authentication API base URL (or set AUTO_ELITE_AUTH_URL)",
    ),
    cars_url: str = typer.Option(
        None,
        "--cars-url",
        help="Car inventory API base URL (or set AUTO_ELITE_CARS_URL)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Manage the Auto Elite vehicle inventory from the command line."""
    setup_logging(verbose)
    ctx.obj = AdminConfig.from_env().with_overrides(auth_url, cars_url)


@app.command()
def login(
    ctx: typer.Context,
    username: str = typer.Argument(..., help="Account name"),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        prompt=True,
        hide_input=True,
        envvar="AUTO_ELITE_PASSWORD",
        help="Account password (prompted when omitted)",
    ),
    remember: bool = typer.Option(
        False,
        "--remember",
        "-r",
        help="Stay signed in across shells",
    ),
) -> None:
    """Sign in and store the session."""

    async def command(admin: AdminContext) -> int:
        open_page(admin.router, admin.auth, Page.LOGIN)
        if admin.auth.session.logged_in:
            admin.notifier.info(f"Already signed in as {admin.auth.session.username}.")

        page = LoginPage(admin.auth, admin.notifier)
        page.form.username = username
        page.form.password = password
        page.form.remember_me = remember
        result = await page.submit()
        return 0 if result.success else 1

    run_command(ctx.obj, command)


@app.command()
def logout(ctx: typer.Context) -> None:
    """Sign out and clear every stored session key."""

    async def command(admin: AdminContext) -> int:
        admin.auth.logout()
        admin.notifier.success("Logged out.")
        return 0

    run_command(ctx.obj, command)


@app.command()
def whoami(ctx: typer.Context) -> None:
    """Show the signed-in user."""

    async def command(admin: AdminContext) -> int:
        if not admin.auth.check_authentication():
            admin.notifier.error(LOGIN_REQUIRED_MESSAGE)
            return 1
        session = admin.auth.session
        profile = admin.auth.display_profile()
        console.print(f"User: {session.username or '-'}", markup=False)
        console.print(f"Name: {profile['name']}", markup=False)
        console.print(f"Role: {profile['role']}", markup=False)
        if profile["avatar"]:
            console.print(f"Avatar: {profile['avatar']}", markup=False)
        if session.persistence is not None:
            console.print(f"Stored in: {session.persistence.value} storage")
        return 0

    run_command(ctx.obj, command)


@app.command()
def dashboard(ctx: typer.Context) -> None:
    """Show headline statistics and car makes."""

    async def command(admin: AdminContext) -> int:
        if not guard(admin, Page.DASHBOARD):
            return 1
        await DashboardPage(admin.api_client, admin.auth, console).render()
        return 0

    run_command(ctx.obj, command)


@app.command()
def cars(ctx: typer.Context) -> None:
    """List every car in the inventory."""

    async def command(admin: AdminContext) -> int:
        if not guard(admin, Page.CAR_LIST):
            return 1
        view = CarListView(admin.api_client, admin.auth, admin.router, console)
        return 0 if await view.load() is not None else 1

    run_command(ctx.obj, command)


@app.command()
def car(
    ctx: typer.Context,
    car_id: str = typer.Argument(..., help="Car ID"),
    image: int = typer.Option(
        None,
        "--image",
        "-i",
        min=1,
        help="Highlight this thumbnail (1-based)",
    ),
) -> None:
    """Show one car with its images."""

    async def command(admin: AdminContext) -> int:
        if not guard(admin, Page.CAR_DETAIL, id=car_id):
            return 1
        view = CarDetailView(admin.api_client, admin.auth, admin.router, console)
        if await view.load(car_id) is None:
            return 1
        if image is not None:
            try:
                view.select_image(image - 1)
            except IndexError as e:
                admin.notifier.error(str(e))
                return 1
        return 0

    run_command(ctx.obj, command)


@app.command()
def delete(
    ctx: typer.Context,
    car_id: str = typer.Argument(..., help="Car ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation"),
) -> None:
    """Delete a car after confirmation."""

    async def command(admin: AdminContext) -> int:
        if not guard(admin, Page.CAR_LIST):
            return 1
        view = CarListView(admin.api_client, admin.auth, admin.router, console)
        deleted = await view.delete(car_id, confirm=lambda q: yes or typer.confirm(q))
        return 0 if deleted else 1

    run_command(ctx.obj, command)


@app.command()
def features(ctx: typer.Context) -> None:
    """List the feature options a car can have."""

    async def command(admin: AdminContext) -> int:
        if not guard(admin, Page.CAR_FORM):
            return 1
        controller = CarFormController(admin.api_client, admin.auth, admin.notifier)
        options = await controller.load_feature_options()
        for option in options:
            console.print(f"- {option}", markup=False)
        return 0

    run_command(ctx.obj, command)


@app.command("add-car")
def add_car(
    ctx: typer.Context,
    images: list[Path] = typer.Argument(
        ...,
        help="Image files or directories, in display order",
    ),
    make: str = typer.Option(..., "--make", help="Manufacturer"),
    model: str = typer.Option(..., "--model", help="Model name"),
    year: int = typer.Option(..., "--year", min=1886, help="Model year"),
    price: float = typer.Option(..., "--price", min=0, help="Asking price"),
    mileage: int = typer.Option(None, "--mileage", min=0, help="Odometer reading"),
    fuel_type: str = typer.Option(None, "--fuel-type", help="Fuel type"),
    transmission: str = typer.Option(None, "--transmission", help="Transmission"),
    color: str = typer.Option(None, "--color", help="Exterior color"),
    body_type: str = typer.Option(None, "--body-type", help="Body type"),
    status: str = typer.Option("Available", "--status", help="Listing status"),
    description: str = typer.Option(None, "--description", help="Free-text description"),
    feature: list[str] = typer.Option(
        None,
        "--feature",
        "-f",
        help="Feature to tick (repeatable)",
    ),
) -> None:
    """Create a car listing from form values and images."""

    async def command(admin: AdminContext) -> int:
        if not guard(admin, Page.CAR_FORM):
            return 1

        try:
            selection = collect_images(images)
        except FileNotFoundError as e:
            admin.notifier.error(str(e))
            return 1

        controller = CarFormController(admin.api_client, admin.auth, admin.notifier)
        form = controller.form
        values = {
            "make": make,
            "model": model,
            "year": year,
            "price": price,
            "mileage": mileage,
            "fuelType": fuel_type,
            "transmission": transmission,
            "color": color,
            "bodyType": body_type,
            "status": status,
            "description": description,
        }
        for name, value in values.items():
            if value is not None:
                form.set_field(name, value)
        for name in feature or []:
            form.set_feature(name)

        await controller.select_images(selection)
        result = await controller.submit()
        return 0 if result.success else 1

    run_command(ctx.obj, command)


if __name__ == "__main__":
    app()
