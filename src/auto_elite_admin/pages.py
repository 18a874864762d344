"""Page controllers for the login page and the dashboard."""

import logging
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from auto_elite_admin.api_client import AutoEliteAPIClient
from auto_elite_admin.auth import AuthSessionMachine
from auto_elite_admin.exceptions import AdminAPIError
from auto_elite_admin.models import CarMake, DashboardStats, LoginResult
from auto_elite_admin.routing import Page, Router
from auto_elite_admin.ui import Notifier, format_currency

logger = logging.getLogger(__name__)

FALLBACK_STATS = DashboardStats(
    total_cars="124",
    total_views="8,567",
    pending_orders="12",
    total_revenue="$254,120",
)

FALLBACK_MAKES = [
    "Toyota",
    "Honda",
    "BMW",
    "Mercedes",
    "Audi",
    "Ford",
    "Chevrolet",
    "Other",
]


def open_page(router: Router, auth: AuthSessionMachine, page: Page, **params: Any) -> bool:
    """Resolve the page once and run its guard.

    Returns:
        True if the page may render; on False the router holds the redirect
    """
    router.start(page, **params)
    if page.is_protected:
        return auth.check_authentication()
    auth.check_login_status()
    return True


@dataclass
class LoginForm:
    username: str = ""
    password: str = ""
    remember_me: bool = False


class LoginPage:
    """Login form handling: submit, report, clear the password on failure."""

    def __init__(self, auth: AuthSessionMachine, notifier: Notifier) -> None:
        self.auth = auth
        self.notifier = notifier
        self.form = LoginForm()

    async def submit(self) -> LoginResult:
        result = await self.auth.login(
            self.form.username, self.form.password, self.form.remember_me
        )
        if result.success:
            self.notifier.success(result.message)
        else:
            self.notifier.error(result.message)
            self.form.password = ""
        return result


class DashboardPage:
    """Header, headline statistics and the list of car makes."""

    def __init__(
        self,
        api_client: AutoEliteAPIClient,
        auth: AuthSessionMachine,
        console: Console,
    ) -> None:
        self.api_client = api_client
        self.auth = auth
        self.console = console

    async def load_stats(self) -> DashboardStats:
        try:
            stats = await self.api_client.get_dashboard_stats()
        except AdminAPIError as e:
            logger.error(f"Failed to load dashboard stats: {e}")
            return FALLBACK_STATS

        return DashboardStats(
            total_cars=str(stats.get("totalCars") or "0"),
            total_views=str(stats.get("totalViews") or "0"),
            pending_orders=str(stats.get("pendingOrders") or "0"),
            total_revenue=format_currency(stats.get("totalRevenue") or 0),
        )

    async def load_makes(self) -> list[CarMake]:
        try:
            makes = await self.api_client.get_car_makes()
        except AdminAPIError as e:
            logger.error(f"Failed to load car makes: {e}")
            return [CarMake(id=name, name=name) for name in FALLBACK_MAKES]

        result = []
        for make in makes:
            if isinstance(make, dict):
                name = make.get("name")
                if name:
                    result.append(CarMake(id=str(make.get("id") or name), name=str(name)))
            elif make:
                result.append(CarMake(id=str(make), name=str(make)))
        return result

    async def render(self) -> None:
        profile = self.auth.display_profile()
        self.console.print(
            f"[bold]{escape(profile['name'])}[/bold] ({escape(profile['role'])})",
            highlight=False,
        )

        stats = await self.load_stats()
        table = Table(title="Dashboard")
        table.add_column("Total cars", justify="right")
        table.add_column("Total views", justify="right")
        table.add_column("Pending orders", justify="right")
        table.add_column("Total revenue", justify="right")
        table.add_row(
            stats.total_cars, stats.total_views, stats.pending_orders, stats.total_revenue
        )
        self.console.print(table)

        try:
            count = await self.api_client.get_car_count()
        except AdminAPIError as e:
            logger.warning(f"Could not fetch car count: {e}")
        else:
            self.console.print(f"Cars in inventory: {count}")

        makes = await self.load_makes()
        self.console.print("Car makes: " + ", ".join(make.name for make in makes))
