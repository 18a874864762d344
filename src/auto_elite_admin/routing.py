"""Explicit page routing for the admin client."""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class Page(enum.Enum):
    LOGIN = "login"
    DASHBOARD = "dashboard"
    CAR_FORM = "car-form"
    CAR_LIST = "car-list"
    CAR_DETAIL = "car-detail"
    CAR_EDIT = "car-edit"

    @property
    def is_protected(self) -> bool:
        return self is not Page.LOGIN


@dataclass
class Router:
    """Tracks the current page and every redirect issued from it.

    A page is resolved once with ``start``; controllers call ``navigate``
    to request a redirect, which the caller inspects afterwards.
    """

    current: Page | None = None
    params: dict[str, Any] = field(default_factory=dict)
    history: list[Page] = field(default_factory=list)

    def start(self, page: Page, **params: Any) -> Page:
        self.current = page
        self.params = dict(params)
        self.history.append(page)
        logger.debug(f"Opened page {page.value}")
        return page

    def navigate(self, page: Page, **params: Any) -> None:
        if params:
            query = "&".join(f"{k}={v}" for k, v in params.items())
            logger.info(f"Redirecting to {page.value}?{query}")
        else:
            logger.info(f"Redirecting to {page.value}")
        self.current = page
        self.params = dict(params)
        self.history.append(page)

    @property
    def redirected(self) -> bool:
        return len(self.history) > 1
