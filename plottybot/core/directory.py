"""Device directory fetched from the discovery endpoint."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

import requests
from jsonschema import ValidationError

from plottybot.core.errors import DiscoveryError, SelectionError
from plottybot.core.model import NO_DEVICE, DeviceDirectory, DeviceEntry, MenuItem
from plottybot.core.settings import load_schema_validator

LOADING_LABEL = "Loading…"
EMPTY_LABEL = "No Devices Found"
LOGGER = logging.getLogger(__name__)


class DirectoryClient:
    """Caches the ``name -> address`` mapping served at ``/api/devices``.

    The cached directory is replaced wholesale by a successful ``refresh()``
    and left untouched by a failed one. ``selected_device`` holds the name of
    the last resolved device, or ``"None"``.
    """

    def __init__(
        self,
        url: str,
        *,
        session: requests.Session | None = None,
        timeout_s: float = 5.0,
    ) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.directory = DeviceDirectory()
        self.selected_device = NO_DEVICE
        self._session = session or requests.Session()
        self._validator = load_schema_validator("devices.schema.json")

    def refresh(self) -> bool:
        try:
            entries = self._fetch()
        except DiscoveryError as exc:
            LOGGER.error("Device discovery failed: %s", exc)
            self.selected_device = NO_DEVICE
            return False

        self.directory = DeviceDirectory(loaded=True, entries=entries)
        LOGGER.info("Discovered %d device(s) at %s", len(entries), self.url)
        return True

    def list_for_menu(self) -> Iterator[MenuItem]:
        """Yield menu items for the current directory snapshot.

        Each call starts a fresh iteration, so a menu provider can be
        re-evaluated whenever the host asks for it.
        """
        directory = self.directory
        if not directory.loaded:
            yield MenuItem(label=LOADING_LABEL, value="")
            return
        if not directory.entries:
            yield MenuItem(label=EMPTY_LABEL, value="")
            return
        for name in directory.entries:
            yield MenuItem(label=name, value=name)

    def entries(self) -> list[DeviceEntry]:
        return [
            DeviceEntry(index=i, name=name, address=address)
            for i, (name, address) in enumerate(self.directory.entries.items(), start=1)
        ]

    def resolve_by_index(self, index: Any) -> DeviceEntry | None:
        try:
            entry = self.lookup_index(index)
        except SelectionError as exc:
            LOGGER.error("%s", exc)
            self.selected_device = NO_DEVICE
            return None
        self.selected_device = entry.name
        return entry

    def resolve_by_name(self, name: str) -> DeviceEntry | None:
        try:
            entry = self.lookup_name(name)
        except SelectionError as exc:
            LOGGER.error("%s", exc)
            self.selected_device = NO_DEVICE
            return None
        self.selected_device = entry.name
        return entry

    def lookup_index(self, index: Any) -> DeviceEntry:
        entries = self.entries()
        try:
            number = float(index)
        except (TypeError, ValueError) as exc:
            raise SelectionError(f"Device index '{index}' is not a number") from exc
        if not number.is_integer() or not 1 <= number <= len(entries):
            raise SelectionError(f"Device index {index} out of range (1..{len(entries)})")
        return entries[int(number) - 1]

    def lookup_name(self, name: str) -> DeviceEntry:
        for entry in self.entries():
            if entry.name == name:
                return entry
        raise SelectionError(f"No device named '{name}' in directory")

    def _fetch(self) -> dict[str, str]:
        try:
            response = self._session.get(self.url, timeout=self.timeout_s)
        except requests.RequestException as exc:
            raise DiscoveryError(f"Could not reach {self.url}: {exc}") from exc

        if not response.ok:
            raise DiscoveryError(f"{self.url} answered HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise DiscoveryError(f"{self.url} did not return JSON: {exc}") from exc

        try:
            self._validator.validate(body)
        except ValidationError as exc:
            raise DiscoveryError(f"Unexpected response format from {self.url}: {exc.message}") from exc

        return dict(body)
