from __future__ import annotations

import pytest
import requests

from plottybot.core.directory import EMPTY_LABEL, LOADING_LABEL, DirectoryClient
from plottybot.core.errors import SelectionError
from plottybot.core.model import NO_DEVICE, MenuItem

URL = "http://discovery.test/api/devices"
DEVICES = {"PlotterA": "10.0.0.5", "PlotterB": "10.0.0.6"}


def _client(make_session, *replies) -> DirectoryClient:
    return DirectoryClient(URL, session=make_session(*replies), timeout_s=2.5)


def test_refresh_replaces_entries(make_session) -> None:
    client = _client(make_session, DEVICES)

    assert client.refresh() is True
    assert client.directory.loaded
    assert list(client.directory.entries.items()) == [("PlotterA", "10.0.0.5"), ("PlotterB", "10.0.0.6")]
    assert client._session.requests == [(URL, 2.5)]


@pytest.mark.parametrize(
    "failure",
    [
        503,
        "<html>",
        ["PlotterA", "10.0.0.5"],
        {"PlotterA": 5},
        requests.ConnectionError("connection refused"),
    ],
)
def test_failed_refresh_keeps_previous_entries(make_session, failure) -> None:
    client = _client(make_session, DEVICES, failure)
    client.refresh()
    client.resolve_by_index(1)
    assert client.selected_device == "PlotterA"

    assert client.refresh() is False
    assert client.directory.entries == DEVICES
    assert client.directory.loaded
    assert client.selected_device == NO_DEVICE


def test_menu_before_load_shows_placeholder(make_session) -> None:
    client = _client(make_session)
    assert list(client.list_for_menu()) == [MenuItem(label=LOADING_LABEL, value="")]


def test_menu_when_loaded_but_empty(make_session) -> None:
    client = _client(make_session, {})
    client.refresh()
    assert list(client.list_for_menu()) == [MenuItem(label=EMPTY_LABEL, value="")]


def test_menu_lists_devices_in_order_and_restarts(make_session) -> None:
    client = _client(make_session, DEVICES)
    client.refresh()

    first = [item.label for item in client.list_for_menu()]
    second = [item.value for item in client.list_for_menu()]
    assert first == ["PlotterA", "PlotterB"]
    assert second == ["PlotterA", "PlotterB"]


def test_resolve_by_index_is_one_based(make_session) -> None:
    client = _client(make_session, DEVICES)
    client.refresh()

    entry = client.resolve_by_index(2)
    assert entry is not None
    assert (entry.index, entry.name, entry.address) == (2, "PlotterB", "10.0.0.6")
    assert client.selected_device == "PlotterB"


@pytest.mark.parametrize("index", [0, 3, -1, 1.5, "two", None])
def test_resolve_by_index_out_of_range_resets_selection(make_session, index) -> None:
    client = _client(make_session, DEVICES)
    client.refresh()
    client.resolve_by_index(1)

    assert client.resolve_by_index(index) is None
    assert client.selected_device == NO_DEVICE
    assert client.directory.entries == DEVICES


def test_resolve_by_index_accepts_numeric_strings(make_session) -> None:
    client = _client(make_session, DEVICES)
    client.refresh()

    entry = client.resolve_by_index("1")
    assert entry is not None
    assert entry.name == "PlotterA"


def test_resolve_by_name(make_session) -> None:
    client = _client(make_session, DEVICES)
    client.refresh()

    entry = client.resolve_by_name("PlotterB")
    assert entry is not None
    assert entry.address == "10.0.0.6"

    assert client.resolve_by_name("PlotterC") is None
    assert client.selected_device == NO_DEVICE


def test_lookup_raises_selection_error(make_session) -> None:
    client = _client(make_session)
    with pytest.raises(SelectionError):
        client.lookup_index(1)
    with pytest.raises(SelectionError):
        client.lookup_name("PlotterA")
