from __future__ import annotations

import json

import pytest

from plottybot.api import Client, DrawResult, Shape

DEVICES = {"PlotterA": "10.0.0.5", "PlotterB": "10.0.0.6"}


@pytest.fixture
def make_client(settings, make_session, transports, scheduler):
    clients: list[Client] = []

    def _make(*replies) -> Client:
        client = Client(
            settings=settings,
            session=make_session(*replies),
            transport_factory=transports,
            scheduler=scheduler,
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


def test_public_client_list_devices(make_client) -> None:
    client = make_client(DEVICES)
    assert [(d.index, d.name) for d in client.list_devices()] == [(1, "PlotterA"), (2, "PlotterB")]


def test_public_client_connect_requires_one_target(make_client) -> None:
    client = make_client()
    with pytest.raises(ValueError):
        client.connect()
    with pytest.raises(ValueError):
        client.connect(index=1, name="PlotterA")


def test_public_client_drives_plotter(make_client, transports) -> None:
    client = make_client(DEVICES)

    entry = client.connect(name="PlotterB")
    assert entry is not None
    transports.last.open()
    assert client.wait_until_connected(0.1)
    assert client.device_name == "PlotterB"
    assert client.status == "Connected"

    client.pen_down()
    client.go_to(0.0, 25.0)
    client.turn(90.0)
    client.move(-5.0)
    client.pen_up()
    assert client.stop()

    sent = [json.loads(message) for message in transports.last.sent]
    assert [m["type"] for m in sent] == ["penDown", "goToXY", "goToXY", "penUp", "stop"]
    assert (sent[1]["oldX"], sent[1]["oldY"]) == (0.0, 0.0)
    assert (sent[2]["oldX"], sent[2]["oldY"]) == (0.0, 25.0)


def test_public_client_draw_shape_offline(make_client) -> None:
    client = make_client()
    client.pen_down()

    result = client.draw_shape("hexagon", 30.0)

    assert isinstance(result, DrawResult)
    assert result.shape is Shape.HEXAGON
    assert result.instructions == 12
    assert result.end == pytest.approx((0.0, 0.0), abs=1e-9)
    assert sum(1 for stroke in client.canvas.strokes() if not stroke.is_point) == 6


def test_public_client_disconnect(make_client, transports) -> None:
    client = make_client(DEVICES)
    client.connect(index=1)
    transports.last.open()

    client.disconnect()

    assert client.status == "Not Connected"
    assert transports.last.close_requested
