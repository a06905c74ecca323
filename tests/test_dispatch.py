import logging

import pytest
from pythonosc.osc_bundle_builder import IMMEDIATELY, OscBundleBuilder
from pythonosc.osc_message_builder import OscMessageBuilder

from osc_server.dispatch import DecodeError, decode_datagram, dispatch_packet, scale_channel
from yongnuo_controller import LightState, Modification


def message(address, *args, arg_type=None):
    builder = OscMessageBuilder(address=address)
    for arg in args:
        builder.add_arg(arg, arg_type=arg_type)
    return builder.build()


def bundle(*contents):
    builder = OscBundleBuilder(IMMEDIATELY)
    for content in contents:
        builder.add_content(content)
    return builder.build()


@pytest.mark.parametrize("address, channel, modification", [
    ("/red", "red", Modification.RGB),
    ("/green", "green", Modification.RGB),
    ("/blue", "blue", Modification.RGB),
])
@pytest.mark.parametrize("value", [0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0])
def test_rgb_channels(address, channel, modification, value):
    state = LightState()
    result = dispatch_packet(message(address, value, arg_type=OscMessageBuilder.ARG_TYPE_DOUBLE), state)
    assert result is modification
    assert getattr(state, channel) == round(value * 255)


@pytest.mark.parametrize("address, channel", [("/warm", "warm"), ("/cool", "cool")])
@pytest.mark.parametrize("value", [0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0])
def test_white_channels(address, channel, value):
    state = LightState()
    result = dispatch_packet(message(address, value, arg_type=OscMessageBuilder.ARG_TYPE_DOUBLE), state)
    assert result is Modification.WHITE
    assert getattr(state, channel) == round(value * 99)


def test_full_scale_reaches_channel_maximum():
    state = LightState()
    for address in ("/red", "/green", "/blue", "/warm", "/cool"):
        dispatch_packet(message(address, 1.0), state)
    assert state == LightState(red=255, green=255, blue=255, warm=99, cool=99)


def test_rounds_to_nearest():
    assert scale_channel(0.5, 255) == 128
    assert scale_channel(0.5, 99) == 50
    assert scale_channel(0.001, 255) == 0
    assert scale_channel(0.003, 255) == 1


@pytest.mark.parametrize("value, expected", [
    (2.0, 255),
    (-1.0, 0),
    (float("inf"), 255),
    (float("-inf"), 0),
    (float("nan"), 0),
])
def test_out_of_range_values_clamp(value, expected):
    assert scale_channel(value, 255) == expected


def test_int_argument_is_numeric():
    state = LightState()
    dispatch_packet(message("/green", 1), state)
    assert state.green == 255


@pytest.mark.parametrize("args", [(), ("bright",), (True,)])
def test_missing_or_non_numeric_argument_reads_zero(args):
    state = LightState(red=200)
    result = dispatch_packet(message("/red", *args), state)
    assert result is Modification.RGB
    assert state.red == 0


def test_only_first_argument_is_used():
    state = LightState()
    dispatch_packet(message("/blue", 1.0, 0.0), state)
    assert state.blue == 255


def test_unsupported_address_leaves_state_unchanged(caplog):
    state = LightState(red=1, green=2, blue=3, warm=4, cool=5)
    before = state.snapshot()

    with caplog.at_level(logging.WARNING):
        result = dispatch_packet(message("/white", 1.0), state)

    assert result is Modification.NONE
    assert state == before
    assert "Unsupported OSC address: /white" in caplog.text


def test_addresses_are_case_sensitive():
    state = LightState()
    assert dispatch_packet(message("/RED", 1.0), state) is Modification.NONE
    assert state == LightState()


def test_bundle_returns_last_members_modification():
    # Both members change the state, but only the last member's kind is
    # reported, so a caller sends the white frame and not the RGB one.
    state = LightState()
    result = dispatch_packet(bundle(message("/red", 1.0), message("/warm", 0.5)), state)

    assert state.red == 255
    assert state.warm == round(0.5 * 99)
    assert result is Modification.WHITE


def test_bundle_order_decides_modification():
    state = LightState()
    result = dispatch_packet(bundle(message("/warm", 0.5), message("/red", 1.0)), state)
    assert result is Modification.RGB
    assert (state.red, state.warm) == (255, 50)


def test_bundle_ending_with_unsupported_address_reports_none():
    state = LightState()
    result = dispatch_packet(bundle(message("/red", 1.0), message("/strobe", 1.0)), state)
    assert result is Modification.NONE
    assert state.red == 255


def test_nested_bundles_share_state():
    state = LightState()
    inner = bundle(message("/green", 1.0), message("/cool", 1.0))
    result = dispatch_packet(bundle(message("/red", 1.0), inner), state)
    assert state == LightState(red=255, green=255, cool=99)
    assert result is Modification.WHITE


def test_empty_bundle():
    state = LightState()
    assert dispatch_packet(bundle(), state) is Modification.NONE
    assert state == LightState()


def test_decode_message():
    packet = decode_datagram(message("/red", 0.5).dgram)
    assert packet.address == "/red"
    assert packet.params == [0.5]


def test_decode_bundle_and_dispatch():
    data = bundle(message("/red", 1.0), bundle(message("/blue", 0.5))).dgram
    state = LightState()
    assert dispatch_packet(decode_datagram(data), state) is Modification.RGB
    assert (state.red, state.blue) == (255, 128)


@pytest.mark.parametrize("data", [
    b"",
    b"hello world",
    b"#bundle\x00\x00\x00",
])
def test_decode_rejects_malformed_datagrams(data):
    with pytest.raises(DecodeError):
        decode_datagram(data)
