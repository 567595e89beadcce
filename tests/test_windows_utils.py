import uuid

import pytest

from mpvkit.windows_utils import (
    DEFAULT_PIPE_BUFFER,
    FILE_GENERIC_READ,
    FILE_GENERIC_WRITE,
    FILE_READ_ATTRIBUTES,
    FILE_WRITE_ATTRIBUTES,
    PIPE_ACCESS_DUPLEX,
    PIPE_ACCESS_INBOUND,
    PIPE_ACCESS_OUTBOUND,
    AnonPipeNamer,
    AnonPipeOptions,
    guid_to_str,
    hresult_name,
    hresult_to_str,
)


def test_guid_from_uuid_matches_braced_lower_form():
    text = "6F9619FF-8B86-D011-B42D-00C04FC964FF"
    assert guid_to_str(uuid.UUID(text)) == "{" + text.lower() + "}"


def test_guid_from_tuple():
    guid = (0x12345678, 0x9ABC, 0xDEF0, bytes(range(8)))
    assert guid_to_str(guid) == "{12345678-9abc-def0-0001-020304050607}"


def test_guid_tuple_and_uuid_agree():
    u = uuid.uuid4()
    fields = (u.fields[0], u.fields[1], u.fields[2], u.bytes[8:])
    assert guid_to_str(fields) == guid_to_str(u)
    assert len(guid_to_str(u)) == 38


def test_guid_bad_data4():
    with pytest.raises(ValueError):
        guid_to_str((1, 2, 3, b"\x00\x01"))


@pytest.mark.parametrize(
    "hr,name",
    [
        (0, "S_OK"),
        (1, "S_FALSE"),
        (0x80004005, "E_FAIL"),
        (0x80070057, "E_INVALIDARG"),
        (0x887A0005, "DXGI_ERROR_DEVICE_REMOVED"),
    ],
)
def test_hresult_name_known(hr, name):
    assert hresult_name(hr) == name


def test_hresult_name_accepts_signed_values():
    assert hresult_name(0x80004005 - 2**32) == hresult_name(0x80004005)


def test_hresult_name_unknown():
    assert hresult_name(0x12345) == "<Unknown>"


def test_hresult_to_str_falls_back_to_name():
    assert hresult_to_str(0x80004005, "") == "E_FAIL (0x80004005)"
    assert hresult_to_str(0x80004005) == hresult_to_str(0x80004005, None)


def test_hresult_to_str_strips_line_end():
    result = hresult_to_str(0x80004005, "Unspecified error\r\n")
    assert result.startswith("Unspecified error (")
    assert "\r" not in result and "\n" not in result


def test_hresult_to_str_long_message():
    result = hresult_to_str(1, "x" * 500)
    assert result.startswith("<Insufficient buffer size (243) for error message>")


def test_hresult_to_str_signed_hex():
    assert hresult_to_str(-1, "m").endswith("(0xffffffff)")


def test_pipe_names_are_unique_and_counted():
    namer = AnonPipeNamer()
    first = namer.next_name(42)
    second = namer.next_name(42)
    assert first == "\\\\.\\pipe\\mpv-anon-0000002a-00000000"
    assert second.endswith("-00000001")
    assert len(first) == 35


def test_pipe_buffer_defaults():
    opts = AnonPipeOptions(server_flags=PIPE_ACCESS_DUPLEX)
    assert opts.buffer_sizes() == (DEFAULT_PIPE_BUFFER, DEFAULT_PIPE_BUFFER)
    inbound = AnonPipeOptions(server_flags=PIPE_ACCESS_INBOUND, in_buf_size=17)
    assert inbound.buffer_sizes() == (0, 17)
    assert AnonPipeOptions().buffer_sizes() == (0, 0)


def test_pipe_client_access():
    inbound = AnonPipeOptions(server_flags=PIPE_ACCESS_INBOUND)
    outbound = AnonPipeOptions(server_flags=PIPE_ACCESS_OUTBOUND)
    duplex = AnonPipeOptions(server_flags=PIPE_ACCESS_DUPLEX)
    assert inbound.client_access() == FILE_GENERIC_WRITE | FILE_READ_ATTRIBUTES
    assert outbound.client_access() == FILE_GENERIC_READ | FILE_WRITE_ATTRIBUTES
    assert duplex.client_access() == inbound.client_access() | outbound.client_access()