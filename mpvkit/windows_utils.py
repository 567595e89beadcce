"""GUID and HRESULT formatting, and naming and options for anonymous pipes."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from mpvkit.atomic import AtomicValue

GuidLike = Union[uuid.UUID, "tuple[int, int, int, bytes]"]

PIPE_ACCESS_INBOUND = 0x00000001
PIPE_ACCESS_OUTBOUND = 0x00000002
PIPE_ACCESS_DUPLEX = 0x00000003

FILE_READ_ATTRIBUTES = 0x00000080
FILE_WRITE_ATTRIBUTES = 0x00000100
FILE_GENERIC_READ = 0x00120089
FILE_GENERIC_WRITE = 0x00120116

DEFAULT_PIPE_BUFFER = 4096

# Sizes of the fixed buffers the messages are formatted into.
_MESSAGE_BUFFER = 243
_RESULT_BUFFER = 256
_PIPE_NAME_BUFFER = 36

_U32 = 0xFFFFFFFF


def _audclnt_err(n: int) -> int:
    return 0x88890000 | n


def _audclnt_ok(n: int) -> int:
    return 0x08890000 | n


def _d3d_err(n: int) -> int:
    return 0x88760000 | n


def _d3d_ok(n: int) -> int:
    return 0x08760000 | n


_HRESULT_NAMES: dict[int, str] = {
    0x00000000: "S_OK",
    0x00000001: "S_FALSE",
    0x80004005: "E_FAIL",
    0x8007000E: "E_OUTOFMEMORY",
    0x80004003: "E_POINTER",
    0x80070006: "E_HANDLE",
    0x80004001: "E_NOTIMPL",
    0x80070057: "E_INVALIDARG",
    0x80070490: "E_PROP_ID_UNSUPPORTED",
    0x80004002: "E_NOINTERFACE",
    0x80040155: "REGDB_E_IIDNOTREG",
    0x800401F0: "CO_E_NOTINITIALIZED",
    _audclnt_err(0x001): "AUDCLNT_E_NOT_INITIALIZED",
    _audclnt_err(0x002): "AUDCLNT_E_ALREADY_INITIALIZED",
    _audclnt_err(0x003): "AUDCLNT_E_WRONG_ENDPOINT_TYPE",
    _audclnt_err(0x004): "AUDCLNT_E_DEVICE_INVALIDATED",
    _audclnt_err(0x005): "AUDCLNT_E_NOT_STOPPED",
    _audclnt_err(0x006): "AUDCLNT_E_BUFFER_TOO_LARGE",
    _audclnt_err(0x007): "AUDCLNT_E_OUT_OF_ORDER",
    _audclnt_err(0x008): "AUDCLNT_E_UNSUPPORTED_FORMAT",
    _audclnt_err(0x009): "AUDCLNT_E_INVALID_SIZE",
    _audclnt_err(0x00A): "AUDCLNT_E_DEVICE_IN_USE",
    _audclnt_err(0x00B): "AUDCLNT_E_BUFFER_OPERATION_PENDING",
    _audclnt_err(0x00C): "AUDCLNT_E_THREAD_NOT_REGISTERED",
    _audclnt_err(0x00E): "AUDCLNT_E_EXCLUSIVE_MODE_NOT_ALLOWED",
    _audclnt_err(0x00F): "AUDCLNT_E_ENDPOINT_CREATE_FAILED",
    _audclnt_err(0x010): "AUDCLNT_E_SERVICE_NOT_RUNNING",
    _audclnt_err(0x011): "AUDCLNT_E_EVENTHANDLE_NOT_EXPECTED",
    _audclnt_err(0x012): "AUDCLNT_E_EXCLUSIVE_MODE_ONLY",
    _audclnt_err(0x013): "AUDCLNT_E_BUFDURATION_PERIOD_NOT_EQUAL",
    _audclnt_err(0x014): "AUDCLNT_E_EVENTHANDLE_NOT_SET",
    _audclnt_err(0x015): "AUDCLNT_E_INCORRECT_BUFFER_SIZE",
    _audclnt_err(0x016): "AUDCLNT_E_BUFFER_SIZE_ERROR",
    _audclnt_err(0x017): "AUDCLNT_E_CPUUSAGE_EXCEEDED",
    _audclnt_err(0x018): "AUDCLNT_E_BUFFER_ERROR",
    _audclnt_err(0x019): "AUDCLNT_E_BUFFER_SIZE_NOT_ALIGNED",
    _audclnt_err(0x020): "AUDCLNT_E_INVALID_DEVICE_PERIOD",
    _audclnt_err(0x021): "AUDCLNT_E_INVALID_STREAM_FLAG",
    _audclnt_err(0x022): "AUDCLNT_E_ENDPOINT_OFFLOAD_NOT_CAPABLE",
    _audclnt_err(0x026): "AUDCLNT_E_RESOURCES_INVALIDATED",
    _audclnt_ok(0x001): "AUDCLNT_S_BUFFER_EMPTY",
    _audclnt_ok(0x002): "AUDCLNT_S_THREAD_ALREADY_REGISTERED",
    _audclnt_ok(0x003): "AUDCLNT_S_POSITION_STALLED",
    _d3d_err(2072): "D3DERR_WRONGTEXTUREFORMAT",
    _d3d_err(2073): "D3DERR_UNSUPPORTEDCOLOROPERATION",
    _d3d_err(2074): "D3DERR_UNSUPPORTEDCOLORARG",
    _d3d_err(2075): "D3DERR_UNSUPPORTEDALPHAOPERATION",
    _d3d_err(2076): "D3DERR_UNSUPPORTEDALPHAARG",
    _d3d_err(2077): "D3DERR_TOOMANYOPERATIONS",
    _d3d_err(2078): "D3DERR_CONFLICTINGTEXTUREFILTER",
    _d3d_err(2079): "D3DERR_UNSUPPORTEDFACTORVALUE",
    _d3d_err(2081): "D3DERR_CONFLICTINGRENDERSTATE",
    _d3d_err(2082): "D3DERR_UNSUPPORTEDTEXTUREFILTER",
    _d3d_err(2086): "D3DERR_CONFLICTINGTEXTUREPALETTE",
    _d3d_err(2087): "D3DERR_DRIVERINTERNALERROR",
    _d3d_err(2150): "D3DERR_NOTFOUND",
    _d3d_err(2151): "D3DERR_MOREDATA",
    _d3d_err(2152): "D3DERR_DEVICELOST",
    _d3d_err(2153): "D3DERR_DEVICENOTRESET",
    _d3d_err(2154): "D3DERR_NOTAVAILABLE",
    _d3d_err(380): "D3DERR_OUTOFVIDEOMEMORY",
    _d3d_err(2155): "D3DERR_INVALIDDEVICE",
    _d3d_err(2156): "D3DERR_INVALIDCALL",
    _d3d_err(2157): "D3DERR_DRIVERINVALIDCALL",
    _d3d_err(540): "D3DERR_WASSTILLDRAWING",
    _d3d_ok(2159): "D3DOK_NOAUTOGEN",
    _d3d_err(2160): "D3DERR_DEVICEREMOVED",
    _d3d_err(2164): "D3DERR_DEVICEHUNG",
    _d3d_ok(2165): "S_NOT_RESIDENT",
    _d3d_ok(2166): "S_RESIDENT_IN_SHARED_MEMORY",
    _d3d_ok(2167): "S_PRESENT_MODE_CHANGED",
    _d3d_ok(2168): "S_PRESENT_OCCLUDED",
    _d3d_err(2171): "D3DERR_UNSUPPORTEDOVERLAY",
    _d3d_err(2172): "D3DERR_UNSUPPORTEDOVERLAYFORMAT",
    _d3d_err(2173): "D3DERR_CANNOTPROTECTCONTENT",
    _d3d_err(2174): "D3DERR_UNSUPPORTEDCRYPTO",
    _d3d_err(2180): "D3DERR_PRESENT_STATISTICS_DISJOINT",
    0x887A0006: "DXGI_ERROR_DEVICE_HUNG",
    0x887A0005: "DXGI_ERROR_DEVICE_REMOVED",
    0x887A0007: "DXGI_ERROR_DEVICE_RESET",
    0x887A0020: "DXGI_ERROR_DRIVER_INTERNAL_ERROR",
    0x887A0001: "DXGI_ERROR_INVALID_CALL",
    0x887A000A: "DXGI_ERROR_WAS_STILL_DRAWING",
    0x087A0001: "DXGI_STATUS_OCCLUDED",
}


def guid_to_str(guid: GuidLike) -> str:
    """Format a GUID as "{xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx}" in lower case.

    guid is a uuid.UUID or a (data1, data2, data3, data4) tuple where data4
    holds 8 bytes.
    """
    if isinstance(guid, uuid.UUID):
        data1, data2, data3 = guid.fields[:3]
        data4 = guid.bytes[8:]
    else:
        data1, data2, data3, data4 = guid
        data4 = bytes(data4)
    if len(data4) != 8:
        raise ValueError(f"GUID data4 must hold 8 bytes, not {len(data4)}")
    head = f"{data1 & _U32:08x}-{data2 & 0xFFFF:04x}-{data3 & 0xFFFF:04x}"
    return "{" + head + "-" + data4[:2].hex() + "-" + data4[2:].hex() + "}"


def hresult_name(hr: int) -> str:
    """Return the symbolic name of a known HRESULT, else "<Unknown>"."""
    return _HRESULT_NAMES.get(hr & _U32, "<Unknown>")


def _clean_message(message: str) -> str:
    if len(message) + 1 > _MESSAGE_BUFFER:
        return f"<Insufficient buffer size ({_MESSAGE_BUFFER}) for error message>"
    cleaned = message
    if cleaned.endswith("\n"):
        cleaned = cleaned[:-1]
    if len(message) > 1 and message[-2] == "\r":
        cleaned = message[:-2]
    return cleaned


def hresult_to_str(hr: int, message: Optional[str] = None) -> str:
    """Describe hr as "<text> (0x<hex>)".

    message is the system's text for hr; when it is empty or None the symbolic
    name is used instead.
    """
    text = _clean_message(message) if message else ""
    if not text:
        text = hresult_name(hr)
    return f"{text} (0x{hr & _U32:x})"[: _RESULT_BUFFER - 1]


class AnonPipeNamer:
    """Generates unique names for anonymous pipes of one process."""

    def __init__(self) -> None:
        self._counter: AtomicValue[int] = AtomicValue(0)

    def next_name(self, pid: int) -> str:
        """Return the next unused pipe name for process pid."""
        ident = self._counter.fetch_add(1)
        name = f"\\\\.\\pipe\\mpv-anon-{pid & _U32:08x}-{ident & _U32:08x}"
        return name[: _PIPE_NAME_BUFFER - 1]


@dataclass
class AnonPipeOptions:
    """How the server and client ends of an anonymous pipe are opened."""

    server_flags: int = 0
    server_mode: int = 0
    server_inheritable: bool = False
    out_buf_size: int = 0
    in_buf_size: int = 0
    client_flags: int = 0
    client_mode: int = 0
    client_inheritable: bool = False

    def buffer_sizes(self) -> tuple[int, int]:
        """Return (out, in) buffer sizes; unset sizes default for the used directions."""
        out_buffer = self.out_buf_size
        in_buffer = self.in_buf_size
        if self.server_flags & PIPE_ACCESS_INBOUND and not in_buffer:
            in_buffer = DEFAULT_PIPE_BUFFER
        if self.server_flags & PIPE_ACCESS_OUTBOUND and not out_buffer:
            out_buffer = DEFAULT_PIPE_BUFFER
        return out_buffer, in_buffer

    def client_access(self) -> int:
        """Return the access rights the client end is opened with."""
        access = 0
        if self.server_flags & PIPE_ACCESS_INBOUND:
            access |= FILE_GENERIC_WRITE | FILE_READ_ATTRIBUTES
        if self.server_flags & PIPE_ACCESS_OUTBOUND:
            access |= FILE_GENERIC_READ | FILE_WRITE_ATTRIBUTES
        return access