"""
Typed values accepted on the command line.

Every public name here is a converter in the sense of the argument layer:
called with the raw text it returns the typed value, or raises ValueError
with a short lowercase reason. Only the shape of the text is checked; nothing
is looked up in a wallet or on a ledger.

Converters
- Address: bech32m encoded address (checksum verified).
- WalletAddress, WalletKeypair, WalletPublicKey: wallet alias or literal,
  kept as text so handlers can resolve them against the wallet.
- PublicKey: hexadecimal encoded public key.
- ChainId, ChainIdPrefix: chain identifiers.
- StorageKey: '/' separated storage key.
- Amount: token amount with up to six decimal places.
- Epoch, parse_u64, parse_decimal, parse_timeout: numeric values.
- ProposalVote, SchemeType, TendermintMode: closed enumerations.
- TendermintAddress, SocketAddress: network endpoints.
"""
import datetime
import decimal
import enum
import ipaddress
import re
from dataclasses import dataclass

U64_MAX = 2 ** 64 - 1

_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
_GENERATOR = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
_BECH32M = 0x2BC830A3


def _polymod(values):
    checksum = 1
    for value in values:
        top = checksum >> 25
        checksum = (checksum & 0x1FFFFFF) << 5 ^ value
        for index, generator in enumerate(_GENERATOR):
            if (top >> index) & 1:
                checksum ^= generator
    return checksum


def _expand(hrp):
    return [ord(char) >> 5 for char in hrp] + [0] + [ord(char) & 31 for char in hrp]


class Address(str):
    """
    A bech32m encoded address, e.g. "atest1v4ehgw36...".

    Mixed case is rejected; upper case input is normalized to lower case.
    """

    def __new__(cls, text):
        if not isinstance(text, str):
            raise TypeError("address must be a string")
        if text != text.lower() and text != text.upper():
            raise ValueError("mixed case is not allowed in a bech32m address")
        text = text.lower()
        hrp, separator, data = text.rpartition("1")
        if not separator or not hrp:
            raise ValueError("missing human-readable part")
        if any(not 33 <= ord(char) <= 126 for char in hrp):
            raise ValueError("invalid character in human-readable part")
        if len(data) < 6:
            raise ValueError("data part is too short")
        if invalid := set(data) - set(_CHARSET):
            raise ValueError("invalid character %r in data part" % min(invalid))
        if _polymod(_expand(hrp) + [_CHARSET.index(char) for char in data]) != _BECH32M:
            raise ValueError("invalid bech32m checksum")
        return super().__new__(cls, text)

    @property
    def hrp(self):
        return self.rpartition("1")[0]


class _Text(str):
    # non-empty text, surrounding whitespace removed
    __label__ = "value"

    def __new__(cls, text):
        if not isinstance(text, str):
            raise TypeError(f"{cls.__label__} must be a string")
        if not (text := text.strip()):
            raise ValueError(f"{cls.__label__} cannot be empty")
        return super().__new__(cls, text)


class WalletAddress(_Text):
    """An address or the alias of an address known to the wallet."""
    __label__ = "address or alias"


class WalletKeypair(_Text):
    """A public key, public key hash or alias of a keypair stored in the wallet."""
    __label__ = "keypair or alias"


class WalletPublicKey(_Text):
    """A public key or the alias of a public key stored in the wallet."""
    __label__ = "public key or alias"


class PublicKey(str):
    """Hexadecimal encoding of a public key (scheme prefix included)."""

    def __new__(cls, text):
        if not isinstance(text, str):
            raise TypeError("public key must be a string")
        if not re.fullmatch(r"(?:[0-9a-fA-F]{2})+", text):
            raise ValueError("public key must be a non-empty, even-length hexadecimal string")
        return super().__new__(cls, text.lower())


class ChainId(str):
    """A chain identifier: up to 50 alphanumeric, '.', '-' or '_' characters."""
    __limit__ = 50

    def __new__(cls, text):
        if not isinstance(text, str):
            raise TypeError("chain id must be a string")
        if not text:
            raise ValueError("chain id cannot be empty")
        if len(text) > cls.__limit__:
            raise ValueError("at most %d characters are allowed, got %d" % (cls.__limit__, len(text)))
        if not re.fullmatch(r"[A-Za-z0-9._-]+", text):
            raise ValueError("only alphanumeric, '.', '-' or '_' characters are allowed")
        return super().__new__(cls, text)


class ChainIdPrefix(ChainId):
    """The prefix of a chain identifier: up to 19 of the same characters."""
    __limit__ = 19


class StorageKey(str):
    """A storage key made of '/' separated, non-empty segments."""

    def __new__(cls, text):
        if not isinstance(text, str):
            raise TypeError("storage key must be a string")
        segments = text.removeprefix("/").split("/")
        if not all(segments):
            raise ValueError("storage key segments cannot be empty")
        return super().__new__(cls, text)

    @property
    def segments(self):
        return tuple(self.removeprefix("/").split("/"))


@dataclass(frozen=True, order=True)
class Amount:
    """
    A token amount, stored in micro units (six decimal places).
    """
    micro: int = 0

    SCALE = 10 ** 6

    def __post_init__(self):
        if not isinstance(self.micro, int) or isinstance(self.micro, bool):
            raise TypeError("amount must be an integer number of micro units")
        if not 0 <= self.micro <= U64_MAX:
            raise ValueError("amount is out of range")

    @classmethod
    def parse(cls, text):
        if not re.fullmatch(r"\d+(\.\d+)?|\.\d+", text := text.strip()):
            raise ValueError("amount must be a non-negative decimal number")
        # exact for inputs of any length
        whole, _, fraction = text.partition(".")
        if len(fraction := fraction.rstrip("0")) > 6:
            raise ValueError("amount cannot have more than six decimal places")
        micro = int(whole or "0") * cls.SCALE + int(fraction.ljust(6, "0"))
        if micro > U64_MAX:
            raise ValueError("amount is out of range")
        return cls(micro)

    def __str__(self):
        whole, fraction = divmod(self.micro, self.SCALE)
        if not fraction:
            return str(whole)
        return f"{whole}.{fraction:06d}".rstrip("0")


class Epoch(int):
    """A non-negative epoch number."""

    def __new__(cls, text):
        return super().__new__(cls, parse_u64(text))


def parse_u64(text, /):
    """
    Parse an unsigned 64-bit integer written in decimal digits only.
    """
    if isinstance(text, int) and not isinstance(text, bool):
        value = text
    elif isinstance(text, str) and re.fullmatch(r"\d+", text.strip()):
        value = int(text.strip())
    else:
        raise ValueError("expected an unsigned integer")
    if not 0 <= value <= U64_MAX:
        raise ValueError("integer is out of the unsigned 64-bit range")
    return value


def parse_decimal(text, /):
    """
    Parse a finite decimal number (rates, percentages).
    """
    try:
        value = decimal.Decimal(text.strip())
    except decimal.InvalidOperation:
        raise ValueError("expected a decimal number") from None
    if not value.is_finite():
        raise ValueError("decimal number must be finite")
    return value


_DURATION = re.compile(r"(?P<value>\d+)\s*(?P<unit>ms|s|m|h)")


def parse_timeout(text, /):
    """
    Parse a duration such as "1s", "1000ms", "2m" or "1m 30s".
    """
    text = text.strip()
    if not text or _DURATION.sub("", text).strip():
        raise ValueError("expected a duration such as '1s' or '1000ms'")
    units = {"ms": "milliseconds", "s": "seconds", "m": "minutes", "h": "hours"}
    total = datetime.timedelta()
    for match in _DURATION.finditer(text):
        total += datetime.timedelta(**{units[match["unit"]]: int(match["value"])})
    return total


class _Choice(enum.Enum):
    # parsed by value: ProposalVote("yay")

    def __str__(self):
        return self.value


class ProposalVote(_Choice):
    YAY = "yay"
    NAY = "nay"


class SchemeType(_Choice):
    ED25519 = "ed25519"
    SECP256K1 = "secp256k1"


class TendermintMode(_Choice):
    VALIDATOR = "validator"
    FULL = "full"
    SEED = "seed"

    @classmethod
    def _missing_(cls, value):
        # "Validator", "FULL"
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


@dataclass(frozen=True)
class TendermintAddress:
    """
    Address of a ledger node as "{scheme}://{host}:{port}".

    The scheme defaults to tcp; "unix://{path}" addresses a local socket.
    A tcp address may carry a peer id: "tcp://{id}@{host}:{port}".
    """
    scheme: str
    host: str | None = None
    port: int | None = None
    peer: str | None = None
    path: str | None = None

    @classmethod
    def parse(cls, text):
        scheme, separator, rest = text.strip().rpartition("://")
        scheme = scheme if separator else "tcp"
        match scheme:
            case "unix":
                if not rest:
                    raise ValueError("unix address must have a path")
                return cls("unix", path=rest)
            case "tcp":
                match = re.fullmatch(
                    r"(?:(?P<peer>[0-9a-fA-F]{40})@)?(?P<host>\[[0-9a-fA-F:.]+\]|[^\s:@/\[\]]+):(?P<port>\d{1,5})",
                    rest
                )
                if not match:
                    raise ValueError("expected {host}:{port}, optionally prefixed by tcp://")
                if (port := int(match["port"])) > 65535:
                    raise ValueError("port %d is out of range" % port)
                return cls("tcp", match["host"], port, match["peer"] and match["peer"].lower())
            case _:
                raise ValueError("unsupported scheme %r, expected tcp or unix" % scheme)

    def __str__(self):
        if self.scheme == "unix":
            return f"unix://{self.path}"
        return f"tcp://{f"{self.peer}@" if self.peer else ""}{self.host}:{self.port}"


@dataclass(frozen=True)
class SocketAddress:
    """
    An IP socket address: "1.2.3.4:26656" or "[::1]:26656".
    """
    ip: ipaddress.IPv4Address | ipaddress.IPv6Address
    port: int

    @classmethod
    def parse(cls, text):
        match = re.fullmatch(r"\[(?P<v6>[^\]]+)\]:(?P<v6port>\d{1,5})|(?P<v4>[0-9.]+):(?P<v4port>\d{1,5})", text.strip())
        if not match:
            raise ValueError("expected {ip}:{port}")
        if match["v6"]:
            ip, port = ipaddress.IPv6Address(match["v6"]), int(match["v6port"])
        else:
            ip, port = ipaddress.IPv4Address(match["v4"]), int(match["v4port"])
        if port > 65535:
            raise ValueError("port %d is out of range" % port)
        return cls(ip, port)

    def __str__(self):
        return f"[{self.ip}]:{self.port}" if self.ip.version == 6 else f"{self.ip}:{self.port}"


__all__ = (
    "Address",
    "WalletAddress",
    "WalletKeypair",
    "WalletPublicKey",
    "PublicKey",
    "ChainId",
    "ChainIdPrefix",
    "StorageKey",
    "Amount",
    "Epoch",
    "ProposalVote",
    "SchemeType",
    "TendermintMode",
    "TendermintAddress",
    "SocketAddress",
    "parse_u64",
    "parse_decimal",
    "parse_timeout",
    "U64_MAX",
)
