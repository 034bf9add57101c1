"""
Anoma CLI runtime context.

The context bundles what context-dependent commands need besides their
arguments: the chain configuration and the wallet, both anchored at the base
directory. It is built on demand, at most once per invocation, by
Context.new(global_args).

Layout under the base directory
- global-config.toml: default_chain_id = "<chain id>"
- <chain id>/config.toml: chain configuration (wasm_dir, native_token, ...)
- <chain id>/wallet.toml: [addresses] alias = "<address>", [keys] alias = ...

Missing chain files yield defaults (an empty wallet); unreadable or corrupt
ones fail with ContextError.
"""
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .faults import ContextError, FaultCode
from .values import ChainId, TendermintMode, WalletAddress

logger = logging.getLogger(__name__)

GLOBAL_CONFIG_FILE = "global-config.toml"
CONFIG_FILE = "config.toml"
WALLET_FILE = "wallet.toml"
NATIVE_TOKEN = "NAM"


def _fail(message, path, **options):
    return ContextError(
        message,
        title="context failure",
        code=FaultCode.CONTEXT_FAILURE,
        path=str(path),
        **options
    )


def _load(path):
    """
    Read a TOML document, None when the file does not exist.
    """
    try:
        with open(path, "rb") as file:
            document = tomllib.load(file)
    except FileNotFoundError:
        logger.debug("%s not found", path)
        return None
    except tomllib.TOMLDecodeError as error:
        raise _fail(f"failed to parse {path}: {error}", path) from error
    except OSError as error:
        raise _fail(f"failed to read {path}: {error.strerror or error}", path) from error
    logger.debug("loaded %s", path)
    return document


def _table(document, name, path):
    table = document.get(name, {})
    if not isinstance(table, dict):
        raise _fail(f"failed to parse {path}: [{name}] must be a table", path)
    return table


def _by_alias(table, name, path):
    # aliases are case-insensitive
    entries = {}
    for alias, value in table.items():
        if alias.lower() in entries:
            raise _fail(f"failed to parse {path}: alias {alias!r} appears twice in [{name}]", path)
        entries[alias.lower()] = value
    return entries


@dataclass(frozen=True)
class Config:
    """
    The chain configuration as loaded from <base>/<chain>/config.toml.
    """
    chain_id: ChainId
    base_dir: Path
    wasm_dir: Path
    mode: TendermintMode = TendermintMode.VALIDATOR
    native_token: str | None = None
    raw: MappingProxyType = field(default_factory=lambda: MappingProxyType({}), repr=False)

    @classmethod
    def load(cls, base_dir, chain_id, /, *, wasm_dir=None, mode=None):
        path = Path(base_dir) / chain_id / CONFIG_FILE
        document = _load(path) or {}

        try:
            configured = TendermintMode(document["mode"]) if "mode" in document else TendermintMode.VALIDATOR
        except ValueError:
            raise _fail(f"failed to parse {path}: unknown mode {document["mode"]!r}", path) from None

        if (token := document.get("native_token")) is not None and not isinstance(token, str):
            raise _fail(f"failed to parse {path}: native_token must be a string", path)
        if (configured_wasm := document.get("wasm_dir")) is not None and not isinstance(configured_wasm, str):
            raise _fail(f"failed to parse {path}: wasm_dir must be a string", path)

        return cls(
            chain_id=chain_id,
            base_dir=Path(base_dir),
            wasm_dir=Path(wasm_dir or configured_wasm or Path(base_dir) / chain_id / "wasm"),
            mode=mode or configured,
            native_token=token,
            raw=MappingProxyType(document),
        )


@dataclass(frozen=True)
class Wallet:
    """
    Known addresses and keys by alias. Aliases are case-insensitive.

    Keys are kept as stored (public key, and the encrypted or raw secret
    key); nothing is decrypted here.
    """
    path: Path
    addresses: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    keys: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def load(cls, base_dir, chain_id, /):
        path = Path(base_dir) / chain_id / WALLET_FILE
        if (document := _load(path)) is None:
            return cls(path)

        addresses = _table(document, "addresses", path)
        if not all(isinstance(value, str) for value in addresses.values()):
            raise _fail(f"failed to parse {path}: addresses must be strings", path)
        keys = _table(document, "keys", path)

        return cls(
            path,
            MappingProxyType(_by_alias(addresses, "addresses", path)),
            MappingProxyType(_by_alias(keys, "keys", path)),
        )

    def find_address(self, alias, /):
        return self.addresses.get(alias.lower())

    def find_alias(self, address, /):
        for alias, known in self.addresses.items():
            if known == address:
                return alias
        return None

    def find_key(self, alias, /):
        return self.keys.get(alias.lower())


@dataclass(frozen=True)
class Context:
    """
    What context-dependent commands run against.

    Attributes
    - global_args: the parsed global arguments.
    - config: the chain configuration.
    - wallet: the chain wallet.
    """
    global_args: object
    config: Config
    wallet: Wallet

    @classmethod
    def new(cls, global_args, /):
        """
        Load the configuration and the wallet for the selected chain.

        The chain comes from --chain-id, else from default_chain_id in the
        global configuration.

        Raises
        - ContextError: no chain selected, or a file is unreadable or corrupt.
        """
        base_dir = Path(global_args.base_dir)
        if (chain_id := global_args.chain_id) is None:
            path = base_dir / GLOBAL_CONFIG_FILE
            document = _load(path)
            if not document or "default_chain_id" not in document:
                raise _fail(
                    "no chain ID given: pass --chain-id or join a network to create %s" % path,
                    path,
                    hint="run 'anomac utils join-network --chain-id <CHAIN_ID>'"
                )
            try:
                chain_id = ChainId(document["default_chain_id"])
            except (TypeError, ValueError) as error:
                raise _fail(f"failed to parse {path}: invalid default_chain_id: {error}", path) from error

        logger.info("loading context for chain %s from %s", chain_id, base_dir)
        return cls(
            global_args,
            Config.load(base_dir, chain_id, wasm_dir=global_args.wasm_dir, mode=global_args.mode),
            Wallet.load(base_dir, chain_id),
        )

    @property
    def chain_id(self):
        return self.config.chain_id

    @property
    def base_dir(self):
        return self.config.base_dir

    @property
    def native_token(self):
        """
        The token fees are paid with: the wallet's "nam" address, else the
        configured native token, else the NAM alias.
        """
        if address := self.wallet.find_address(NATIVE_TOKEN):
            return WalletAddress(address)
        return WalletAddress(self.config.native_token or NATIVE_TOKEN)

    def lookup_address(self, value, /):
        """
        Resolve an alias to its address; anything else is returned as given.
        """
        return self.wallet.find_address(value) or value


__all__ = (
    "Config",
    "Wallet",
    "Context",
)
