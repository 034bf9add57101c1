"""
Anoma CLI argument registry and argument structs.

The registry is a flat set of module-level descriptors, one per argument
key, together with their derived variants (ALIAS / ALIAS_OPT, ...). They are
immutable: commands share them freely.

The structs group descriptors into the payload of each command. Fields are
declared with argument(descriptor, help) and parsed in declaration order;
nested structs (Tx, Query) are flattened into the owning command.
"""
import datetime
import decimal
import operator
from dataclasses import dataclass
from pathlib import Path

from .arguments import EnvThenStatic, Flag, FromContext, Group, Optional, Required
from .commands import Args, argument
from .values import *

# --- registry ---

ADDRESS = Required("address", WalletAddress)
ALIAS = Required("alias", str)
ALIAS_OPT = ALIAS.opt()
ALLOW_DUPLICATE_IP = Flag("allow-duplicate-ip")
AMOUNT = Required("amount", Amount.parse)
ARCHIVE_DIR = Optional("archive-dir", Path)
BASE_DIR = Required("base-dir", Path, default=EnvThenStatic("ANOMA_BASE_DIR", Path(".anoma")))
BROADCAST_ONLY = Flag("broadcast-only")
CHAIN_ID = Required("chain-id", ChainId)
CHAIN_ID_OPT = CHAIN_ID.opt()
CHAIN_ID_PREFIX = Required("chain-prefix", ChainIdPrefix)
CODE_PATH = Required("code-path", Path)
CODE_PATH_OPT = CODE_PATH.opt()
COMMISSION_RATE = Required("commission-rate", parse_decimal)
CONSENSUS_TIMEOUT_COMMIT = Required("consensus-timeout-commit", parse_timeout).default(parse_timeout("1s"))
DATA_PATH = Required("data-path", Path)
DATA_PATH_OPT = DATA_PATH.opt()
DECRYPT = Flag("decrypt")
DONT_ARCHIVE = Flag("dont-archive")
DONT_PREFETCH_WASM = Flag("dont-prefetch-wasm")
DRY_RUN_TX = Flag("dry-run")
EPOCH = Optional("epoch", Epoch)
FEE_AMOUNT = Required("fee-amount", Amount.parse).default(Amount(0))
FEE_TOKEN = Required("fee-token", WalletAddress).default(FromContext(operator.attrgetter("native_token")))
FORCE = Flag("force")
GAS_LIMIT = Required("gas-limit", Amount.parse).default(Amount(0))
GENESIS_PATH = Required("genesis-path", Path)
GENESIS_VALIDATOR = Optional("genesis-validator", str)
LEDGER_ADDRESS = Required("ledger-address", TendermintAddress.parse)
LEDGER_ADDRESS_DEFAULT = LEDGER_ADDRESS.default(TendermintAddress.parse("127.0.0.1:26657"))
LOCALHOST = Flag("localhost")
MAX_COMMISSION_RATE_CHANGE = Required("max-commission-rate-change", parse_decimal)
MODE = Optional("mode", TendermintMode)
NET_ADDRESS = Required("net-address", SocketAddress.parse)
OWNER = Optional("owner", WalletAddress)
PRE_GENESIS_PATH = Optional("pre-genesis-path", Path)
PROPOSAL_ID = Required("proposal-id", parse_u64)
PROPOSAL_ID_OPT = PROPOSAL_ID.opt()
PROPOSAL_OFFLINE = Flag("offline")
PROPOSAL_VOTE = Required("vote", ProposalVote)
PROTOCOL_KEY = Optional("protocol-key", WalletPublicKey)
PUBLIC_KEY = Required("public-key", WalletPublicKey)
RAW_ADDRESS = Required("address", Address)
RAW_ADDRESS_OPT = RAW_ADDRESS.opt()
RAW_PUBLIC_KEY_OPT = Optional("public-key", PublicKey)
SCHEME = Required("scheme", SchemeType).default(SchemeType.ED25519)
SIGNER = Optional("signer", WalletAddress)
SIGNING_KEY_OPT = Optional("signing-key", WalletKeypair)
SOURCE = Required("source", WalletAddress)
SOURCE_OPT = SOURCE.opt()
STORAGE_KEY = Required("storage-key", StorageKey)
SUB_PREFIX = Optional("sub-prefix", str)
TARGET = Required("target", WalletAddress)
TOKEN = Required("token", WalletAddress)
TOKEN_OPT = TOKEN.opt()
TX_HASH = Required("tx-hash", str)
UNSAFE_DONT_ENCRYPT = Flag("unsafe-dont-encrypt")
UNSAFE_SHOW_SECRET = Flag("unsafe-show-secret")
VALIDATOR = Required("validator", WalletAddress)
VALIDATOR_OPT = VALIDATOR.opt()
VALIDATOR_ACCOUNT_KEY = Optional("account-key", WalletPublicKey)
VALIDATOR_CODE_PATH = Optional("validator-code-path", Path)
VALIDATOR_CONSENSUS_KEY = Optional("consensus-key", WalletKeypair)
VALUE = Optional("value", str)
WASM_CHECKSUMS_PATH = Required("wasm-checksums-path", Path)
WASM_DIR = Optional("wasm-dir", Path, default=EnvThenStatic("ANOMA_WASM_DIR"))

LEDGER_ADDRESS_ABOUT = (
    'Address of a ledger node as "{scheme}://{host}:{port}". If the scheme is '
    "not supplied, it is assumed to be TCP."
)

UNSAFE_DONT_ENCRYPT_ABOUT = (
    "UNSAFE: Do not encrypt the generated keypairs. Do not use this for keys "
    "used in a live network."
)

SCHEME_ABOUT = "The key scheme/type used for the validator keys. Currently supports ed25519 and secp256k1."

COMMISSION_RATE_ABOUT = (
    "The commission rate charged by the validator for delegation rewards. "
    "This is a required parameter."
)

MAX_COMMISSION_RATE_CHANGE_ABOUT = (
    "The maximum change per epoch in the commission rate charged by the "
    "validator for delegation rewards. This is a required parameter."
)


# --- global ---

@dataclass(frozen=True)
class GlobalArgs(Args):
    """
    Arguments accepted at every level of every tree, parsed once from the
    root matches.
    """
    chain_id: ChainId | None = argument(CHAIN_ID_OPT, "The chain ID.")
    base_dir: Path = argument(
        BASE_DIR,
        "The base directory is where the nodes, client and wallet "
        "configuration and state is stored. This value can also be set via "
        "`ANOMA_BASE_DIR` environment variable, but the argument takes "
        "precedence, if specified. Defaults to `.anoma`."
    )
    wasm_dir: Path | None = argument(
        WASM_DIR,
        "Directory with built WASM validity predicates, transactions. This "
        "value can also be set via `ANOMA_WASM_DIR` environment variable, but "
        "the argument takes precedence, if specified."
    )
    mode: TendermintMode | None = argument(
        MODE,
        "The mode in which to run Anoma. Options are \n\t * Validator (default)\n\t * Full\n\t * Seed"
    )


# --- shared ---

@dataclass(frozen=True)
class Tx(Args):
    """
    Common transaction arguments.
    """
    dry_run: bool = argument(DRY_RUN_TX, "Simulate the transaction application.")
    force: bool = argument(FORCE, "Submit the transaction even if it doesn't pass client checks.")
    broadcast_only: bool = argument(
        BROADCAST_ONLY,
        "Do not wait for the transaction to be applied. This will return once "
        "the transaction is added to the mempool."
    )
    ledger_address: TendermintAddress = argument(LEDGER_ADDRESS_DEFAULT, LEDGER_ADDRESS_ABOUT)
    initialized_account_alias: str | None = argument(
        ALIAS_OPT,
        "If any new account is initialized by the tx, use the given alias to "
        "save it in the wallet. If multiple accounts are initialized, the "
        "alias will be the prefix of each new address joined with a number."
    )
    fee_amount: Amount = argument(FEE_AMOUNT, "The amount being paid for the inclusion of this transaction")
    fee_token: WalletAddress = argument(FEE_TOKEN, "The token for paying the fee")
    gas_limit: Amount = argument(GAS_LIMIT, "The maximum amount of gas needed to run transaction")
    signing_key: WalletKeypair | None = argument(
        SIGNING_KEY_OPT,
        "Sign the transaction with the key for the given public key, public "
        "key hash or alias from your wallet.",
        conflicts=(SIGNER,)
    )
    signer: WalletAddress | None = argument(
        SIGNER,
        "Sign the transaction with the keypair of the public key of the given address.",
        conflicts=(SIGNING_KEY_OPT,)
    )


@dataclass(frozen=True)
class Query(Args):
    """
    Common query arguments.
    """
    ledger_address: TendermintAddress = argument(LEDGER_ADDRESS_DEFAULT, LEDGER_ADDRESS_ABOUT)


# --- transactions ---

@dataclass(frozen=True)
class TxCustom(Args):
    tx: Tx = argument(Tx)
    code_path: Path = argument(CODE_PATH, "The path to the transaction's WASM code.")
    data_path: Path | None = argument(
        DATA_PATH_OPT,
        "The data file at this path containing arbitrary bytes will be passed "
        "to the transaction code when it's executed."
    )


@dataclass(frozen=True)
class TxTransfer(Args):
    tx: Tx = argument(Tx)
    source: WalletAddress = argument(
        SOURCE,
        "The source account address. The source's key is used to produce the signature."
    )
    target: WalletAddress = argument(TARGET, "The target account address.")
    token: WalletAddress = argument(TOKEN, "The transfer token.")
    sub_prefix: str | None = argument(SUB_PREFIX, "The token's sub prefix.")
    amount: Amount = argument(AMOUNT, "The amount to transfer in decimal.")


@dataclass(frozen=True)
class TxUpdateVp(Args):
    tx: Tx = argument(Tx)
    vp_code_path: Path = argument(CODE_PATH, "The path to the new validity predicate WASM code.")
    addr: WalletAddress = argument(
        ADDRESS,
        "The account's address. It's key is used to produce the signature."
    )


@dataclass(frozen=True)
class TxInitAccount(Args):
    tx: Tx = argument(Tx)
    source: WalletAddress = argument(SOURCE, "The source account's address that signs the transaction.")
    vp_code_path: Path | None = argument(
        CODE_PATH_OPT,
        "The path to the validity predicate WASM code to be used for the new "
        "account. Uses the default user VP if none specified."
    )
    public_key: WalletPublicKey = argument(
        PUBLIC_KEY,
        "A public key to be used for the new account in hexadecimal encoding."
    )


@dataclass(frozen=True)
class TxInitValidator(Args):
    tx: Tx = argument(Tx)
    source: WalletAddress = argument(SOURCE, "The source account's address that signs the transaction.")
    scheme: SchemeType = argument(SCHEME, SCHEME_ABOUT)
    account_key: WalletPublicKey | None = argument(
        VALIDATOR_ACCOUNT_KEY,
        "A public key for the validator account. A new one will be generated if none given."
    )
    consensus_key: WalletKeypair | None = argument(
        VALIDATOR_CONSENSUS_KEY,
        "A consensus key for the validator account. A new one will be generated if none given."
    )
    protocol_key: WalletPublicKey | None = argument(
        PROTOCOL_KEY,
        "A public key for signing protocol transactions. A new one will be generated if none given."
    )
    commission_rate: decimal.Decimal = argument(COMMISSION_RATE, COMMISSION_RATE_ABOUT)
    max_commission_rate_change: decimal.Decimal = argument(MAX_COMMISSION_RATE_CHANGE, MAX_COMMISSION_RATE_CHANGE_ABOUT)
    validator_vp_code_path: Path | None = argument(
        VALIDATOR_CODE_PATH,
        "The path to the validity predicate WASM code to be used for the "
        "validator account. Uses the default validator VP if none specified."
    )
    unsafe_dont_encrypt: bool = argument(UNSAFE_DONT_ENCRYPT, UNSAFE_DONT_ENCRYPT_ABOUT)


@dataclass(frozen=True)
class Bond(Args):
    tx: Tx = argument(Tx)
    validator: WalletAddress = argument(VALIDATOR, "Validator address.")
    amount: Amount = argument(AMOUNT, "Amount of tokens to stake in a bond.")
    source: WalletAddress | None = argument(
        SOURCE_OPT,
        "Source address for delegations. For self-bonds, the validator is also the source."
    )


@dataclass(frozen=True)
class Unbond(Args):
    tx: Tx = argument(Tx)
    validator: WalletAddress = argument(VALIDATOR, "Validator address.")
    amount: Amount = argument(AMOUNT, "Amount of tokens to unbond from a bond.")
    source: WalletAddress | None = argument(
        SOURCE_OPT,
        "Source address for unbonding from delegations. For unbonding from "
        "self-bonds, the validator is also the source."
    )


@dataclass(frozen=True)
class Withdraw(Args):
    tx: Tx = argument(Tx)
    validator: WalletAddress = argument(VALIDATOR, "Validator address.")
    source: WalletAddress | None = argument(
        SOURCE_OPT,
        "Source address for withdrawing from delegations. For withdrawing from "
        "self-bonds, the validator is also the source."
    )


# --- governance ---

@dataclass(frozen=True)
class InitProposal(Args):
    tx: Tx = argument(Tx)
    proposal_data: Path = argument(DATA_PATH, "The data path file (json) that describes the proposal.")
    offline: bool = argument(PROPOSAL_OFFLINE, "Flag if the proposal vote should run offline.")


@dataclass(frozen=True)
class VoteProposal(Args):
    tx: Tx = argument(Tx)
    proposal_id: int | None = argument(
        PROPOSAL_ID_OPT,
        "The proposal identifier.",
        conflicts=(PROPOSAL_OFFLINE, DATA_PATH_OPT)
    )
    vote: ProposalVote = argument(PROPOSAL_VOTE, "The vote for the proposal. Either yay or nay.")
    offline: bool = argument(PROPOSAL_OFFLINE, "Flag if the proposal vote should run offline.")
    proposal_data: Path | None = argument(DATA_PATH_OPT, "The data path file (json) that describes the proposal.")


@dataclass(frozen=True)
class QueryProposal(Args):
    query: Query = argument(Query)
    proposal_id: int | None = argument(PROPOSAL_ID_OPT, "The proposal identifier.")


@dataclass(frozen=True)
class QueryProposalResult(Args):
    query: Query = argument(Query)
    proposal_id: int | None = argument(
        PROPOSAL_ID_OPT,
        "The proposal identifier.",
        conflicts=(PROPOSAL_OFFLINE, DATA_PATH_OPT)
    )
    offline: bool = argument(PROPOSAL_OFFLINE, "Flag if the proposal result should run on offline data.")
    proposal_folder: Path | None = argument(
        DATA_PATH_OPT,
        "The path to the folder containing the proposal json and votes"
    )


@dataclass(frozen=True)
class QueryProtocolParameters(Args):
    query: Query = argument(Query)


# --- queries ---

@dataclass(frozen=True)
class QueryResult(Args):
    query: Query = argument(Query)
    tx_hash: str = argument(TX_HASH, "The hash of the transaction being looked up.")


@dataclass(frozen=True)
class QueryBalance(Args):
    query: Query = argument(Query)
    owner: WalletAddress | None = argument(OWNER, "The account address whose balance to query.")
    token: WalletAddress | None = argument(TOKEN_OPT, "The token's address whose balance to query.")
    sub_prefix: str | None = argument(SUB_PREFIX, "The token's sub prefix whose balance to query.")


@dataclass(frozen=True)
class QueryBonds(Args):
    query: Query = argument(Query)
    owner: WalletAddress | None = argument(OWNER, "The owner account address whose bonds to query.")
    validator: WalletAddress | None = argument(VALIDATOR_OPT, "The validator's address whose bonds to query.")


@dataclass(frozen=True)
class QueryVotingPower(Args):
    query: Query = argument(Query)
    validator: WalletAddress | None = argument(
        VALIDATOR_OPT,
        "The validator's address whose voting power to query."
    )
    epoch: Epoch | None = argument(EPOCH, "The epoch at which to query (last committed, if not specified).")


@dataclass(frozen=True)
class QueryCommissionRate(Args):
    query: Query = argument(Query)
    validator: WalletAddress | None = argument(
        VALIDATOR_OPT,
        "The validator's address whose commission rate to query."
    )
    epoch: Epoch | None = argument(EPOCH, "The epoch at which to query (last committed, if not specified).")


@dataclass(frozen=True)
class QuerySlashes(Args):
    query: Query = argument(Query)
    validator: WalletAddress | None = argument(VALIDATOR_OPT, "The validator's address whose slashes to query.")


@dataclass(frozen=True)
class QueryRawBytes(Args):
    query: Query = argument(Query)
    storage_key: StorageKey = argument(STORAGE_KEY, "Storage key")


# --- wallet ---

@dataclass(frozen=True)
class KeyAndAddressGen(Args):
    scheme: SchemeType = argument(
        SCHEME,
        "The type of key that should be generated. Argument must be either "
        "ed25519 or secp256k1. If none provided, the default key scheme is ed25519."
    )
    alias: str | None = argument(
        ALIAS_OPT,
        "The key and address alias. If none provided, the alias will be the public key hash."
    )
    unsafe_dont_encrypt: bool = argument(
        UNSAFE_DONT_ENCRYPT,
        "UNSAFE: Do not encrypt the keypair. Do not use this for keys used in a live network."
    )


@dataclass(frozen=True)
class KeyFind(Args):
    public_key: PublicKey | None = argument(
        RAW_PUBLIC_KEY_OPT,
        "A public key associated with the keypair.",
        conflicts=(ALIAS_OPT, VALUE)
    )
    alias: str | None = argument(ALIAS_OPT, "An alias associated with the keypair.", conflicts=(VALUE,))
    value: str | None = argument(VALUE, "A public key or alias associated with the keypair.")
    unsafe_show_secret: bool = argument(UNSAFE_SHOW_SECRET, "UNSAFE: Print the secret key.")


@dataclass(frozen=True)
class KeyList(Args):
    decrypt: bool = argument(DECRYPT, "Decrypt keys that are encrypted.")
    unsafe_show_secret: bool = argument(UNSAFE_SHOW_SECRET, "UNSAFE: Print the secret keys.")


@dataclass(frozen=True)
class KeyExport(Args):
    alias: str = argument(ALIAS, "The alias of the key you wish to export.")


@dataclass(frozen=True)
class AddressOrAliasFind(Args):
    __groups__ = (
        Group("find_flags", (ALIAS_OPT, RAW_ADDRESS_OPT), required=True),
    )

    alias: str | None = argument(ALIAS_OPT, "An alias associated with the address.")
    address: Address | None = argument(RAW_ADDRESS_OPT, "The bech32m encoded address string.")


@dataclass(frozen=True)
class AddressAdd(Args):
    alias: str = argument(ALIAS, "An alias to be associated with the address.")
    address: Address = argument(RAW_ADDRESS, "The bech32m encoded address string.")


# --- utils ---

@dataclass(frozen=True)
class JoinNetwork(Args):
    chain_id: ChainId = argument(
        CHAIN_ID,
        "The chain ID. The chain must be known in the "
        "https://github.com/heliaxdev/anoma-network-config repository."
    )
    genesis_validator: str | None = argument(
        GENESIS_VALIDATOR,
        "The alias of the genesis validator that you want to set up as, if any."
    )
    pre_genesis_path: Path | None = argument(
        PRE_GENESIS_PATH,
        "The path to the pre-genesis directory for genesis validator, if any. "
        'Defaults to "{base-dir}/pre-genesis/{genesis-validator}".'
    )
    dont_prefetch_wasm: bool = argument(DONT_PREFETCH_WASM, "Do not pre-fetch WASM.")


@dataclass(frozen=True)
class FetchWasms(Args):
    chain_id: ChainId = argument(
        CHAIN_ID,
        "The chain ID. The chain must be known in the "
        "https://github.com/heliaxdev/anoma-network-config repository, in "
        "which case it should have pre-built wasms available for download."
    )


@dataclass(frozen=True)
class InitNetwork(Args):
    genesis_path: Path = argument(GENESIS_PATH, "Path to the preliminary genesis configuration file.")
    wasm_checksums_path: Path = argument(WASM_CHECKSUMS_PATH, "Path to the WASM checksums file.")
    chain_id_prefix: ChainIdPrefix = argument(
        CHAIN_ID_PREFIX,
        "The chain ID prefix. Up to 19 alphanumeric, '.', '-' or '_' characters."
    )
    unsafe_dont_encrypt: bool = argument(UNSAFE_DONT_ENCRYPT, UNSAFE_DONT_ENCRYPT_ABOUT)
    consensus_timeout_commit: datetime.timedelta = argument(
        CONSENSUS_TIMEOUT_COMMIT,
        "The Tendermint consensus timeout_commit configuration as e.g. `1s` or `1000ms`."
    )
    localhost: bool = argument(
        LOCALHOST,
        "Use localhost address for P2P and RPC connections for the validators ledger"
    )
    allow_duplicate_ip: bool = argument(
        ALLOW_DUPLICATE_IP,
        "Toggle to disable guard against peers connecting from the same IP. "
        "This option shouldn't be used in mainnet."
    )
    dont_archive: bool = argument(DONT_ARCHIVE, "Do NOT create the release archive.")
    archive_dir: Path | None = argument(
        ARCHIVE_DIR,
        "Specify a directory into which to store the archive. Default is the "
        "current working directory."
    )


@dataclass(frozen=True)
class InitGenesisValidator(Args):
    alias: str = argument(ALIAS, "The validator address alias.")
    commission_rate: decimal.Decimal = argument(COMMISSION_RATE, COMMISSION_RATE_ABOUT)
    max_commission_rate_change: decimal.Decimal = argument(MAX_COMMISSION_RATE_CHANGE, MAX_COMMISSION_RATE_CHANGE_ABOUT)
    net_address: SocketAddress = argument(
        NET_ADDRESS,
        "Static {host:port} of your validator node's P2P address. Anoma uses "
        "port `26656` for P2P connections by default, but you can configure a "
        "different value."
    )
    unsafe_dont_encrypt: bool = argument(UNSAFE_DONT_ENCRYPT, UNSAFE_DONT_ENCRYPT_ABOUT)
    scheme: SchemeType = argument(SCHEME, SCHEME_ABOUT)


__all__ = (
    "GlobalArgs",
    "Tx",
    "Query",
    "TxCustom",
    "TxTransfer",
    "TxUpdateVp",
    "TxInitAccount",
    "TxInitValidator",
    "Bond",
    "Unbond",
    "Withdraw",
    "InitProposal",
    "VoteProposal",
    "QueryProposal",
    "QueryProposalResult",
    "QueryProtocolParameters",
    "QueryResult",
    "QueryBalance",
    "QueryBonds",
    "QueryVotingPower",
    "QueryCommissionRate",
    "QuerySlashes",
    "QueryRawBytes",
    "KeyAndAddressGen",
    "KeyFind",
    "KeyList",
    "KeyExport",
    "AddressOrAliasFind",
    "AddressAdd",
    "JoinNetwork",
    "FetchWasms",
    "InitNetwork",
    "InitGenesisValidator",
)
