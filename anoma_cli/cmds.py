"""
Anoma CLI command catalog.

Every command is declared once, as a class, and referenced from as many
trees as need it: TxTransfer is "anomac transfer", "anoma transfer" and
"anoma client transfer" alike. Leaves carry their argument struct in 'args';
groups carry the selected child in 'sub'. Handlers dispatch with match:

    match invocation.command:
        case Client(TxTransfer(args)) | TxTransfer(args):
            ...
        case Ledger(LedgerRun()):
            ...
"""
from . import args
from .commands import Branch, Leaf

# --- node ---

class LedgerRun(Leaf, token="run", descr="Run Anoma ledger node."): ...


class LedgerReset(Leaf, token="reset", descr="Delete Anoma ledger node's and Tendermint node's storage data."): ...


class Ledger(
    Branch,
    token="ledger",
    descr="Ledger node sub-commands. If no sub-command specified, defaults to run the node.",
    children=(LedgerRun, LedgerReset),
    default=LedgerRun
): ...


class ConfigGen(Leaf, token="gen", descr="Generate the default configuration file."): ...


class Config(Branch, token="config", descr="Configuration sub-commands.", children=(ConfigGen,)): ...


NODE_COMMANDS = (Ledger, Config)


class Node(Branch, token="node", descr="Node sub-commands.", children=NODE_COMMANDS): ...


# --- client: transactions ---

class TxCustom(Leaf, token="tx", args=args.TxCustom, descr="Send a transaction with custom WASM code.", order=1): ...


class TxTransfer(Leaf, token="transfer", args=args.TxTransfer, descr="Send a signed transfer transaction.", order=1): ...


class TxUpdateVp(
    Leaf,
    token="update",
    args=args.TxUpdateVp,
    descr="Send a signed transaction to update account's validity predicate.",
    order=1
): ...


class TxInitAccount(
    Leaf,
    token="init-account",
    args=args.TxInitAccount,
    descr="Send a signed transaction to create a new established account.",
    order=1
): ...


class TxInitValidator(
    Leaf,
    token="init-validator",
    args=args.TxInitValidator,
    descr="Send a signed transaction to create a new validator account.",
    order=1
): ...


class TxInitProposal(Leaf, token="init-proposal", args=args.InitProposal, descr="Create a new proposal.", order=1): ...


class TxVoteProposal(Leaf, token="vote-proposal", args=args.VoteProposal, descr="Vote a proposal.", order=1): ...


# --- client: proof of stake ---

class Bond(Leaf, token="bond", args=args.Bond, descr="Bond tokens in PoS system.", order=2): ...


class Unbond(Leaf, token="unbond", args=args.Unbond, descr="Unbond tokens from a PoS bond.", order=2): ...


class Withdraw(
    Leaf,
    token="withdraw",
    args=args.Withdraw,
    descr="Withdraw tokens from previously unbonded PoS bond.",
    order=2
): ...


# --- client: queries ---

class QueryEpoch(Leaf, token="epoch", args=args.Query, descr="Query the epoch of the last committed block.", order=3): ...


class QueryBlock(Leaf, token="block", args=args.Query, descr="Query the last committed block.", order=3): ...


class QueryBalance(Leaf, token="balance", args=args.QueryBalance, descr="Query balance(s) of tokens.", order=3): ...


class QueryBonds(Leaf, token="bonds", args=args.QueryBonds, descr="Query PoS bond(s).", order=3): ...


class QueryVotingPower(
    Leaf,
    token="voting-power",
    args=args.QueryVotingPower,
    descr="Query PoS voting power.",
    order=3
): ...


class QueryCommissionRate(
    Leaf,
    token="commission-rate",
    args=args.QueryCommissionRate,
    descr="Query commission rate.",
    order=3
): ...


class QuerySlashes(Leaf, token="slashes", args=args.QuerySlashes, descr="Query PoS applied slashes.", order=3): ...


class QueryResult(Leaf, token="tx-result", args=args.QueryResult, descr="Query the result of a transaction.", order=3): ...


class QueryRawBytes(
    Leaf,
    token="query-bytes",
    args=args.QueryRawBytes,
    descr="Query the raw bytes of a given storage key",
    order=3
): ...


class QueryProposal(Leaf, token="query-proposal", args=args.QueryProposal, descr="Query proposals.", order=3): ...


class QueryProposalResult(
    Leaf,
    token="query-proposal-result",
    args=args.QueryProposalResult,
    descr="Query proposals result.",
    order=3
): ...


class QueryProtocolParameters(
    Leaf,
    token="query-protocol-parameters",
    args=args.QueryProtocolParameters,
    descr="Query protocol parameters.",
    order=3
): ...


# --- client: utilities ---

class JoinNetwork(
    Leaf,
    token="join-network",
    args=args.JoinNetwork,
    descr="Configure Anoma to join an existing network."
): ...


class FetchWasms(Leaf, token="fetch-wasms", args=args.FetchWasms, descr="Ensure pre-built wasms are present"): ...


class InitNetwork(Leaf, token="init-network", args=args.InitNetwork, descr="Initialize a new test network."): ...


class InitGenesisValidator(
    Leaf,
    token="init-genesis-validator",
    args=args.InitGenesisValidator,
    descr=(
        "Initialize genesis validator's address, consensus key and validator "
        "account key and use it in the ledger's node."
    )
): ...


class Utils(
    Branch,
    token="utils",
    descr="Utilities.",
    context=False,
    order=5,
    children=(JoinNetwork, FetchWasms, InitNetwork, InitGenesisValidator)
): ...


CLIENT_COMMANDS = (
    TxCustom,
    TxTransfer,
    TxUpdateVp,
    TxInitAccount,
    TxInitValidator,
    TxInitProposal,
    TxVoteProposal,
    Bond,
    Unbond,
    Withdraw,
    QueryEpoch,
    QueryBlock,
    QueryBalance,
    QueryBonds,
    QueryVotingPower,
    QueryCommissionRate,
    QuerySlashes,
    QueryResult,
    QueryRawBytes,
    QueryProposal,
    QueryProposalResult,
    QueryProtocolParameters,
    Utils,
)


class Client(Branch, token="client", descr="Client sub-commands.", children=CLIENT_COMMANDS): ...


# --- wallet ---

KEY_AND_ADDRESS_GEN_ABOUT = (
    "Generates a keypair with a given alias and derive the implicit address "
    "from its public key. The address will be stored with the same alias."
)


class KeyGen(Leaf, token="gen", args=args.KeyAndAddressGen, descr=KEY_AND_ADDRESS_GEN_ABOUT): ...


class KeyFind(Leaf, token="find", args=args.KeyFind, descr="Searches for a keypair from a public key or an alias."): ...


class KeyList(Leaf, token="list", args=args.KeyList, descr="List all known keys."): ...


class KeyExport(Leaf, token="export", args=args.KeyExport, descr="Exports a keypair to a file."): ...


class Key(
    Branch,
    token="key",
    descr="Keypair management, including methods to generate and look-up keys.",
    children=(KeyGen, KeyFind, KeyList, KeyExport)
): ...


class AddressGen(Leaf, token="gen", args=args.KeyAndAddressGen, descr=KEY_AND_ADDRESS_GEN_ABOUT): ...


class AddressFind(
    Leaf,
    token="find",
    args=args.AddressOrAliasFind,
    descr="Find an address by its alias or an alias by its address."
): ...


class AddressList(Leaf, token="list", descr="List all known addresses."): ...


class AddressAdd(Leaf, token="add", args=args.AddressAdd, descr="Store an alias for an address in the wallet."): ...


class Address(
    Branch,
    token="address",
    descr="Address management, including methods to generate and look-up addresses.",
    children=(AddressGen, AddressFind, AddressList, AddressAdd)
): ...


WALLET_COMMANDS = (Key, Address)


class Wallet(Branch, token="wallet", descr="Wallet sub-commands.", children=WALLET_COMMANDS): ...


# --- combined ---

ANOMA_COMMANDS = (
    Node,
    Client,
    Wallet,
    Ledger,
    TxCustom,
    TxTransfer,
    TxUpdateVp,
    TxInitProposal,
    TxVoteProposal,
)


__all__ = (
    "LedgerRun",
    "LedgerReset",
    "Ledger",
    "ConfigGen",
    "Config",
    "Node",
    "TxCustom",
    "TxTransfer",
    "TxUpdateVp",
    "TxInitAccount",
    "TxInitValidator",
    "TxInitProposal",
    "TxVoteProposal",
    "Bond",
    "Unbond",
    "Withdraw",
    "QueryEpoch",
    "QueryBlock",
    "QueryBalance",
    "QueryBonds",
    "QueryVotingPower",
    "QueryCommissionRate",
    "QuerySlashes",
    "QueryResult",
    "QueryRawBytes",
    "QueryProposal",
    "QueryProposalResult",
    "QueryProtocolParameters",
    "JoinNetwork",
    "FetchWasms",
    "InitNetwork",
    "InitGenesisValidator",
    "Utils",
    "Client",
    "KeyGen",
    "KeyFind",
    "KeyList",
    "KeyExport",
    "Key",
    "AddressGen",
    "AddressFind",
    "AddressList",
    "AddressAdd",
    "Address",
    "Wallet",
    "NODE_COMMANDS",
    "CLIENT_COMMANDS",
    "WALLET_COMMANDS",
    "ANOMA_COMMANDS",
)
