"""
Executables behavioral tests (composition, dispatch, context handling).

Scope
- Validate that every executable composes (unique sibling tokens).
- Validate typed round trips for representative leaves of every tool.
- Validate catalog constraints (signing key/signer, proposal id/offline,
  address find flags) and enumerated values.
- Validate the no-command path (help on stderr, exit status 2) and default
  children (ledger -> run).
- Validate that the context factory runs exactly once, and only for
  context-dependent variants.

Conventions
- Test method names follow CamelCase per project convention.
- A fake context stands in for the wallet and configuration.
"""

from __future__ import annotations

import contextlib
import datetime
import decimal
import io
import ipaddress
import os
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import TestCase, mock

from anoma_cli import args
from anoma_cli.apps import ANOMA, ANOMAC, ANOMAN, ANOMAW, App, Invocation, dispatch, main_client
from anoma_cli.arguments import Pending
from anoma_cli.cmds import *
from anoma_cli.commands import Branch
from anoma_cli.faults import (
    ArgumentParseError,
    ConflictingArgumentsError,
    ContextError,
    RequiredGroupError,
    UnknownCommandError,
)
from anoma_cli.values import (
    Address as RawAddress,
    Amount,
    ProposalVote,
    SchemeType,
    SocketAddress,
    TendermintAddress,
    TendermintMode,
    WalletAddress,
)

CONTEXT = SimpleNamespace(native_token=WalletAddress("NAM"))


def factory():
    return mock.Mock(return_value=CONTEXT)


def transaction(**overrides):
    return args.Tx(**{
        "dry_run": False,
        "force": False,
        "broadcast_only": False,
        "ledger_address": TendermintAddress("tcp", "127.0.0.1", 26657),
        "initialized_account_alias": None,
        "fee_amount": Amount(0),
        "fee_token": WalletAddress("NAM"),
        "gas_limit": Amount(0),
        "signing_key": None,
        "signer": None,
    } | overrides)


LOCAL = args.Query(TendermintAddress("tcp", "127.0.0.1", 26657))
REMOTE = args.Query(TendermintAddress("tcp", "10.0.0.1", 26657))


class TestComposition(TestCase):
    """Behavioral tests for composing the executables."""

    def testEveryExecutableComposes(self):
        for app in (ANOMA, ANOMAN, ANOMAC, ANOMAW):
            with self.subTest(app=app.name):
                tree = app.definition()
                self.assertEqual(tree.name, app.name)
                self.assertEqual(list(tree.globals), ["chain-id", "base-dir", "wasm-dir", "mode"])

    def testClientDisplayOrder(self):
        children = list(ANOMAC.definition().children)
        self.assertEqual(children[:7], [
            "tx", "transfer", "update", "init-account", "init-validator", "init-proposal", "vote-proposal"
        ])
        self.assertEqual(children[7:10], ["bond", "unbond", "withdraw"])
        self.assertEqual(children[-1], "utils")

    def testCombinedToolInlinesCommands(self):
        self.assertEqual(list(ANOMA.definition().children), [
            "node", "client", "wallet", "ledger", "tx", "transfer", "update", "init-proposal", "vote-proposal"
        ])

    def testDuplicateTokensRejected(self):
        with self.assertRaises(ValueError):
            App("broken", "Broken.", (TxTransfer, TxTransfer)).definition()

    def testContextDefaultInDetachedCommandRejected(self):
        class Detached(Branch, token="detached", context=False, children=(TxTransfer,)): ...

        with self.assertRaises(TypeError):
            App("broken", "Broken.", (Detached,))


class TestClient(TestCase):
    """Behavioral tests for the client executable."""

    def testTransferRoundTrip(self):
        context = factory()
        invocation = dispatch(ANOMAC, [
            "transfer",
            "--source", "alice",
            "--target", "bob",
            "--token", "nam",
            "--amount", "10.5",
            "--signer", "alice",
        ], context=context)

        self.assertIsInstance(invocation, Invocation)
        self.assertEqual(invocation.token, "transfer")
        self.assertIs(invocation.context, CONTEXT)
        self.assertEqual(invocation.command, TxTransfer(args.TxTransfer(
            tx=transaction(signer=WalletAddress("alice")),
            source=WalletAddress("alice"),
            target=WalletAddress("bob"),
            token=WalletAddress("nam"),
            sub_prefix=None,
            amount=Amount(10_500_000),
        )))
        context.assert_called_once_with(invocation.global_args)

    def testExplicitFeeTokenKept(self):
        invocation = dispatch(ANOMAC, [
            "transfer", "--source", "a", "--target", "b", "--token", "nam", "--amount", "1", "--fee-token", "btc"
        ], context=factory())
        self.assertEqual(invocation.command.args.tx.fee_token, "btc")

    def testInitValidatorRoundTrip(self):
        invocation = dispatch(ANOMAC, [
            "init-validator",
            "--source", "validator",
            "--commission-rate", "0.05",
            "--max-commission-rate-change", "0.01",
            "--scheme", "secp256k1",
            "--unsafe-dont-encrypt",
        ], context=factory())
        payload = invocation.command.args
        self.assertEqual(payload.commission_rate, decimal.Decimal("0.05"))
        self.assertEqual(payload.max_commission_rate_change, decimal.Decimal("0.01"))
        self.assertIs(payload.scheme, SchemeType.SECP256K1)
        self.assertTrue(payload.unsafe_dont_encrypt)
        self.assertIsNone(payload.account_key)

    def testQueryRoundTrip(self):
        invocation = dispatch(ANOMAC, [
            "voting-power", "--validator", "v1", "--epoch", "12", "--ledger-address", "10.0.0.1:26657"
        ], context=factory())
        self.assertEqual(invocation.command, QueryVotingPower(args.QueryVotingPower(
            query=args.Query(TendermintAddress("tcp", "10.0.0.1", 26657)),
            validator=WalletAddress("v1"),
            epoch=12,
        )))

    def testQueryWithoutArguments(self):
        invocation = dispatch(ANOMAC, ["epoch"], context=factory())
        self.assertEqual(invocation.command, QueryEpoch(args.Query(TendermintAddress("tcp", "127.0.0.1", 26657))))

    def testSigningKeyConflictsWithSigner(self):
        with self.assertRaises(ConflictingArgumentsError):
            dispatch(ANOMAC, [
                "transfer", "--source", "a", "--target", "b", "--token", "nam", "--amount", "1",
                "--signing-key", "k", "--signer", "a",
            ], context=factory())

    def testProposalIdConflictsWithOffline(self):
        with self.assertRaises(ConflictingArgumentsError):
            dispatch(ANOMAC, ["vote-proposal", "--proposal-id", "1", "--vote", "yay", "--offline"], context=factory())

    def testVoteProposal(self):
        invocation = dispatch(ANOMAC, ["vote-proposal", "--proposal-id", "3", "--vote", "nay"], context=factory())
        self.assertEqual(invocation.command.args.proposal_id, 3)
        self.assertIs(invocation.command.args.vote, ProposalVote.NAY)

    def testInvalidVoteRejected(self):
        context = factory()
        with self.assertRaises(ArgumentParseError) as caught:
            dispatch(ANOMAC, ["vote-proposal", "--vote", "maybe"], context=context)
        self.assertEqual(caught.exception.key, "vote")
        context.assert_not_called()

    def testUtilsRunWithoutContext(self):
        context = factory()
        invocation = dispatch(ANOMAC, ["utils", "join-network", "--chain-id", "anoma-test.123"], context=context)
        self.assertEqual(invocation.command, Utils(JoinNetwork(args.JoinNetwork(
            chain_id="anoma-test.123",
            genesis_validator=None,
            pre_genesis_path=None,
            dont_prefetch_wasm=False,
        ))))
        self.assertIsNone(invocation.context)
        self.assertIsNone(invocation.global_args.chain_id)
        context.assert_not_called()

    def testUtilsWithoutSubcommandExitsTwo(self):
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as caught:
            dispatch(ANOMAC, ["utils"], context=factory())
        self.assertEqual(caught.exception.code, 2)

    def testContextFailurePropagates(self):
        context = mock.Mock(side_effect=ContextError("no chain ID given"))
        with self.assertRaises(ContextError):
            dispatch(ANOMAC, ["epoch"], context=context)

    def testGlobalArgumentsAtAnyDepth(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            invocation = dispatch(ANOMAC, ["epoch", "--base-dir", "/srv/anoma", "--mode", "full"], context=factory())
        self.assertEqual(invocation.global_args, args.GlobalArgs(
            chain_id=None,
            base_dir=Path("/srv/anoma"),
            wasm_dir=None,
            mode=TendermintMode.FULL,
        ))

    def testBaseDirFromEnvironment(self):
        with mock.patch.dict(os.environ, {"ANOMA_BASE_DIR": "/env/anoma", "ANOMA_WASM_DIR": "/env/wasm"}):
            invocation = dispatch(ANOMAC, ["epoch"], context=factory())
        self.assertEqual(invocation.global_args.base_dir, Path("/env/anoma"))
        self.assertEqual(invocation.global_args.wasm_dir, Path("/env/wasm"))


class TestNode(TestCase):
    """Behavioral tests for the node executable."""

    def testLedgerDefaultsToRun(self):
        context = factory()
        invocation = dispatch(ANOMAN, ["ledger"], context=context)
        self.assertEqual(invocation.command, Ledger(LedgerRun()))
        context.assert_called_once()

    def testLedgerReset(self):
        self.assertEqual(dispatch(ANOMAN, ["ledger", "reset"], context=factory()).command, Ledger(LedgerReset()))

    def testConfigNeedsSubcommand(self):
        with contextlib.redirect_stderr(io.StringIO()) as output, self.assertRaises(SystemExit) as caught:
            dispatch(ANOMAN, ["config"], context=factory())
        self.assertEqual(caught.exception.code, 2)
        self.assertIn("gen", output.getvalue())


class TestWallet(TestCase):
    """Behavioral tests for the wallet executable."""

    def testKeyGenDefaults(self):
        invocation = dispatch(ANOMAW, ["key", "gen", "--alias", "alice"], context=factory())
        self.assertEqual(invocation.command, Key(KeyGen(args.KeyAndAddressGen(
            scheme=SchemeType.ED25519,
            alias="alice",
            unsafe_dont_encrypt=False,
        ))))

    def testAddressGenSharesStruct(self):
        invocation = dispatch(ANOMAW, ["address", "gen"], context=factory())
        self.assertIsInstance(invocation.command.sub, AddressGen)
        self.assertIsNone(invocation.command.sub.args.alias)

    def testAddressFindNeedsOneFlag(self):
        with self.assertRaises(RequiredGroupError):
            dispatch(ANOMAW, ["address", "find"], context=factory())
        with self.assertRaises(ConflictingArgumentsError):
            dispatch(ANOMAW, ["address", "find", "--alias", "a", "--address", "a1lqfn3a"], context=factory())

    def testAddressFindParsesAddress(self):
        invocation = dispatch(ANOMAW, ["address", "find", "--address", "A1LQFN3A"], context=factory())
        self.assertEqual(invocation.command.sub.args.address, RawAddress("a1lqfn3a"))

    def testKeyFindConflicts(self):
        with self.assertRaises(ConflictingArgumentsError):
            dispatch(ANOMAW, ["key", "find", "--alias", "a", "--value", "b"], context=factory())

    def testAddressListWithoutArguments(self):
        invocation = dispatch(ANOMAW, ["address", "list"], context=factory())
        self.assertEqual(invocation.command, Address(AddressList()))


class TestCombined(TestCase):
    """Behavioral tests for the combined executable."""

    def testNoCommandExitsTwo(self):
        with contextlib.redirect_stderr(io.StringIO()) as output, self.assertRaises(SystemExit) as caught:
            dispatch(ANOMA, [], context=factory())
        self.assertEqual(caught.exception.code, 2)
        self.assertIn("usage", output.getvalue())

    def testUnknownCommand(self):
        with self.assertRaises(UnknownCommandError):
            dispatch(ANOMA, ["trasnfer"], context=factory())

    def testInlinedTransferStaysPending(self):
        context = factory()
        invocation = dispatch(ANOMA, [
            "transfer", "--source", "a", "--target", "b", "--token", "nam", "--amount", "1"
        ], context=context)
        self.assertIsInstance(invocation.command, TxTransfer)
        self.assertIsInstance(invocation.command.args.tx.fee_token, Pending)
        self.assertIsNone(invocation.context)
        context.assert_not_called()

    def testNestedClientCommand(self):
        invocation = dispatch(ANOMA, ["client", "epoch"], context=factory())
        self.assertEqual(invocation.command, Client(QueryEpoch(args.Query(TendermintAddress("tcp", "127.0.0.1", 26657)))))
        self.assertEqual(invocation.token, "client")

    def testNestedNodeLedger(self):
        self.assertEqual(dispatch(ANOMA, ["node", "ledger"], context=factory()).command, Node(Ledger(LedgerRun())))

    def testTopLevelLedger(self):
        self.assertEqual(dispatch(ANOMA, ["ledger"], context=factory()).command, Ledger(LedgerRun()))

    def testHelpOnNestedCommand(self):
        output = io.StringIO()
        with contextlib.redirect_stdout(output), self.assertRaises(SystemExit) as caught:
            dispatch(ANOMA, ["client", "transfer", "--help"], context=factory())
        self.assertEqual(caught.exception.code, 0)
        self.assertIn("--fee-token", output.getvalue())


class TestCatalog(TestCase):
    """Round trips of every leaf: tokens in, typed payload out."""

    ROWS = (
        (ANOMAC, ["tx", "--code-path", "tx.wasm", "--data-path", "data.bin", "--dry-run"], TxCustom(args.TxCustom(
            tx=transaction(dry_run=True),
            code_path=Path("tx.wasm"),
            data_path=Path("data.bin"),
        ))),
        (ANOMAC, ["update", "--code-path", "vp.wasm", "--address", "alice", "--force"], TxUpdateVp(args.TxUpdateVp(
            tx=transaction(force=True),
            vp_code_path=Path("vp.wasm"),
            addr=WalletAddress("alice"),
        ))),
        (ANOMAC, ["init-account", "--source", "alice", "--public-key", "alice-key"], TxInitAccount(args.TxInitAccount(
            tx=transaction(),
            source=WalletAddress("alice"),
            vp_code_path=None,
            public_key="alice-key",
        ))),
        (ANOMAC, ["init-proposal", "--data-path", "proposal.json", "--offline"], TxInitProposal(args.InitProposal(
            tx=transaction(),
            proposal_data=Path("proposal.json"),
            offline=True,
        ))),
        (ANOMAC, [
            "bond", "--validator", "v1", "--amount", "2.25", "--source", "alice", "--fee-amount", "0.01",
        ], Bond(args.Bond(
            tx=transaction(fee_amount=Amount(10_000)),
            validator=WalletAddress("v1"),
            amount=Amount(2_250_000),
            source=WalletAddress("alice"),
        ))),
        (ANOMAC, ["unbond", "--validator", "v1", "--amount", "1", "--gas-limit", "5"], Unbond(args.Unbond(
            tx=transaction(gas_limit=Amount(5_000_000)),
            validator=WalletAddress("v1"),
            amount=Amount(1_000_000),
            source=None,
        ))),
        (ANOMAC, ["withdraw", "--validator", "v1", "--broadcast-only"], Withdraw(args.Withdraw(
            tx=transaction(broadcast_only=True),
            validator=WalletAddress("v1"),
            source=None,
        ))),
        (ANOMAC, ["block"], QueryBlock(LOCAL)),
        (ANOMAC, ["balance", "--owner", "alice", "--token", "nam", "--ledger-address", "10.0.0.1:26657"],
         QueryBalance(args.QueryBalance(query=REMOTE, owner=WalletAddress("alice"), token=WalletAddress("nam"), sub_prefix=None))),
        (ANOMAC, ["bonds", "--validator", "v1"], QueryBonds(args.QueryBonds(
            query=LOCAL, owner=None, validator=WalletAddress("v1"),
        ))),
        (ANOMAC, ["commission-rate", "--validator", "v1", "--epoch", "4"], QueryCommissionRate(args.QueryCommissionRate(
            query=LOCAL, validator=WalletAddress("v1"), epoch=4,
        ))),
        (ANOMAC, ["slashes"], QuerySlashes(args.QuerySlashes(query=LOCAL, validator=None))),
        (ANOMAC, ["tx-result", "--tx-hash", "ABCDEF"], QueryResult(args.QueryResult(query=LOCAL, tx_hash="ABCDEF"))),
        (ANOMAC, ["query-bytes", "--storage-key", "/#atest1/balance"], QueryRawBytes(args.QueryRawBytes(
            query=LOCAL, storage_key="/#atest1/balance",
        ))),
        (ANOMAC, ["query-proposal", "--proposal-id", "7"], QueryProposal(args.QueryProposal(query=LOCAL, proposal_id=7))),
        (ANOMAC, ["query-proposal-result", "--offline", "--data-path", "votes"], QueryProposalResult(args.QueryProposalResult(
            query=LOCAL, proposal_id=None, offline=True, proposal_folder=Path("votes"),
        ))),
        (ANOMAC, ["query-protocol-parameters"], QueryProtocolParameters(args.QueryProtocolParameters(query=LOCAL))),
        (ANOMAC, ["utils", "fetch-wasms", "--chain-id", "anoma-test.123"], Utils(FetchWasms(args.FetchWasms(
            chain_id="anoma-test.123",
        )))),
        (ANOMAC, [
            "utils", "init-network",
            "--genesis-path", "genesis.toml",
            "--wasm-checksums-path", "checksums.json",
            "--chain-prefix", "anoma-test",
            "--localhost",
        ], Utils(InitNetwork(args.InitNetwork(
            genesis_path=Path("genesis.toml"),
            wasm_checksums_path=Path("checksums.json"),
            chain_id_prefix="anoma-test",
            unsafe_dont_encrypt=False,
            consensus_timeout_commit=datetime.timedelta(seconds=1),
            localhost=True,
            allow_duplicate_ip=False,
            dont_archive=False,
            archive_dir=None,
        )))),
        (ANOMAC, [
            "utils", "init-genesis-validator",
            "--alias", "validator-0",
            "--commission-rate", "0.05",
            "--max-commission-rate-change", "0.01",
            "--net-address", "1.2.3.4:26656",
        ], Utils(InitGenesisValidator(args.InitGenesisValidator(
            alias="validator-0",
            commission_rate=decimal.Decimal("0.05"),
            max_commission_rate_change=decimal.Decimal("0.01"),
            net_address=SocketAddress(ipaddress.IPv4Address("1.2.3.4"), 26656),
            unsafe_dont_encrypt=False,
            scheme=SchemeType.ED25519,
        )))),
        (ANOMAN, ["config", "gen"], Config(ConfigGen())),
        (ANOMAW, ["key", "find", "--public-key", "00AB"], Key(KeyFind(args.KeyFind(
            public_key="00ab", alias=None, value=None, unsafe_show_secret=False,
        )))),
        (ANOMAW, ["key", "list", "--decrypt"], Key(KeyList(args.KeyList(decrypt=True, unsafe_show_secret=False)))),
        (ANOMAW, ["key", "export", "--alias", "alice"], Key(KeyExport(args.KeyExport(alias="alice")))),
        (ANOMAW, ["address", "add", "--alias", "bob", "--address", "a1lqfn3a"], Address(AddressAdd(args.AddressAdd(
            alias="bob", address=RawAddress("a1lqfn3a"),
        )))),
        (ANOMA, ["wallet", "address", "list"], Wallet(Address(AddressList()))),
    )

    def testEveryLeafRoundTrips(self):
        for app, tokens, expected in self.ROWS:
            with self.subTest(app=app.name, tokens=" ".join(tokens)):
                self.assertEqual(dispatch(app, tokens, context=factory()).command, expected)


class TestShell(TestCase):
    """Behavioral tests for shell mode: faults are printed and exit with status 2."""

    def assertExitsTwo(self, app, tokens, context=None):
        with contextlib.redirect_stderr(io.StringIO()) as output, self.assertRaises(SystemExit) as caught:
            dispatch(app, tokens, context=context or factory(), shell=True)
        self.assertEqual(caught.exception.code, 2)
        return output.getvalue()

    def testInvalidValue(self):
        self.assertIn("maybe", self.assertExitsTwo(ANOMAC, ["vote-proposal", "--vote", "maybe"]))

    def testConflictingArguments(self):
        output = self.assertExitsTwo(ANOMAC, [
            "transfer", "--source", "a", "--target", "b", "--token", "nam", "--amount", "1",
            "--signing-key", "k", "--signer", "a",
        ])
        self.assertIn("--signer", output)

    def testContextFailure(self):
        context = mock.Mock(side_effect=ContextError("no chain ID given"))
        self.assertIn("no chain ID given", self.assertExitsTwo(ANOMAC, ["epoch"], context))

    def testUnknownCommand(self):
        self.assertExitsTwo(ANOMA, ["trasnfer"])

    def testEntryPointHandsInvocationToHandler(self):
        handler = mock.Mock()
        argv = ["anomac", "utils", "join-network", "--chain-id", "anoma-test.123"]
        with mock.patch.object(sys, "argv", argv), mock.patch("anoma_cli.apps.logs.setup") as setup:
            main_client(handler)
        setup.assert_called_once_with()
        invocation = handler.call_args.args[0]
        self.assertEqual(invocation.command.sub.args.chain_id, "anoma-test.123")

    def testEntryPointExitsTwoOnMissingArgument(self):
        handler = mock.Mock()
        with (
            mock.patch.object(sys, "argv", ["anomac", "bond"]),
            mock.patch("anoma_cli.apps.logs.setup"),
            contextlib.redirect_stderr(io.StringIO()) as output,
            self.assertRaises(SystemExit) as caught,
        ):
            main_client(handler)
        self.assertEqual(caught.exception.code, 2)
        self.assertIn("--validator", output.getvalue())
        handler.assert_not_called()


if __name__ == "__main__":
    unittest.main()
