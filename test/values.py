"""
Values module behavioral tests (type-level parsing of domain values).

Scope
- Validate bech32m addresses, hexadecimal keys and chain identifiers.
- Validate amounts, integers, decimals and durations.
- Validate enumerations and network endpoints.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import datetime
import decimal
import ipaddress
import unittest
from unittest import TestCase

from anoma_cli.values import (
    Address,
    Amount,
    ChainId,
    ChainIdPrefix,
    Epoch,
    ProposalVote,
    PublicKey,
    SchemeType,
    SocketAddress,
    StorageKey,
    TendermintAddress,
    TendermintMode,
    U64_MAX,
    WalletAddress,
    parse_decimal,
    parse_timeout,
    parse_u64,
)


class TestAddress(TestCase):
    """Behavioral tests for bech32m addresses."""

    def testValidVectorsAccepted(self):
        for text in ("a1lqfn3a", "abcdef1l7aum6echk45nj3s0wdvt2fg8x9yrzpqzd3ryx", "?1v759aa"):
            self.assertEqual(Address(text), text)

    def testUpperCaseNormalized(self):
        self.assertEqual(Address("A1LQFN3A"), "a1lqfn3a")

    def testHumanReadablePartExposed(self):
        self.assertEqual(Address("abcdef1l7aum6echk45nj3s0wdvt2fg8x9yrzpqzd3ryx").hrp, "abcdef")

    def testMixedCaseRejected(self):
        with self.assertRaises(ValueError):
            Address("A1lqfn3a")

    def testBadChecksumRejected(self):
        with self.assertRaises(ValueError):
            Address("abcdef1l7aum6echk45nj3s0wdvt2fg8x9yrzpqzd3ryy")

    def testMissingSeparatorRejected(self):
        with self.assertRaises(ValueError):
            Address("lqfn3a")

    def testShortDataRejected(self):
        with self.assertRaises(ValueError):
            Address("a1lqfn3")

    def testCharacterOutsideCharsetRejected(self):
        # 'b' is not part of the bech32 charset
        with self.assertRaises(ValueError):
            Address("a1lqfn3b")


class TestText(TestCase):
    """Behavioral tests for textual values."""

    def testWalletAddressStripped(self):
        self.assertEqual(WalletAddress("  alice "), "alice")

    def testWalletAddressEmptyRejected(self):
        with self.assertRaises(ValueError):
            WalletAddress("   ")

    def testPublicKeyLowercased(self):
        self.assertEqual(PublicKey("00AB"), "00ab")

    def testPublicKeyOddLengthRejected(self):
        with self.assertRaises(ValueError):
            PublicKey("abc")

    def testChainIdLimits(self):
        self.assertEqual(ChainId("anoma-test.fd58c789bc11e6c6392"), "anoma-test.fd58c789bc11e6c6392")
        with self.assertRaises(ValueError):
            ChainId("x" * 51)
        with self.assertRaises(ValueError):
            ChainId("bad chain")

    def testChainIdPrefixLimit(self):
        self.assertEqual(ChainIdPrefix("anoma-test"), "anoma-test")
        with self.assertRaises(ValueError):
            ChainIdPrefix("x" * 20)

    def testStorageKeySegments(self):
        self.assertEqual(StorageKey("/#atest1/balance").segments, ("#atest1", "balance"))

    def testStorageKeyEmptySegmentRejected(self):
        with self.assertRaises(ValueError):
            StorageKey("a//b")


class TestNumbers(TestCase):
    """Behavioral tests for amounts, integers, decimals and durations."""

    def testAmountParsesDecimal(self):
        self.assertEqual(Amount.parse("1.5"), Amount(1_500_000))
        self.assertEqual(Amount.parse(".5"), Amount(500_000))
        self.assertEqual(Amount.parse("10"), Amount(10_000_000))

    def testAmountRendersTrimmed(self):
        self.assertEqual(str(Amount(1_500_000)), "1.5")
        self.assertEqual(str(Amount(0)), "0")
        self.assertEqual(str(Amount(1)), "0.000001")

    def testAmountRejectsNegativeAndExcessPrecision(self):
        for text in ("-1", "1.0000001", "abc", "", "1." + "0" * 30 + "1", "9" * 40 + ".0000001"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                Amount.parse(text)

    def testAmountTrailingZerosAccepted(self):
        self.assertEqual(Amount.parse("1.500000000"), Amount(1_500_000))
        self.assertEqual(Amount.parse("0.000001"), Amount(1))

    def testAmountRangeEnforced(self):
        with self.assertRaises(ValueError):
            Amount(U64_MAX + 1)
        with self.assertRaises(ValueError):
            Amount.parse(str(U64_MAX))

    def testParseU64Bounds(self):
        self.assertEqual(parse_u64("0"), 0)
        self.assertEqual(parse_u64(str(U64_MAX)), U64_MAX)
        for text in (str(U64_MAX + 1), "-1", "1.0", "0x10"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                parse_u64(text)

    def testEpochIsInteger(self):
        self.assertEqual(Epoch("42"), 42)
        with self.assertRaises(ValueError):
            Epoch("forty-two")

    def testParseDecimal(self):
        self.assertEqual(parse_decimal("0.05"), decimal.Decimal("0.05"))
        for text in ("nan", "inf", "five"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                parse_decimal(text)

    def testParseTimeout(self):
        self.assertEqual(parse_timeout("1s"), datetime.timedelta(seconds=1))
        self.assertEqual(parse_timeout("1000ms"), datetime.timedelta(seconds=1))
        self.assertEqual(parse_timeout("1m 30s"), datetime.timedelta(seconds=90))
        for text in ("", "1", "1d", "soon"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                parse_timeout(text)


class TestChoices(TestCase):
    """Behavioral tests for the closed enumerations."""

    def testProposalVote(self):
        self.assertIs(ProposalVote("yay"), ProposalVote.YAY)
        with self.assertRaises(ValueError):
            ProposalVote("maybe")

    def testSchemeTypeRendersValue(self):
        self.assertEqual(str(SchemeType.ED25519), "ed25519")

    def testTendermintModeIgnoresCase(self):
        self.assertIs(TendermintMode("Validator"), TendermintMode.VALIDATOR)
        self.assertIs(TendermintMode("FULL"), TendermintMode.FULL)
        with self.assertRaises(ValueError):
            TendermintMode("light")


class TestEndpoints(TestCase):
    """Behavioral tests for ledger and socket addresses."""

    def testTendermintAddressDefaultsToTcp(self):
        address = TendermintAddress.parse("127.0.0.1:26657")
        self.assertEqual(address, TendermintAddress("tcp", "127.0.0.1", 26657))
        self.assertEqual(str(address), "tcp://127.0.0.1:26657")

    def testTendermintAddressWithPeer(self):
        peer = "a" * 40
        address = TendermintAddress.parse(f"tcp://{peer}@node.example:26656")
        self.assertEqual(address.peer, peer)
        self.assertEqual(address.host, "node.example")

    def testTendermintAddressUnix(self):
        address = TendermintAddress.parse("unix:///tmp/tendermint.sock")
        self.assertEqual(address.path, "/tmp/tendermint.sock")
        self.assertEqual(str(address), "unix:///tmp/tendermint.sock")

    def testTendermintAddressRejected(self):
        for text in ("http://127.0.0.1:26657", "127.0.0.1", "127.0.0.1:70000"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                TendermintAddress.parse(text)

    def testSocketAddress(self):
        self.assertEqual(SocketAddress.parse("1.2.3.4:26656"), SocketAddress(ipaddress.IPv4Address("1.2.3.4"), 26656))
        self.assertEqual(str(SocketAddress.parse("[::1]:26656")), "[::1]:26656")
        for text in ("localhost:26656", "1.2.3.4", "1.2.3.400:1"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                SocketAddress.parse(text)


if __name__ == "__main__":
    unittest.main()
