"""Unit tests for ChunkAssembler."""

import itertools

import pytest

from common.exceptions import MalformedFragmentError, PayloadDecodeError
from common.protocol import encode_fragment
from common.types import Fragment
from transport.assembler import ChunkAssembler
from transport.splitter import split_payload


def wire_fragments(payload: str, size: int, message_id: str = "m1") -> list:
    split = split_payload(payload, size)
    return [
        encode_fragment(Fragment(
            index=i,
            total_count=split.total_count,
            message_id=message_id,
            encoding=split.encoding,
            data=chunk,
        ))
        for i, chunk in enumerate(split.chunks)
    ]


def raw_fragment(index, total, data, message_id="m1", encoding="raw") -> str:
    return encode_fragment(Fragment(
        index=index, total_count=total, message_id=message_id, encoding=encoding, data=data,
    ))


def feed(assembler, fragments):
    results = [assembler.receive(f) for f in fragments]
    completed = [r for r in results if r is not None]
    return completed


class TestReassembly:
    """Test reassembly in various delivery orders."""

    def test_example_out_of_order(self):
        assembler = ChunkAssembler()
        fragments = [raw_fragment(0, 3, "AB"), raw_fragment(1, 3, "CD"), raw_fragment(2, 3, "E")]

        assert assembler.receive(fragments[1]) is None
        assert assembler.receive(fragments[0]) is None
        assert assembler.receive(fragments[2]) == "ABCDE"
        assert assembler.pending_count == 0

    def test_all_permutations_reconstruct(self):
        payload = '{"type":"vp_token","value":{"0":"abc~def~"}}'
        fragments = wire_fragments(payload, 16)
        assert len(fragments) == 4

        for order in itertools.permutations(fragments):
            assert feed(ChunkAssembler(), order) == [payload]

    def test_reverse_order_matches_in_order(self):
        payload = "Selective disclosure ✓ " * 20
        fragments = wire_fragments(payload, 7)

        forward = feed(ChunkAssembler(), fragments)
        backward = feed(ChunkAssembler(), list(reversed(fragments)))

        assert forward == backward == [payload]

    @pytest.mark.parametrize("size", [1, 3, 50, 1000])
    def test_round_trip_various_sizes(self, size):
        payload = "eyJhbGciOiJFUzI1NiJ9.payload~disclosure~" * 5
        assert feed(ChunkAssembler(), wire_fragments(payload, size)) == [payload]

    def test_empty_payload_round_trip(self):
        fragments = wire_fragments("", 10)

        assert len(fragments) == 1
        assert ChunkAssembler().receive(fragments[0]) == ""

    def test_empty_fragment_counts_as_received(self):
        assembler = ChunkAssembler()

        assert assembler.receive(raw_fragment(1, 2, "")) is None
        assert assembler.receive(raw_fragment(0, 2, "AB")) == "AB"


class TestDuplicates:
    """Test duplicate delivery and completion detection."""

    def test_duplicate_does_not_complete_early(self):
        assembler = ChunkAssembler()
        first = raw_fragment(0, 2, "AB")

        assert assembler.receive(first) is None
        assert assembler.receive(first) is None
        assert assembler.has_pending("m1")
        assert assembler.receive(raw_fragment(1, 2, "CD")) == "ABCD"
        assert assembler.get_stats()["duplicates"] == 1

    def test_duplicate_after_completion_starts_new_buffer(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 1, "AB"))

        assert assembler.receive(raw_fragment(0, 2, "AB")) is None
        assert assembler.pending_count == 1

    def test_last_write_wins(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 2, "XX"))
        assembler.receive(raw_fragment(0, 2, "AB"))

        assert assembler.receive(raw_fragment(1, 2, "CD")) == "ABCD"

    def test_complete_only_when_every_index_filled(self):
        assembler = ChunkAssembler()
        for index in range(4):
            if index == 2:
                continue
            assert assembler.receive(raw_fragment(index, 4, "x")) is None

        assert assembler.receive(raw_fragment(2, 4, "x")) == "xxxx"


class TestMessageGrouping:
    """Test that concurrent messages are kept apart by message id."""

    def test_interleaved_messages_with_same_fragment_count(self):
        assembler = ChunkAssembler()
        first = [raw_fragment(i, 2, d, message_id="aaaa") for i, d in enumerate(["AB", "CD"])]
        second = [raw_fragment(i, 2, d, message_id="bbbb") for i, d in enumerate(["WX", "YZ"])]

        assert assembler.receive(first[0]) is None
        assert assembler.receive(second[1]) is None
        assert assembler.receive(second[0]) == "WXYZ"
        assert assembler.receive(first[1]) == "ABCD"

    def test_instances_do_not_share_buffers(self):
        one = ChunkAssembler()
        two = ChunkAssembler()
        one.receive(raw_fragment(0, 2, "AB"))

        assert two.pending_count == 0
        assert two.receive(raw_fragment(1, 2, "CD")) is None


class TestMalformedFragments:
    """Test rejection of malformed input."""

    def test_garbage_raises_without_mutation(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 2, "AB"))

        with pytest.raises(MalformedFragmentError):
            assembler.receive("%%%")

        assert assembler.pending_count == 1
        assert assembler.get_stats()["malformed"] == 1

    def test_total_count_mismatch_rejected(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 3, "AB"))

        with pytest.raises(MalformedFragmentError):
            assembler.receive(raw_fragment(1, 2, "CD"))

        assert assembler.receive(raw_fragment(1, 3, "CD")) is None
        assert assembler.receive(raw_fragment(2, 3, "E")) == "ABCDE"

    def test_encoding_mismatch_rejected(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 2, "AB"))

        with pytest.raises(MalformedFragmentError):
            assembler.receive(raw_fragment(1, 2, "CD", encoding="b64"))

    def test_undecodable_payload_discards_buffer(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 2, "A", encoding="b64"))

        with pytest.raises(PayloadDecodeError):
            assembler.receive(raw_fragment(1, 2, "B", encoding="b64"))

        assert assembler.pending_count == 0

    def test_total_above_limit_rejected_without_buffer(self):
        assembler = ChunkAssembler(max_fragment_count=4)

        with pytest.raises(MalformedFragmentError):
            assembler.receive(raw_fragment(0, 5, "AB"))

        assert assembler.pending_count == 0
        assert assembler.get_stats()["max_fragment_count"] == 4

    def test_huge_total_rejected_by_default(self):
        assembler = ChunkAssembler()

        with pytest.raises(MalformedFragmentError):
            assembler.receive(raw_fragment(0, 20000000, "x"))

        assert assembler.pending_count == 0


class TestExpiry:
    """Test eviction of idle buffers."""

    def test_sweep_removes_idle_buffers(self, clock):
        assembler = ChunkAssembler(buffer_ttl=30, clock=clock)
        assembler.receive(raw_fragment(0, 2, "AB"))

        clock.advance(31)

        assert assembler.sweep_expired() == 1
        assert assembler.pending_count == 0
        assert assembler.get_stats()["expired"] == 1

    def test_fresh_fragment_keeps_buffer_alive(self, clock):
        assembler = ChunkAssembler(buffer_ttl=30, clock=clock)
        assembler.receive(raw_fragment(0, 3, "AB"))
        clock.advance(20)
        assembler.receive(raw_fragment(1, 3, "CD"))
        clock.advance(20)

        assert assembler.receive(raw_fragment(2, 3, "E")) == "ABCDE"

    def test_late_fragment_starts_fresh_after_expiry(self, clock):
        assembler = ChunkAssembler(buffer_ttl=30, clock=clock)
        assembler.receive(raw_fragment(0, 2, "AB"))
        clock.advance(45)

        assert assembler.receive(raw_fragment(1, 2, "CD")) is None
        assert assembler.pending_count == 1
        assert assembler.get_stats()["expired"] == 1

    def test_clear_discards_everything(self):
        assembler = ChunkAssembler()
        assembler.receive(raw_fragment(0, 2, "AB", message_id="a"))
        assembler.receive(raw_fragment(0, 2, "AB", message_id="b"))

        assembler.clear()

        assert len(assembler) == 0
