"""
Packed Sharing: Dealing Pipeline Tests

Tests share string formatting, the deal/recover pipeline, persistence
and the command line front end.
"""

import inspect
import json
import os
import sys
import tempfile
from pathlib import Path

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import cli
from packed_sharing import dealing
from packed_sharing.errors import ShareError
from packed_sharing.packed import PSS_4_8_3, PSS_4_26_3
from packed_sharing.randomness import FixedRandomSource


# ==========================================================================
# Share Format Tests
# ==========================================================================

def test_share_format_roundtrip():
    for index, value in ((0, 0), (7, 432), (19681, 5038848)):
        formatted = dealing.format_share("deadbeef01234567", index, value)
        did, parsed_idx, parsed_value = dealing.parse_share(formatted)
        assert did == "deadbeef01234567"
        assert parsed_idx == index
        assert parsed_value == value


def test_share_format_layout():
    formatted = dealing.format_share("abcd1234abcd1234", 5, 255)
    parts = formatted.split(':')
    assert parts[0] == 'PACKED_SHARE_v1'
    assert parts[2] == '005'
    assert parts[3] == 'ff'
    assert len(parts[4]) == 8


def test_share_tampered_checksum():
    formatted = dealing.format_share("abcd1234abcd1234", 1, 0x1a2)
    parts = formatted.split(':')
    parts[3] = 'ff'
    tampered = ':'.join(parts)

    try:
        dealing.parse_share(tampered)
        assert False, "Should have raised ShareError for tampered share"
    except ShareError as e:
        assert "checksum" in str(e).lower()


def test_share_malformed():
    for bad in ("", "PACKED_SHARE_v1:abc:001", "OTHER_v1:abc:001:ff:00000000",
                "PACKED_SHARE_v1:abc:xyz:ff:00000000"):
        try:
            dealing.parse_share(bad)
            assert False, f"Accepted {bad!r}"
        except ShareError:
            pass


def test_dealing_id_random():
    """Ids are fresh random hex, not derived from anything shared."""
    ids = {dealing.new_dealing_id() for _ in range(50)}
    assert len(ids) == 50
    for did in ids:
        assert len(did) == 16
        int(did, 16)
    assert len(inspect.signature(dealing.new_dealing_id).parameters) == 0


# ==========================================================================
# Pipeline Tests
# ==========================================================================

def test_pipeline_basic():
    record, shares = dealing.deal(PSS_4_26_3, [5, 6, 7])
    assert len(shares) == 26
    assert record.scheme == PSS_4_26_3
    assert record.metadata['secret_count'] == 3

    recovered = dealing.recover(shares[:8], record)
    assert recovered == [5, 6, 7]


def test_pipeline_any_subset():
    record, shares = dealing.deal(PSS_4_26_3, [11, 22, 33])
    for start in range(0, 19, 3):
        subset = shares[start:start + 8]
        assert dealing.recover(subset, record) == [11, 22, 33]


def test_pipeline_fixed_randomness():
    record_1, shares_1 = dealing.deal(PSS_4_8_3, [1, 2, 3], rng=FixedRandomSource([8] * 4))
    record_2, shares_2 = dealing.deal(PSS_4_8_3, [1, 2, 3], rng=FixedRandomSource([8] * 4))
    values_1 = [dealing.parse_share(s)[2] for s in shares_1]
    values_2 = [dealing.parse_share(s)[2] for s in shares_2]
    assert values_1 == values_2

    # same share values, unrelated ids
    assert record_1.dealing_id != record_2.dealing_id
    assert dealing.parse_share(shares_1[0])[0] == record_1.dealing_id


def test_pipeline_insufficient_shares_fails():
    record, shares = dealing.deal(PSS_4_26_3, [5, 6, 7])
    try:
        dealing.recover(shares[:7], record)
        assert False, "Should have raised ShareError"
    except ShareError:
        pass


def test_pipeline_mixed_shares_rejected():
    record_1, shares_1 = dealing.deal(PSS_4_26_3, [1, 2, 3])
    record_2, shares_2 = dealing.deal(PSS_4_26_3, [4, 5, 6])

    try:
        dealing.recover(shares_1[:7] + shares_2[7:8], record_1)
        assert False, "Should have raised ShareError (mixed shares)"
    except ShareError as e:
        assert "mix" in str(e).lower()


def test_pipeline_wrong_dealing_rejected():
    record_1, shares_1 = dealing.deal(PSS_4_26_3, [1, 2, 3])
    record_2, _ = dealing.deal(PSS_4_26_3, [4, 5, 6])
    try:
        dealing.recover(shares_1[:8], record_2)
        assert False, "Should have raised ShareError"
    except ShareError:
        pass


def test_pipeline_duplicate_shares_rejected():
    record, shares = dealing.deal(PSS_4_26_3, [1, 2, 3])
    try:
        dealing.recover(shares[:7] + shares[:1], record)
        assert False, "Should have raised ShareError"
    except ShareError:
        pass


def test_pipeline_verify_shares():
    record, shares = dealing.deal(PSS_4_26_3, [1, 2, 3])
    result = dealing.verify_shares(shares)
    assert result['valid'] is True
    assert result['share_count'] == 26
    assert result['dealing_id'] == record.dealing_id
    assert result['indices'] == list(range(26))


def test_pipeline_verify_reports_errors():
    _, shares_1 = dealing.deal(PSS_4_26_3, [1, 2, 3])
    _, shares_2 = dealing.deal(PSS_4_26_3, [4, 5, 6])
    result = dealing.verify_shares([shares_1[0], shares_2[1], "garbage", shares_1[0]])
    assert result['valid'] is False
    assert result['share_count'] == 1
    assert len(result['errors']) == 3


def test_pipeline_json_serialization():
    record, _ = dealing.deal(PSS_4_26_3, [1, 2, 3], label="test-label")
    data = json.loads(record.to_json())
    assert data['version'] == 'packed_dealing_v1'
    assert data['dealing_id'] == record.dealing_id
    assert data['reconstruct_limit'] == 8
    assert data['scheme']['prime'] == 433
    assert data['metadata']['label'] == 'test-label'

    restored = dealing.Dealing.from_dict(data)
    assert restored.scheme == PSS_4_26_3
    assert restored.dealing_id == record.dealing_id


def test_pipeline_unknown_version():
    data = dealing.deal(PSS_4_26_3, [1, 2, 3])[0].to_dict()
    data['version'] = 'packed_dealing_v0'
    try:
        dealing.Dealing.from_dict(data)
        assert False, "Should have raised ShareError"
    except ShareError:
        pass


def test_pipeline_save_and_load():
    record, shares = dealing.deal(PSS_4_26_3, [42, 0, 7])

    with tempfile.TemporaryDirectory() as tmpdir:
        files = dealing.save_dealing(record, tmpdir)
        share_files = dealing.save_shares(shares, os.path.join(tmpdir, 'shares'))
        assert len(share_files) == 26
        assert Path(share_files[0]).name == 'share_000.txt'

        loaded = dealing.load_dealing(files['directory'])
        loaded_shares = dealing.load_shares(share_files[10:18])

        assert dealing.recover(loaded_shares, loaded) == [42, 0, 7]


# ==========================================================================
# CLI Tests
# ==========================================================================

def _only_dealing_dir(root: str) -> str:
    entries = [p for p in Path(root).iterdir() if p.is_dir()]
    assert len(entries) == 1
    return str(entries[0])


def test_cli_share_and_reconstruct():
    with tempfile.TemporaryDirectory() as tmpdir:
        rc = cli.main(['share', '--preset', 'PSS_4_26_3', '--values', '5', '6', '7',
                       '--output', tmpdir, '--label', 'cli-test'])
        assert rc == 0

        dealing_dir = _only_dealing_dir(tmpdir)
        share_files = sorted(str(p) for p in Path(dealing_dir, 'shares').iterdir())
        assert len(share_files) == 26

        assert cli.main(['reconstruct', '--dealing', dealing_dir,
                         '--shares'] + share_files[3:11]) == 0
        assert cli.main(['reconstruct', '--dealing', dealing_dir,
                         '--shares'] + share_files[:7]) == 1
        assert cli.main(['verify', '--shares'] + share_files) == 0
        assert cli.main(['inspect', '--dealing', dealing_dir]) == 0


def test_cli_share_generated_parameters():
    with tempfile.TemporaryDirectory() as tmpdir:
        rc = cli.main(['share', '-t', '4', '-k', '3', '-n', '26', '--min-size', '200',
                       '--values', '1', '--pad', '--output', tmpdir])
        assert rc == 0
        record = dealing.load_dealing(_only_dealing_dir(tmpdir))
        assert record.scheme == PSS_4_26_3


def test_cli_share_rejects_bad_input():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert cli.main(['share', '--preset', 'PSS_4_26_3', '--values', '5', '6',
                         '--output', tmpdir]) == 1
        assert cli.main(['share', '--preset', 'nope', '--values', '5', '6', '7',
                         '--output', tmpdir]) == 1
        assert cli.main(['share', '-t', '4', '-k', '4', '-n', '26', '--values', '1',
                         '--pad', '--output', tmpdir]) == 1
        assert list(Path(tmpdir).iterdir()) == []


def test_cli_params_and_presets():
    assert cli.main(['params', '-t', '4', '-k', '3', '-n', '26', '--min-size', '200']) == 0
    assert cli.main(['params', '-t', '4', '-k', '4', '-n', '26']) == 1
    assert cli.main(['presets']) == 0
    assert cli.main([]) == 1


def test_cli_missing_dealing():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert cli.main(['inspect', '--dealing', tmpdir]) == 1


# ==========================================================================
# Runner
# ==========================================================================

def run_all():
    tests = [
        # Share format
        test_share_format_roundtrip,
        test_share_format_layout,
        test_share_tampered_checksum,
        test_share_malformed,
        test_dealing_id_random,
        # Pipeline
        test_pipeline_basic,
        test_pipeline_any_subset,
        test_pipeline_fixed_randomness,
        test_pipeline_insufficient_shares_fails,
        test_pipeline_mixed_shares_rejected,
        test_pipeline_wrong_dealing_rejected,
        test_pipeline_duplicate_shares_rejected,
        test_pipeline_verify_shares,
        test_pipeline_verify_reports_errors,
        test_pipeline_json_serialization,
        test_pipeline_unknown_version,
        test_pipeline_save_and_load,
        # CLI
        test_cli_share_and_reconstruct,
        test_cli_share_generated_parameters,
        test_cli_share_rejects_bad_input,
        test_cli_params_and_presets,
        test_cli_missing_dealing,
    ]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            print(f"[PASS] {t.__name__}")
            passed += 1
        except Exception as e:
            print(f"[FAIL] {t.__name__}: {e}")
            import traceback
            traceback.print_exc()
            failed += 1

    print(f"\n--- Dealing tests: {passed} passed, {failed} failed ---")
    return failed == 0


if __name__ == "__main__":
    sys.exit(0 if run_all() else 1)
