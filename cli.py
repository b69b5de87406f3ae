#!/usr/bin/env python3
"""
Packed Sharing CLI: share many secrets at once, recover them from any quorum.

Usage:
    cli.py share --preset PSS_4_26_3 --values 5 6 7 [--output ./dealings/]
    cli.py share -t 4 -k 3 -n 26 --values 5 6 7 [--output ./dealings/]
    cli.py reconstruct --dealing ./dealings/<id>/ --shares s0.txt s1.txt ...
    cli.py verify --shares s0.txt s1.txt ...
    cli.py inspect --dealing ./dealings/<id>/
    cli.py params -t 4 -k 3 -n 26 [--min-size 200]
    cli.py presets
"""

import argparse
import logging
import os
import sys

from packed_sharing import dealing, paramgen
from packed_sharing.packed import PRESETS, PackedSecretSharing, get_preset

DEFAULT_PRESET = os.environ.get('PACKED_SHARING_PRESET', 'PSS_4_26_3')


def _scheme_from_args(args) -> PackedSecretSharing:
    """Preset, explicit parameters, or parameter search, in that order."""
    sizes = (args.threshold, args.secrets, args.shares)
    if all(s is None for s in sizes):
        return get_preset(args.preset or DEFAULT_PRESET)
    if any(s is None for s in sizes):
        raise ValueError("--threshold, --secrets and --shares go together")

    roots = (args.prime, args.omega_secrets, args.omega_shares)
    if all(r is not None for r in roots):
        return PackedSecretSharing(
            threshold=args.threshold,
            share_count=args.shares,
            secret_count=args.secrets,
            prime=args.prime,
            omega_secrets=args.omega_secrets,
            omega_shares=args.omega_shares,
        )
    if any(r is not None for r in roots):
        raise ValueError("--prime, --omega-secrets and --omega-shares go together")

    return paramgen.new_scheme(args.threshold, args.secrets, args.shares,
                               min_size=args.min_size)


def cmd_share(args):
    """Share a vector of secrets."""
    try:
        scheme = _scheme_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    secrets = list(args.values)
    if len(secrets) < scheme.secret_count and args.pad:
        secrets += [0] * (scheme.secret_count - len(secrets))

    print(f"Sharing {len(secrets)} secrets: {scheme.reconstruct_limit}-of-{scheme.share_count}, "
          f"threshold {scheme.threshold}, GF({scheme.prime})")

    try:
        record, shares = dealing.deal(scheme, secrets, label=args.label)
    except ValueError as e:
        print(f"Sharing FAILED: {e}", file=sys.stderr)
        return 1

    print(f"Dealing ID: {record.dealing_id}")

    output_dir = args.output or '.'
    files = dealing.save_dealing(record, output_dir)
    share_files = dealing.save_shares(shares, os.path.join(files['directory'], 'shares'))

    print(f"\nDealing saved to: {files['directory']}/")
    print(f"  Metadata:    dealing.json")
    print(f"  Shares:      shares/ ({len(share_files)} files)")
    print(f"\nAny {scheme.reconstruct_limit} of {scheme.share_count} shares recover the secrets.")

    if args.print_shares:
        print(f"\nShares:")
        for i, s in enumerate(shares):
            print(f"  [{i}] {s}")

    return 0


def cmd_reconstruct(args):
    """Recover the secrets from shares + dealing record."""
    try:
        record = dealing.load_dealing(args.dealing)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load dealing {args.dealing}: {e}", file=sys.stderr)
        return 1

    shares = dealing.load_shares(args.shares)
    print(f"Reconstructing with {len(shares)} shares "
          f"(limit: {record.scheme.reconstruct_limit})")

    try:
        secrets = dealing.recover(shares, record)
    except ValueError as e:
        print(f"Reconstruction FAILED: {e}", file=sys.stderr)
        return 1

    print("Secrets: " + ' '.join(str(s) for s in secrets))
    return 0


def cmd_verify(args):
    """Verify shares without reconstructing."""
    shares = dealing.load_shares(args.shares)
    result = dealing.verify_shares(shares)

    print(f"Valid:       {result['valid']}")
    print(f"Dealing ID:  {result['dealing_id']}")
    print(f"Shares:      {result['share_count']}")
    print(f"Indices:     {result['indices']}")

    if result['errors']:
        print(f"\nErrors:")
        for e in result['errors']:
            print(f"  {e}")

    return 0 if result['valid'] else 1


def cmd_inspect(args):
    """Inspect a dealing directory."""
    try:
        record = dealing.load_dealing(args.dealing)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load dealing {args.dealing}: {e}", file=sys.stderr)
        return 1

    scheme = record.scheme
    print(f"Dealing:       {record.dealing_id}")
    print(f"Secrets:       {scheme.secret_count}")
    print(f"Shares:        {scheme.share_count}")
    print(f"Threshold:     {scheme.threshold}")
    print(f"Reconstruct:   {scheme.reconstruct_limit} shares")
    print(f"Field:         GF({scheme.prime})")
    print(f"Roots:         omega_secrets={scheme.omega_secrets} "
          f"omega_shares={scheme.omega_shares}")
    print(f"Created:       {record.created_at}")
    if record.metadata.get('label'):
        print(f"Label:         {record.metadata['label']}")

    shares_dir = os.path.join(args.dealing, 'shares')
    if os.path.isdir(shares_dir):
        count = len([f for f in os.listdir(shares_dir) if f.startswith('share_')])
        print(f"\n{count} shares still on disk: distribute and delete!")

    return 0


def cmd_params(args):
    """Search for a field and roots of unity for the given sizes."""
    try:
        scheme = paramgen.new_scheme(args.threshold, args.secrets, args.shares,
                                     min_size=args.min_size)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"prime:          {scheme.prime}")
    print(f"omega_secrets:  {scheme.omega_secrets}")
    print(f"omega_shares:   {scheme.omega_shares}")
    return 0


def cmd_presets(args):
    """List the built-in configurations."""
    for name, scheme in PRESETS.items():
        marker = '*' if name == DEFAULT_PRESET.upper() else ' '
        print(f"{marker} {name:<20} t={scheme.threshold:<4} k={scheme.secret_count:<4} "
              f"n={scheme.share_count:<6} p={scheme.prime}")
    return 0


def _add_scheme_args(p):
    p.add_argument('--preset', '-p', help=f'Preset name (default: {DEFAULT_PRESET})')
    p.add_argument('--threshold', '-t', type=int, help='Security threshold')
    p.add_argument('--secrets', '-k', type=int, help='Secrets per share vector')
    p.add_argument('--shares', '-n', type=int, help='Number of shares')
    p.add_argument('--prime', type=int, help='Field prime')
    p.add_argument('--omega-secrets', type=int, help='Root of unity for the secrets')
    p.add_argument('--omega-shares', type=int, help='Root of unity for the shares')
    p.add_argument('--min-size', type=int, help='Lower bound for a generated prime')


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Packed Sharing: many secrets, one share vector.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Share three secrets 26 ways (any 8 recover them)
  %(prog)s share --preset PSS_4_26_3 --values 5 6 7 --output ./dealings/

  # Recover from 8 shares
  %(prog)s reconstruct --dealing ./dealings/<id>/ --shares s0.txt ... s7.txt

  # Find parameters for a new configuration
  %(prog)s params -t 155 -k 100 -n 728
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command', help='Command')

    p_share = sub.add_parser('share', help='Share a vector of secrets')
    _add_scheme_args(p_share)
    p_share.add_argument('--values', type=int, nargs='+', required=True, help='Secrets')
    p_share.add_argument('--pad', action='store_true', help='Pad missing secrets with zeros')
    p_share.add_argument('--output', '-o', help='Output directory (default: current)')
    p_share.add_argument('--label', '-l', help='Human-readable label')
    p_share.add_argument('--print-shares', action='store_true', help='Print shares to stdout')

    p_rec = sub.add_parser('reconstruct', help='Recover secrets from shares')
    p_rec.add_argument('--dealing', '-d', required=True, help='Dealing directory or dealing.json')
    p_rec.add_argument('--shares', '-s', nargs='+', required=True, help='Share files')

    p_verify = sub.add_parser('verify', help='Verify shares without reconstructing')
    p_verify.add_argument('--shares', '-s', nargs='+', required=True, help='Share files')

    p_inspect = sub.add_parser('inspect', help='Inspect a dealing')
    p_inspect.add_argument('--dealing', '-d', required=True, help='Dealing directory')

    p_params = sub.add_parser('params', help='Generate field parameters')
    p_params.add_argument('--threshold', '-t', type=int, required=True, help='Security threshold')
    p_params.add_argument('--secrets', '-k', type=int, required=True, help='Secrets per share vector')
    p_params.add_argument('--shares', '-n', type=int, required=True, help='Number of shares')
    p_params.add_argument('--min-size', type=int, help='Lower bound for the prime')

    sub.add_parser('presets', help='List built-in configurations')

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s %(name)s %(levelname)s %(message)s')

    if not args.command:
        parser.print_help()
        return 1

    handlers = {
        'share': cmd_share,
        'reconstruct': cmd_reconstruct,
        'verify': cmd_verify,
        'inspect': cmd_inspect,
        'params': cmd_params,
        'presets': cmd_presets,
    }

    return handlers[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
