"""
Командная строка для base254.
"""

import argparse
import sys
from envelope import Envelope


def byte_value(text: str) -> int:
    value = int(text, 0)
    if not 1 <= value <= 255:
        raise argparse.ArgumentTypeError(f"byte value must be in range 1..255: {text}")
    return value


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Base254 - zero-terminator-safe envelope for binary data',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py encode image.png -o image.png.b254
  python main.py encode blob.bin --null-byte 0x01 --escape-byte 0x02
  python main.py decode image.png.b254 -o image.png
  python main.py info image.png.b254
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    encode_parser = subparsers.add_parser('encode', help='Encode a file')
    encode_parser.add_argument('file', help='File to encode')
    encode_parser.add_argument('-o', '--output', help='Output path (default: FILE.b254)')
    encode_parser.add_argument('--null-byte', type=byte_value, help='Fixed null replacement byte')
    encode_parser.add_argument('--escape-byte', type=byte_value, help='Fixed escape byte')
    encode_parser.add_argument('--no-verify', action='store_true', help='Skip the round-trip check')
    encode_parser.add_argument('--stats', action='store_true', help='Print encoding statistics')

    decode_parser = subparsers.add_parser('decode', help='Decode a file')
    decode_parser.add_argument('file', help='Encoded file')
    decode_parser.add_argument('-o', '--output', help='Output path')
    decode_parser.add_argument('--limit', type=int, help='Scan at most LIMIT bytes')

    info_parser = subparsers.add_parser('info', help='Show envelope header and sizes')
    info_parser.add_argument('file', help='Encoded file')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    try:
        if args.command == 'encode':
            envelope = Envelope(verify=not args.no_verify,
                                null_replacement=args.null_byte,
                                escape_byte=args.escape_byte)
            stats = envelope.encode_file(args.file, args.output)
            if args.stats:
                stats.print_stats()

        elif args.command == 'decode':
            Envelope().decode_file(args.file, args.output, args.limit)

        elif args.command == 'info':
            Envelope().inspect_file(args.file)

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
