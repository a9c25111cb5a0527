import unittest
import tempfile
import os
import sys
import random

from frequency import MarkerPair, analyze, build_histogram, select_markers
from encoder import (Base254Encoder, EncodingStats, encode, encode_with_markers,
                     encoded_size, worst_case_size)
from decoder import Base254Decoder, ScanState, decode, decode_bounded, release
from format import (Base254Error, Base254Header, DecodedResult, InvalidMarkerError,
                    MalformedHeaderError, TruncatedInputError, MAGIC)
from envelope import Envelope
from main import main


def random_samples(count=20, max_length=2000, seed=42):
    rng = random.Random(seed)
    for _ in range(count):
        length = rng.randint(0, max_length)
        yield bytes(rng.randint(0, 255) for _ in range(length))


class TestFrequencyAnalyzer(unittest.TestCase):
    def test_histogram_counts(self):
        histogram = build_histogram(b"\x00\x00AAB")
        self.assertEqual(len(histogram), 256)
        self.assertEqual(histogram[0], 2)
        self.assertEqual(histogram[ord('A')], 2)
        self.assertEqual(histogram[ord('B')], 1)
        self.assertEqual(sum(histogram), 5)

    def test_empty_input(self):
        self.assertEqual(analyze(b""), MarkerPair(1, 1))

    def test_unused_byte_is_sentinel(self):
        markers = analyze(b"\x00\x02\x03hello")
        self.assertEqual(markers, MarkerPair(1, 1))
        self.assertFalse(markers.needs_escape)

    def test_every_value_used_once(self):
        markers = analyze(bytes(range(256)))
        self.assertEqual(markers, MarkerPair(1, 2))
        self.assertTrue(markers.needs_escape)

    def test_least_and_second_least(self):
        histogram = [5] * 256
        histogram[200] = 1
        histogram[100] = 2
        histogram[50] = 2
        self.assertEqual(select_markers(histogram), MarkerPair(200, 50))

    def test_zero_never_selected(self):
        histogram = [3] * 256
        histogram[0] = 0
        self.assertEqual(select_markers(histogram), MarkerPair(1, 2))

    def test_lowest_value_wins_ties(self):
        histogram = [4] * 256
        histogram[9] = 0
        histogram[3] = 0
        self.assertEqual(select_markers(histogram), MarkerPair(3, 3))

    def test_markers_in_range(self):
        for data in random_samples():
            markers = analyze(data)
            self.assertTrue(1 <= markers.null_replacement <= 255)
            self.assertTrue(1 <= markers.escape_byte <= 255)

    def test_bad_histogram(self):
        with self.assertRaises(ValueError):
            select_markers([0] * 10)


class TestEncoder(unittest.TestCase):
    def test_example_without_escaping(self):
        encoded = encode_with_markers(b"\x00AA", 0x01, 0x02)
        self.assertEqual(encoded, b"b\xfe\x01\x02\x01AA\x00")

    def test_example_with_escaping(self):
        encoded = encode_with_markers(b"\x05\x05", 0x05, 0x06)
        self.assertEqual(encoded, b"b\xfe\x05\x06\x06\x05\x06\x05\x00")

    def test_empty(self):
        self.assertEqual(encode(b""), b"b\xfe\x01\x01\x00")

    def test_all_byte_values(self):
        data = bytes(range(256))
        encoded = encode(data)
        self.assertEqual(encoded[:6], b"b\xfe\x01\x02\x01\x02")
        self.assertEqual(len(encoded), 4 + 256 + 2 + 1)

    def test_single_terminator(self):
        samples = list(random_samples()) + [b"\x00" * 500, bytes(range(256)) * 3]
        for data in samples:
            encoded = encode(data)
            self.assertEqual(encoded.count(0), 1)
            self.assertEqual(encoded[-1], 0)

    def test_exact_size(self):
        for data in random_samples(count=5):
            markers = analyze(data)
            encoded = encode(data)
            self.assertEqual(len(encoded), encoded_size(data, markers))
            self.assertLessEqual(len(encoded), worst_case_size(len(data)))

    def test_invalid_markers(self):
        with self.assertRaises(InvalidMarkerError):
            encode_with_markers(b"data", 0, 2)
        with self.assertRaises(InvalidMarkerError):
            encode_with_markers(b"data", 1, 256)
        with self.assertRaises(ValueError):
            Base254Encoder(null_replacement=0, escape_byte=1)

    def test_markers_given_together(self):
        with self.assertRaises(ValueError):
            Base254Encoder(null_replacement=1)

    def test_fixed_markers(self):
        encoder = Base254Encoder(null_replacement=0x10, escape_byte=0x11)
        encoded = encoder.encode(b"\x00\x10\x11\x12")
        self.assertEqual(encoded, b"b\xfe\x10\x11\x10\x11\x10\x11\x11\x12\x00")

    def test_shared_marker_present_in_data(self):
        with self.assertRaises(InvalidMarkerError):
            encode_with_markers(b"\x05A", 5, 5)
        with self.assertRaises(InvalidMarkerError):
            Base254Encoder(null_replacement=7, escape_byte=7).encode(b"\x00\x07")

    def test_shared_marker_absent_from_data(self):
        encoded = encode_with_markers(b"A", 5, 5)
        self.assertEqual(encoded, b"b\xfe\x05\x05A\x00")
        with decode(encoded) as result:
            self.assertEqual(result.data, b"A")

        encoded = encode_with_markers(b"\x00A\x00", 5, 5)
        with decode(encoded) as result:
            self.assertEqual(result.data, b"\x00A\x00")

    def test_stats(self):
        stats = EncodingStats(b"\x00AA\x01", MarkerPair(1, 2))
        self.assertEqual(stats.null_count, 1)
        self.assertEqual(stats.escape_count, 1)
        self.assertEqual(stats.encoded_size, len(encode_with_markers(b"\x00AA\x01", 1, 2)))


class TestDecoder(unittest.TestCase):
    def test_example_without_escaping(self):
        result = decode(b"b\xfe\x01\x02\x01AA\x00")
        self.assertEqual(result.data, b"\x00AA")
        self.assertEqual(result.size, 3)
        release(result)

    def test_example_with_escaping(self):
        result = decode(b"b\xfe\x05\x06\x06\x05\x06\x05\x00")
        self.assertEqual(result.data, b"\x05\x05")
        self.assertEqual(result.size, 2)
        release(result)

    def test_round_trip(self):
        samples = [b"", b"\x00", b"\x00" * 300, bytes(range(256)) * 4,
                   bytes(range(1, 256)) * 2]
        samples.extend(random_samples())
        for data in samples:
            with decode(encode(data)) as result:
                self.assertEqual(result.size, len(data))
                self.assertEqual(result.data, data)

    def test_sentinel_disables_escaping(self):
        result = decode(b"b\xfe\x07\x07\x07A\x07\x00")
        self.assertEqual(result.data, b"\x00A\x00")
        release(result)

    def test_malformed_header(self):
        for buffer in (b"xx\x01\x02A\x00", b"b\xff", b"\x00\x00", b"B\xfe\x01\x01\x00"):
            with self.assertRaises(MalformedHeaderError):
                decode(buffer)

    def test_malformed_header_is_value_error(self):
        with self.assertRaises(ValueError):
            decode(b"not base254")
        with self.assertRaises(Base254Error):
            decode(b"not base254")

    def test_zero_marker_rejected(self):
        with self.assertRaises(MalformedHeaderError):
            decode(b"b\xfe\x00\x02A\x00")
        with self.assertRaises(MalformedHeaderError):
            decode(b"b\xfe\x01\x00A\x00")

    def test_short_limits(self):
        encoded = encode(b"hello\x00world")
        for limit in (1, 2, 3):
            with self.assertRaises(TruncatedInputError):
                decode_bounded(encoded, limit)

    def test_short_buffers(self):
        for buffer in (b"", b"b", b"b\xfe", b"b\xfe\x01"):
            with self.assertRaises(TruncatedInputError):
                decode(buffer)

    def test_truncated_escape_pair(self):
        with self.assertRaises(TruncatedInputError):
            decode(b"b\xfe\x01\x02A\x02\x00")

    def test_missing_terminator(self):
        with self.assertRaises(TruncatedInputError):
            decode(b"b\xfe\x01\x02AB")

    def test_limit_at_buffer_end(self):
        with decode_bounded(b"b\xfe\x01\x02AB", 6) as result:
            self.assertEqual(result.data, b"AB")

    def test_limit_past_buffer_end(self):
        with self.assertRaises(TruncatedInputError):
            decode_bounded(b"b\xfe\x01\x02AB", 10)
        with decode_bounded(b"b\xfe\x01\x02AB\x00", 10) as result:
            self.assertEqual(result.data, b"AB")

    def test_limit_stops_scan(self):
        encoded = encode_with_markers(b"ABCDEF", 1, 2)
        with decode_bounded(encoded, 7) as result:
            self.assertEqual(result.data, b"ABC")
            self.assertEqual(result.size, 3)

    def test_limit_splitting_escape_pair(self):
        encoded = encode_with_markers(b"A\x01B", 1, 2)
        with self.assertRaises(TruncatedInputError):
            decode_bounded(encoded, 6)

    def test_zero_limit_means_unbounded(self):
        encoded = encode(b"\x00abc\x00")
        with decode_bounded(encoded, 0) as result:
            self.assertEqual(result.data, b"\x00abc\x00")

    def test_negative_limit(self):
        with self.assertRaises(ValueError):
            decode_bounded(encode(b"x"), -1)

    def test_bytearray_input(self):
        with decode(bytearray(encode(b"\x00\xff\x01"))) as result:
            self.assertEqual(result.data, b"\x00\xff\x01")

    def test_decoder_exposes_header(self):
        decoder = Base254Decoder(b"b\xfe\x05\x06\x06\x05\x00")
        self.assertEqual(decoder.header.markers, MarkerPair(5, 6))
        self.assertEqual(ScanState.NORMAL, 0)


class TestDecodedResult(unittest.TestCase):
    def test_release_once(self):
        result = decode(encode(b"abc"))
        release(result)
        self.assertTrue(result.released)
        with self.assertRaises(ValueError):
            release(result)
        with self.assertRaises(ValueError):
            result.data

    def test_with_block_releases(self):
        with decode(encode(b"abc")) as result:
            self.assertFalse(result.released)
        self.assertTrue(result.released)

    def test_release_inside_with_block(self):
        with decode(encode(b"abc")) as result:
            result.release()
        self.assertTrue(result.released)

    def test_explicit_size(self):
        result = DecodedResult(b"\x00\x00", 2)
        self.assertEqual(result.size, 2)
        release(result)
        self.assertEqual(result.size, 0)

    def test_repr_hides_payload(self):
        result = DecodedResult(b"secret", 6)
        self.assertNotIn("secret", repr(result))
        self.assertIn("size=6", repr(result))
        release(result)
        self.assertIn("released", repr(result))


class TestHeader(unittest.TestCase):
    def test_serialize(self):
        header = Base254Header(MarkerPair(3, 4))
        self.assertEqual(header.serialize(), b"b\xfe\x03\x04")
        self.assertEqual(header.serialize()[:2], MAGIC)

    def test_deserialize(self):
        header = Base254Header.deserialize(b"b\xfe\x03\x04rest")
        self.assertEqual(header.null_replacement, 3)
        self.assertEqual(header.escape_byte, 4)
        self.assertIn("0x03", repr(header))


class TestEnvelope(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.envelope = Envelope()

    def tearDown(self):
        import shutil
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write(self, name, data):
        path = os.path.join(self.temp_dir, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_encode_decode_file(self):
        data = bytes(range(256)) * 10 + b"\x00" * 50
        source = self._write("blob.bin", data)

        stats = self.envelope.encode_file(source)
        encoded_path = source + ".b254"
        self.assertTrue(os.path.isfile(encoded_path))
        self.assertEqual(os.path.getsize(encoded_path), stats.encoded_size)

        decoded_path = os.path.join(self.temp_dir, "out", "blob.bin")
        size = self.envelope.decode_file(encoded_path, decoded_path)
        self.assertEqual(size, len(data))
        with open(decoded_path, 'rb') as f:
            self.assertEqual(f.read(), data)

    def test_encode_creates_output_directory(self):
        source = self._write("nested.bin", b"\x00nested\x00")
        output = os.path.join(self.temp_dir, "a", "b", "nested.b254")
        self.envelope.encode_file(source, output)
        self.assertTrue(os.path.isfile(output))

        decoded = os.path.join(self.temp_dir, "c", "nested.bin")
        self.envelope.decode_file(output, decoded)
        with open(decoded, 'rb') as f:
            self.assertEqual(f.read(), b"\x00nested\x00")

    def test_default_decode_output(self):
        self.assertEqual(Envelope.default_output("a/x.png.b254", decoding=True), "a/x.png")
        self.assertEqual(Envelope.default_output("a/x.bin", decoding=True), "a/x.bin.out")

    def test_fixed_markers(self):
        source = self._write("small.bin", b"\x00AA")
        output = os.path.join(self.temp_dir, "small.b254")
        Envelope(null_replacement=1, escape_byte=2).encode_file(source, output)
        with open(output, 'rb') as f:
            self.assertEqual(f.read(), b"b\xfe\x01\x02\x01AA\x00")

    def test_inspect_file(self):
        source = self._write("text.txt", b"hello\x00world")
        self.envelope.encode_file(source)
        header = self.envelope.inspect_file(source + ".b254")
        self.assertEqual(header.markers, analyze(b"hello\x00world"))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.envelope.encode_file(os.path.join(self.temp_dir, "missing.bin"))

    def test_decode_malformed_file(self):
        source = self._write("bad.b254", b"not an envelope\x00")
        with self.assertRaises(MalformedHeaderError):
            self.envelope.decode_file(source)


class TestCommandLine(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_encode_and_decode(self):
        source = os.path.join(self.temp_dir, "data.bin")
        encoded = os.path.join(self.temp_dir, "data.b254")
        decoded = os.path.join(self.temp_dir, "data.out")
        with open(source, 'wb') as f:
            f.write(b"\x00\x01\x02binary\x00")

        main(['encode', source, '-o', encoded, '--stats'])
        main(['decode', encoded, '-o', decoded])
        main(['info', encoded])

        with open(decoded, 'rb') as f:
            self.assertEqual(f.read(), b"\x00\x01\x02binary\x00")

    def test_error_exit(self):
        with self.assertRaises(SystemExit) as ctx:
            main(['decode', os.path.join(self.temp_dir, "missing.b254")])
        self.assertEqual(ctx.exception.code, 1)

    def test_bad_marker_argument(self):
        source = os.path.join(self.temp_dir, "data.bin")
        with open(source, 'wb') as f:
            f.write(b"abc")
        with self.assertRaises(SystemExit):
            main(['encode', source, '--null-byte', '0', '--escape-byte', '2'])


def run_tests():
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestFrequencyAnalyzer))
    suite.addTests(loader.loadTestsFromTestCase(TestEncoder))
    suite.addTests(loader.loadTestsFromTestCase(TestDecoder))
    suite.addTests(loader.loadTestsFromTestCase(TestDecodedResult))
    suite.addTests(loader.loadTestsFromTestCase(TestHeader))
    suite.addTests(loader.loadTestsFromTestCase(TestEnvelope))
    suite.addTests(loader.loadTestsFromTestCase(TestCommandLine))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
