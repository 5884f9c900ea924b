import io
import os
import unittest
from unittest.mock import patch
from PIL import Image
from modules.core.error_handler import ImageProcessingError
from modules.services.image_utils import (
    ImageFile, compress_image, calculate_dimensions, format_file_size,
    create_thumbnail, to_data_uri, parse_data_uri
)

def make_image(width, height, fmt='JPEG', noise=True, quality=95):
    if noise:
        img = Image.frombytes('RGB', (width, height), os.urandom(width * height * 3))
    else:
        img = Image.new('RGB', (width, height), color=(200, 120, 40))
    buffer = io.BytesIO()
    if fmt == 'JPEG':
        img.save(buffer, format=fmt, quality=quality)
    else:
        img.save(buffer, format=fmt)
    return buffer.getvalue()

class TestCompressImage(unittest.TestCase):
    def test_small_image_returned_unchanged(self):
        """Images under the limit come back as the very same object"""
        data = make_image(50, 50, noise=False)
        image = ImageFile(name='small.jpg', content_type='image/jpeg', data=data)
        result = compress_image(image, max_size_mb=5)
        self.assertIs(result, image)
        self.assertEqual(result.data, data)

    def test_large_image_resized_to_tier(self):
        data = make_image(2000, 1000)
        image = ImageFile(name='large.jpg', content_type='image/jpeg', data=data)
        result = compress_image(image, max_size_mb=0.01)

        decoded = Image.open(io.BytesIO(result.data))
        self.assertEqual(decoded.size, (1200, 600))
        self.assertEqual(result.content_type, 'image/jpeg')
        self.assertEqual(result.size, len(result.data))

    def test_quality_recursion_stops_at_minimum(self):
        """Quality drops by 0.1 per pass and the last result is accepted"""
        image = ImageFile(name='noise.jpg', content_type='image/jpeg', data=make_image(100, 100))
        qualities = []

        def fake_encode(img, pil_format, quality):
            qualities.append(quality)
            return b'0' * 10000

        with patch('modules.services.image_utils._encode', side_effect=fake_encode):
            result = compress_image(image, max_size_mb=0.001, quality=0.7)

        self.assertEqual(qualities, [0.7, 0.6, 0.5, 0.4, 0.3])
        self.assertEqual(result.size, 10000)

    def test_encode_failure_returns_original(self):
        image = ImageFile(name='noise.jpg', content_type='image/jpeg', data=make_image(100, 100))
        with patch('modules.services.image_utils._encode', side_effect=OSError("encoder broke")):
            result = compress_image(image, max_size_mb=0.001)
        self.assertIs(result, image)

    def test_undecodable_input_raises(self):
        image = ImageFile(name='bad.jpg', content_type='image/jpeg', data=b'not an image' * 1000)
        with self.assertRaises(ImageProcessingError):
            compress_image(image, max_size_mb=0.001)

class TestImageHelpers(unittest.TestCase):
    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), '0 Bytes')
        self.assertEqual(format_file_size(500), '500 Bytes')
        self.assertEqual(format_file_size(1536), '1.5 KB')
        self.assertEqual(format_file_size(1024 * 1024), '1 MB')
        self.assertEqual(format_file_size(int(2.25 * 1024 ** 3)), '2.25 GB')

    def test_calculate_dimensions(self):
        self.assertEqual(calculate_dimensions(4000, 3000, 5), (2400, 1800))
        self.assertEqual(calculate_dimensions(1000, 3000, 1), (400, 1200))
        self.assertEqual(calculate_dimensions(3600, 1800, 2), (1800, 900))
        self.assertEqual(calculate_dimensions(800, 600, 5), (800, 600))

    def test_create_thumbnail(self):
        image = ImageFile(name='wide.png', content_type='image/png', data=make_image(400, 200, fmt='PNG', noise=False))
        thumbnail = create_thumbnail(to_data_uri(image))

        self.assertTrue(thumbnail.startswith('data:image/jpeg;base64,'))
        _, data = parse_data_uri(thumbnail)
        self.assertEqual(Image.open(io.BytesIO(data)).size, (100, 50))

    def test_create_thumbnail_invalid_input(self):
        self.assertIsNone(create_thumbnail('data:image/png;base64,AAAA'))
        self.assertIsNone(create_thumbnail('https://example.com/image.png'))

    def test_parse_data_uri(self):
        content_type, data = parse_data_uri('data:image/png;base64,aGVsbG8=')
        self.assertEqual(content_type, 'image/png')
        self.assertEqual(data, b'hello')

        with self.assertRaises(ImageProcessingError):
            parse_data_uri('https://example.com/image.png')

    def test_image_file_extension(self):
        image = ImageFile(name='Photo.PNG', content_type='image/png', data=b'123')
        self.assertEqual(image.extension, 'png')
        self.assertEqual(image.size, 3)

if __name__ == '__main__':
    unittest.main()
