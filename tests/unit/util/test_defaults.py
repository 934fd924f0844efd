import unittest

from topicq.util.defaults import DEFAULT_LOG_CONFIG, EXITCODES


class TestEXITCODES(unittest.TestCase):

    def test_values(self):
        self.assertEqual(EXITCODES.SUCCESS, 0)
        self.assertEqual(EXITCODES.ERROR, 1)
        self.assertEqual(EXITCODES.CONFIGURATION_ERROR, 2)
        self.assertEqual(EXITCODES.PIPELINE_ERROR, 3)

    def test_from_bytes(self):
        bytes_obj = b"\x03"
        result = EXITCODES.from_bytes(bytes_obj, byteorder="big")
        self.assertEqual(result, EXITCODES.PIPELINE_ERROR)


class TestDefaultLogConfig(unittest.TestCase):

    def test_root_logs_to_queue(self):
        self.assertEqual(DEFAULT_LOG_CONFIG["loggers"]["root"]["handlers"], ["queue"])

    def test_console_logger_uses_console_handler(self):
        self.assertEqual(DEFAULT_LOG_CONFIG["loggers"]["console"]["handlers"], ["console"])


if __name__ == "__main__":
    unittest.main()
