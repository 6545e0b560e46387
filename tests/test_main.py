import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from slot_totp.base32 import encode_base32
from slot_totp.event_log import EventLog
from slot_totp.main import main


RFC_KEY = encode_base32(b"12345678901234567890")


class TestMain(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        env = {k: v for k, v in os.environ.items() if not k.startswith("SLOT_TOTP_")}
        env["SLOT_TOTP_DATA_DIR"] = self._tmp.name
        env["SLOT_TOTP_LENGTH"] = "8"
        self._env = mock.patch.dict(os.environ, env, clear=True)
        self._env.start()

    def tearDown(self):
        self._env.stop()
        self._tmp.cleanup()

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            rc = main(list(argv))
        return rc, out.getvalue().strip(), err.getvalue().strip()

    def test_new_key(self):
        rc, out, _ = self._run("new-key")
        self.assertEqual(rc, 0)
        self.assertRegex(out, r"^[A-Z2-7]{32}$")

        rc, out, _ = self._run("new-key", "--bytes", "10")
        self.assertEqual(rc, 0)
        self.assertEqual(len(out), 16)

    def test_code(self):
        rc, out, _ = self._run("code", "--key", RFC_KEY, "--at-ms", "59000")
        self.assertEqual(rc, 0)
        self.assertEqual(out, "94287082")

    def test_code_from_env_key(self):
        os.environ["SLOT_TOTP_KEY"] = RFC_KEY
        rc, out, _ = self._run("code", "--at-ms", "1111111109000")
        self.assertEqual(rc, 0)
        self.assertEqual(out, "07081804")

    def test_check(self):
        rc, out, _ = self._run("check", "07081804", "--key", RFC_KEY, "--at-ms", "1111111111000")
        self.assertEqual(rc, 0)
        self.assertEqual(out, "valid")

        os.environ["SLOT_TOTP_WINDOW"] = "0"
        rc, out, _ = self._run("check", "07081804", "--key", RFC_KEY, "--at-ms", "1111111111000")
        self.assertEqual(rc, 1)
        self.assertEqual(out, "invalid")

    def test_derivation_param(self):
        _, plain, _ = self._run("code", "--key", RFC_KEY, "--at-ms", "59000")
        rc, derived, _ = self._run("code", "--key", RFC_KEY, "--param", "user-1", "--at-ms", "59000")
        self.assertEqual(rc, 0)
        self.assertNotEqual(plain, derived)

        rc, _, _ = self._run("check", derived, "--key", RFC_KEY, "--param", "user-1", "--at-ms", "59000")
        self.assertEqual(rc, 0)

    def test_missing_key(self):
        rc, out, err = self._run("code")
        self.assertEqual(rc, 2)
        self.assertEqual(out, "")
        self.assertIn("no key given", err)

    def test_unsupported_algorithm(self):
        os.environ["SLOT_TOTP_ALGORITHM"] = "md5"
        rc, _, err = self._run("code", "--key", RFC_KEY)
        self.assertEqual(rc, 2)
        self.assertIn("unsupported hash algorithm", err)

    def test_events_logged_without_secrets(self):
        self._run("code", "--key", RFC_KEY, "--at-ms", "59000")
        self._run("check", "94287082", "--key", RFC_KEY, "--at-ms", "59000")
        text = "\n".join(e.to_line() for e in EventLog().tail())
        self.assertIn("SETKEY slot=cli", text)
        self.assertIn("GEN slot=cli derived=0", text)
        self.assertIn("CHECK slot=cli derived=0 ok=1 off=0", text)
        self.assertNotIn(RFC_KEY, text)
        self.assertNotIn("94287082", text)

    def test_events_command(self):
        rc, out, _ = self._run("events")
        self.assertEqual(rc, 0)
        self.assertEqual(out, "")

        self._run("new-key")
        self._run("code", "--key", RFC_KEY, "--at-ms", "59000")
        self._run("check", "00000000", "--key", RFC_KEY, "--param", "p", "--at-ms", "59000")

        rc, out, _ = self._run("events", "--limit", "3")
        self.assertEqual(rc, 0)
        lines = out.splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].endswith(" GEN slot=cli derived=0"))
        self.assertTrue(lines[1].endswith(" SETKEY slot=cli"))
        self.assertTrue(lines[2].endswith(" CHECK slot=cli derived=1 ok=0 off=-"))
