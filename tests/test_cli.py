import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

import main
from axiomata.core.exceptions import GenerationExhausted


class CliTests(unittest.TestCase):
    def run_cli(self, *argv):
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            code = main.main(["--log-level", "WARNING", *argv])
        return code, buffer.getvalue()

    def test_json_output(self) -> None:
        code, out = self.run_cli("--date", "2024-01-01", "--difficulty", "easy")
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["dailyKey"], "2024-01-01")
        self.assertEqual(payload["gridSize"], 5)
        self.assertGreater(len(payload["constraints"]), 0)

    def test_solve_flag(self) -> None:
        code, out = self.run_cli("--key", "practice-1-42", "--difficulty", "easy", "--solve")
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertIsNotNone(payload["solved"])
        self.assertTrue(payload["solvedValid"])

    def test_cpsat_engine_and_uniqueness(self) -> None:
        code, out = self.run_cli(
            "--date", "2024-01-01", "--difficulty", "easy", "--solve", "--unique", "--engine", "cpsat"
        )
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertTrue(payload["solvedValid"])
        self.assertIsInstance(payload["unique"], bool)

    def test_practice_key(self) -> None:
        code, out = self.run_cli("--practice", "7", "--difficulty", "easy")
        self.assertEqual(code, 0)
        self.assertRegex(json.loads(out)["dailyKey"], r"^practice-7-\d+$")

    def test_output_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "puzzle.json"
            code, out = self.run_cli("--date", "2024-01-01", "--difficulty", "easy", "--output", str(target))
            self.assertEqual(code, 0)
            self.assertEqual(out, "")
            self.assertEqual(json.loads(target.read_text(encoding="utf-8"))["difficulty"], "easy")

    def test_pretty_output(self) -> None:
        code, out = self.run_cli("--date", "2024-01-01", "--difficulty", "easy", "--pretty")
        self.assertEqual(code, 0)
        self.assertIn("--- Grid ---", out)
        self.assertIn("--- Constraints ---", out)
        self.assertIn("Key: 2024-01-01 (easy)", out)

    def test_date_and_key_are_exclusive(self) -> None:
        with redirect_stdout(io.StringIO()), patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                main.main(["--date", "2024-01-01", "--key", "x"])

    def test_exhaustion_exits_nonzero(self) -> None:
        with patch.object(main.PuzzleGenerator, "generate", side_effect=GenerationExhausted("nope", attempts=1)):
            code, out = self.run_cli("--date", "2024-01-01")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
