import tempfile
from pathlib import Path
from unittest import TestCase

from pina_idl import IdlGenerator
from pina_idl.errors import ScaffoldError
from pina_idl.scaffold import DEFAULT_PROGRAM_ID, init_project, next_steps, render_project


class TestRenderProject(TestCase):
    """Test the rendered project files"""

    def setUp(self):
        self.files = render_project("token-vault")

    def test_file_set(self):
        self.assertEqual(sorted(self.files), [".gitignore", "Cargo.toml", "src/lib.rs"])

    def test_manifest(self):
        self.assertIn('name = "token_vault"', self.files["Cargo.toml"])
        self.assertIn("pina = ", self.files["Cargo.toml"])

    def test_program_source(self):
        lib = self.files["src/lib.rs"]
        self.assertIn(f'declare_id!("{DEFAULT_PROGRAM_ID}");', lib)
        self.assertIn("pub enum TokenVaultInstruction", lib)
        self.assertIn("macro_rules! counter_seeds", lib)
        self.assertTrue(lib.endswith("\n"))


class TestInitProject(TestCase):
    """Test writing a new project to disk"""

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.target = Path(self._tmpdir.name) / "counter"

    def tearDown(self):
        self._tmpdir.cleanup()

    def test_writes_files(self):
        written = init_project(self.target, "counter")
        self.assertEqual(len(written), 3)
        for path in written:
            self.assertTrue(path.exists(), path)

    def test_refuses_to_overwrite(self):
        init_project(self.target, "counter")
        lib = self.target / "src" / "lib.rs"
        lib.write_text("// edited\n")
        with self.assertRaises(ScaffoldError) as ctx:
            init_project(self.target, "counter")
        self.assertIn("--force", str(ctx.exception))
        self.assertEqual(lib.read_text(), "// edited\n")

    def test_force_overwrites(self):
        init_project(self.target, "counter")
        lib = self.target / "src" / "lib.rs"
        lib.write_text("// edited\n")
        init_project(self.target, "counter", force=True)
        self.assertIn("declare_id!", lib.read_text())

    def test_invalid_name(self):
        with self.assertRaises(ScaffoldError):
            init_project(self.target, "---")

    def test_next_steps(self):
        message = next_steps(self.target, "counter")
        self.assertTrue(message.startswith(f"Initialized new Pina project at {self.target}"))

    def test_generated_program_round_trips(self):
        """Test the scaffolded program goes through the IDL pipeline"""
        init_project(self.target, "demo_counter")
        program = IdlGenerator(self.target).generate().to_dict()["program"]

        self.assertEqual(program["name"], "demo_counter")
        self.assertEqual(program["address"], DEFAULT_PROGRAM_ID)
        self.assertEqual([i["name"] for i in program["instructions"]], ["initialize", "increment"])
        self.assertEqual([a["name"] for a in program["accounts"]], ["CounterState"])
        self.assertEqual(
            program["errors"],
            [
                {
                    "name": "Overflow",
                    "code": 0,
                    "message": "The counter reached its maximum value.",
                    "docs": ["The counter reached its maximum value."],
                }
            ],
        )
        (pda,) = program["pdas"]
        self.assertEqual(pda["name"], "counter")

        initialize = program["instructions"][0]
        authority, counter, system_program = initialize["accounts"]
        self.assertTrue(authority["isSigner"])
        self.assertEqual(counter["pda"], "counter")
        self.assertEqual(system_program["defaultValue"]["kind"], "publicKey")
