"""
Tests for the declaration scanner.

Each test scans a small Rust snippet in memory and checks the declarations
that come out of it.
"""

from __future__ import annotations

import pytest

from pina_idl.errors import IoFailure, SyntaxFailure, UnsupportedType
from pina_idl.pipeline.scanner import DeclarationKind, DeclarationScanner
from pina_idl.pipeline.scanner.scanner import seed_array_elements, type_name


@pytest.fixture
def scanner():
    return DeclarationScanner()


class TestItemClassification:
    """Test that tagged items map to the right declaration kinds"""

    CODE = """
use pina::*;

declare_id!("11111111111111111111111111111111");

/// Instruction tags.
#[discriminator]
pub enum Ix {
    /// Start it.
    Go = 0,
    Stop,
}

/// Thing account.
#[account(discriminator = Kind, variant = Thing)]
pub struct Thing {
    /// Amount held.
    pub amount: u64,
    pub owner: Address,
}

#[instruction(discriminator = Ix, variant = Go)]
pub struct GoInstruction {
    pub amount: PodU64,
}

#[event(discriminator = Ev)]
pub struct Moved {}

#[error]
pub enum ThingError {
    Broken = 6000,
}

const LIMIT: usize = 16;
"""

    def test_kinds_in_source_order(self, scanner):
        """Test every tagged item is found, in order"""
        result = scanner.scan(self.CODE, "lib.rs")
        kinds = [d.kind for d in result.declarations]
        assert kinds == [
            DeclarationKind.PROGRAM_ID,
            DeclarationKind.DISCRIMINATOR,
            DeclarationKind.ACCOUNT,
            DeclarationKind.INSTRUCTION,
            DeclarationKind.EVENT,
            DeclarationKind.ERROR,
            DeclarationKind.CONSTANT,
        ]
        assert result.path == "lib.rs"

    def test_program_id(self, scanner):
        """Test declare_id! address extraction"""
        (program_id,) = scanner.scan(self.CODE).of_kind(DeclarationKind.PROGRAM_ID)
        assert program_id.address == "11111111111111111111111111111111"

    def test_discriminator_variants(self, scanner):
        """Test implicit variant values continue from the previous one"""
        (enum,) = scanner.scan(self.CODE).of_kind(DeclarationKind.DISCRIMINATOR)
        assert enum.name == "Ix"
        assert enum.docs == ["Instruction tags."]
        assert [(v.name, v.explicit_value, v.value) for v in enum.variants] == [("Go", 0, 0), ("Stop", None, 1)]
        assert enum.variants[0].docs == ["Start it."]
        assert enum.primitive is None
        assert enum.is_final is False

    def test_tagged_struct_arguments_and_fields(self, scanner):
        """Test attribute arguments and field tokens of a tagged struct"""
        (account,) = scanner.scan(self.CODE).of_kind(DeclarationKind.ACCOUNT)
        assert account.name == "Thing"
        assert account.discriminator_enum == "Kind"
        assert account.variant == "Thing"
        assert account.docs == ["Thing account."]
        assert [(f.name, f.type_token) for f in account.fields] == [("amount", "u64"), ("owner", "Address")]
        assert account.fields[0].docs == ["Amount held."]
        assert account.fields[1].docs == []

        (event,) = scanner.scan(self.CODE).of_kind(DeclarationKind.EVENT)
        assert event.variant is None
        assert event.fields == []

    def test_error_and_constant(self, scanner):
        """Test error enums and constants"""
        result = scanner.scan(self.CODE)
        (error,) = result.of_kind(DeclarationKind.ERROR)
        assert error.name == "ThingError"
        assert error.variants[0].explicit_value == 6000
        (constant,) = result.of_kind(DeclarationKind.CONSTANT)
        assert (constant.name, constant.type_token, constant.value_text) == ("LIMIT", "usize", "16")

    def test_line_numbers(self, scanner):
        """Test declarations record their 1-based line"""
        result = scanner.scan(self.CODE, "lib.rs")
        (program_id,) = result.of_kind(DeclarationKind.PROGRAM_ID)
        assert program_id.line == 4
        assert program_id.source_path == "lib.rs"


class TestDiscriminatorAttributes:
    """Test discriminator primitive, repr and final handling"""

    def test_primitive_and_final(self, scanner):
        """Test #[discriminator(primitive = u16, final)]"""
        code = """
#[discriminator(primitive = u16, final)]
pub enum Wide {
    A = 0x0100,
    B,
}
"""
        (enum,) = scanner.scan(code).of_kind(DeclarationKind.DISCRIMINATOR)
        assert enum.primitive == "u16"
        assert enum.is_final is True
        assert [v.value for v in enum.variants] == [256, 257]

    def test_repr_attribute(self, scanner):
        """Test #[repr(...)] is kept for width inference"""
        code = """
#[discriminator]
#[repr(u32)]
pub enum Kind {
    A = 1,
}
"""
        (enum,) = scanner.scan(code).of_kind(DeclarationKind.DISCRIMINATOR)
        assert enum.primitive is None
        assert enum.repr == "u32"


class TestScopeAndSkipping:
    """Test module recursion and that unrelated code is ignored"""

    def test_nested_modules(self, scanner):
        """Test items inside inline modules are found"""
        code = """
pub mod outer {
    pub mod inner {
        #[error]
        pub enum DeepError {
            Oops = 1,
        }
    }
}
"""
        (error,) = scanner.scan(code).of_kind(DeclarationKind.ERROR)
        assert error.name == "DeepError"

    def test_program_id_module_depth(self, scanner):
        code = """
declare_id!("11111111111111111111111111111111");

pub mod external {
    declare_id!("SysvarRent111111111111111111111111111111111");
}
"""
        root, nested = scanner.scan(code).of_kind(DeclarationKind.PROGRAM_ID)
        assert (root.address, root.module_depth) == ("11111111111111111111111111111111", 0)
        assert (nested.address, nested.module_depth) == ("SysvarRent111111111111111111111111111111111", 1)

    def test_unrelated_code_is_skipped(self, scanner):
        """Test traits, impls, plain enums and tuple structs produce nothing"""
        code = """
use core::fmt;

pub trait Describe {
    fn describe(&self) -> &'static str;
}

pub enum Plain {
    A,
    B,
}

pub struct Pair(u8, u8);

impl Describe for Pair {
    fn describe(&self) -> &'static str {
        "pair"
    }
}

fn helper(x: u8) -> u8 {
    x + 1
}
"""
        assert scanner.scan(code).declarations == []

    def test_plain_and_accounts_structs(self, scanner):
        """Test untagged named structs and #[derive(Accounts)] structs"""
        code = """
#[derive(Clone, Copy)]
pub struct Config {
    pub fee: PodU16,
}

#[derive(Accounts, Debug)]
pub struct GoAccounts<'a> {
    /// Payer.
    pub payer: &'a AccountView,
    pub extra: Option<&'a AccountView>,
}
"""
        result = scanner.scan(code)
        (struct,) = result.of_kind(DeclarationKind.STRUCT)
        assert struct.name == "Config"
        (accounts,) = result.of_kind(DeclarationKind.ACCOUNTS_STRUCT)
        assert accounts.name == "GoAccounts"
        assert [f.name for f in accounts.fields] == ["payer", "extra"]
        assert accounts.fields[0].docs == ["Payer."]
        assert accounts.fields[1].type_token.startswith("Option<")

    def test_comments_between_items_do_not_leak(self, scanner):
        """Test plain comments are not docs and docs attach only to the next item"""
        code = """
/// Docs for the first.
#[error]
pub enum First {
    A = 1,
}

// ------------------------------------------------------------
// Section header
// ------------------------------------------------------------

#[error]
pub enum Second {
    B = 2,
}
"""
        first, second = scanner.scan(code).of_kind(DeclarationKind.ERROR)
        assert first.docs == ["Docs for the first."]
        assert second.docs == []


class TestSyntaxErrors:
    """Test that malformed sources fail with a location"""

    def test_syntax_failure(self, scanner):
        """Test an unbalanced item raises SyntaxFailure"""
        code = "pub struct Ok {}\n\npub struct Broken {\n    a: u8,\n"
        with pytest.raises(SyntaxFailure) as exc_info:
            scanner.scan(code, "broken.rs")
        assert exc_info.value.line is not None
        assert "broken.rs" in str(exc_info.value)

    def test_tagged_tuple_struct(self, scanner):
        """Test a tagged struct with a tuple body is rejected with its location"""
        code = "#[account(discriminator = Kind)]\npub struct Pair(PodU64, PodU64);\n"
        with pytest.raises(UnsupportedType) as exc_info:
            scanner.scan(code, "lib.rs")
        assert (exc_info.value.context, exc_info.value.token) == ("Pair", "<tuple struct>")
        assert exc_info.value.location == "lib.rs:2"

    def test_tagged_unit_struct_has_no_fields(self, scanner):
        code = "#[instruction(discriminator = Ix, variant = Close)]\npub struct CloseInstruction;\n"
        (decl,) = scanner.scan(code).of_kind(DeclarationKind.INSTRUCTION)
        assert decl.fields == []

    def test_scan_missing_file(self, scanner, tmp_path):
        """Test a missing file raises IoFailure"""
        with pytest.raises(IoFailure):
            scanner.scan_file(tmp_path / "missing.rs")


class TestSeeds:
    """Test seed macros, seed invocations and PDA helper calls"""

    def test_seed_macro_uses_shortest_arm(self, scanner):
        """Test the arm with the fewest parameters is chosen"""
        code = """
/// Counter seeds.
macro_rules! counter_seeds {
    ($authority:expr) => {
        &[COUNTER_SEED, $authority]
    };
    ($authority:expr, $bump:expr) => {
        &[COUNTER_SEED, $authority, &[$bump]]
    };
}
"""
        (macro,) = scanner.scan(code).of_kind(DeclarationKind.SEED_MACRO)
        assert macro.name == "counter_seeds"
        assert macro.params == ["authority"]
        assert macro.seeds == ["COUNTER_SEED", "$authority"]
        assert macro.docs == ["Counter seeds."]

    def test_other_macros_are_ignored(self, scanner):
        """Test macro_rules! without `seeds` in the name is skipped"""
        code = """
macro_rules! square {
    ($x:expr) => {
        $x * $x
    };
}
"""
        assert scanner.scan(code).declarations == []

    def test_invocation_arguments_follow_let_bindings(self, scanner):
        """Test local names in seed macro arguments are substituted"""
        code = """
fn derive(owner: &AccountView) {
    let key = owner.address();
    let seeds = vault_seeds!(key.as_ref(), 3);
}
"""
        (invocation,) = scanner.scan(code).of_kind(DeclarationKind.SEED_INVOCATION)
        assert invocation.name == "vault_seeds"
        assert invocation.arguments == ["owner.address().as_ref()", "3"]

    def test_pda_calls(self, scanner):
        """Test inline seed arrays of PDA helpers, with bump elements dropped"""
        code = """
pub fn receipt(vault: &Address, index: u64, bump: u8) {
    let a = find_program_address(&[RECEIPT, vault.as_ref(), &index.to_le_bytes()], &ID);
    let b = Address::create_program_address(&[RECEIPT, &[bump]], &ID);
    let c = find_program_address(seeds, &ID);
}
"""
        first, second = scanner.scan(code).of_kind(DeclarationKind.PDA_CALL)
        assert first.name == "find_program_address"
        assert first.seeds == ["RECEIPT", "vault.as_ref()", "&index.to_le_bytes()"]
        assert second.name == "create_program_address"
        assert second.seeds == ["RECEIPT"]


class TestProcessorsAndDispatch:
    """Test account validation and dispatch scanning"""

    CODE = """
impl<'a> ProcessAccountInfos<'a> for GoAccounts<'a> {
    fn process(&self, data: &[u8]) -> ProgramResult {
        let key = self.payer.address();
        let seeds = thing_seeds!(key.as_ref());
        self.payer.assert_signer()?.assert_writable()?;
        self.thing
            .assert_empty()?
            .assert_seeds(seeds, &ID)?;
        self.system_program.assert_address(&system::ID)?;
        Ok(())
    }
}

pub mod entrypoint {
    use super::*;

    pub fn process_instruction(program_id: &Address, accounts: &[AccountView], data: &[u8]) -> ProgramResult {
        let instruction: Ix = parse_instruction(program_id, &ID, data)?;
        match instruction {
            Ix::Go => GoAccounts::try_from(accounts)?.process(data),
            _ => Err(ProgramError::InvalidInstructionData),
        }
    }
}
"""

    def test_processor_assertions(self, scanner):
        """Test assertion calls are attributed to the field they validate"""
        (processor,) = scanner.scan(self.CODE).of_kind(DeclarationKind.PROCESSOR)
        assert processor.name == "GoAccounts"
        calls = [(a.field_name, a.method) for a in processor.assertions]
        assert ("payer", "assert_signer") in calls
        assert ("payer", "assert_writable") in calls
        assert ("thing", "assert_empty") in calls
        assert ("thing", "assert_seeds") in calls
        assert ("system_program", "assert_address") in calls

    def test_assertion_arguments_are_resolved(self, scanner):
        """Test assertion arguments follow let bindings"""
        (processor,) = scanner.scan(self.CODE).of_kind(DeclarationKind.PROCESSOR)
        seeds = next(a for a in processor.assertions if a.method == "assert_seeds")
        assert seeds.arguments == ["thing_seeds!(key.as_ref())", "&ID"]
        address = next(a for a in processor.assertions if a.method == "assert_address")
        assert address.arguments == ["&system::ID"]

    def test_dispatch_arms(self, scanner):
        """Test only `Enum::Variant => Accounts::try_from(..)` arms are kept"""
        (arm,) = scanner.scan(self.CODE).of_kind(DeclarationKind.DISPATCH)
        assert (arm.enum_name, arm.variant, arm.accounts_struct) == ("Ix", "Go", "GoAccounts")

    def test_other_impls_are_not_processors(self, scanner):
        """Test impl blocks of other traits produce no processor"""
        code = """
impl Describe for GoAccounts {
    fn describe(&self) -> u8 {
        self.payer.assert_signer();
        0
    }
}
"""
        assert scanner.scan(code).of_kind(DeclarationKind.PROCESSOR) == []


class TestHelpers:
    def test_type_name(self):
        assert type_name("pina::ProcessAccountInfos<'a>") == "ProcessAccountInfos"
        assert type_name("GoAccounts<'a>") == "GoAccounts"
        assert type_name("") == ""

    def test_seed_array_elements(self):
        assert seed_array_elements("&[A, f(b, c), &[bump]]") == ["A", "f(b, c)"]
        assert seed_array_elements("{ &[A, [1, 2]] }") == ["A"]
        assert seed_array_elements("no array here") is None
