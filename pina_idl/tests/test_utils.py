#!/usr/bin/env python3

import pytest

from pina_idl.pipeline.config import DEFAULT_KNOWN_ADDRESSES, GeneratorConfig
from pina_idl.utils import (
    normalize_whitespace,
    snake_to_pascal_case,
    split_top_level,
    strip_delimiters,
    to_snake_case,
)


class TestCaseConversion:
    """Test name case conversion"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Initialize", "initialize"),
            ("TestEventCpi", "test_event_cpi"),
            ("HTTPServer", "http_server"),
            ("my-program", "my_program"),
            ("already_snake", "already_snake"),
            ("", ""),
        ],
    )
    def test_to_snake_case(self, text, expected):
        assert to_snake_case(text) == expected

    def test_snake_to_pascal_case(self):
        assert snake_to_pascal_case("my_program") == "MyProgram"
        assert snake_to_pascal_case("counter-program") == "CounterProgram"
        assert snake_to_pascal_case("") == ""


class TestTextHelpers:
    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n\t b  ") == "a b"

    def test_split_top_level(self):
        assert split_top_level("a, f(b, c), [d, e]") == ["a", "f(b, c)", "[d, e]"]
        assert split_top_level('b"x,y", z,') == ['b"x,y"', "z"]
        assert split_top_level("") == []

    def test_strip_delimiters(self):
        assert strip_delimiters("( a, b )") == "a, b"
        assert strip_delimiters("[x]", "[", "]") == "x"
        assert strip_delimiters("plain") == "plain"


class TestGeneratorConfig:
    def test_defaults(self):
        config = GeneratorConfig()
        assert config.name_override is None
        assert config.source_dir == "src"
        assert config.known_addresses == DEFAULT_KNOWN_ADDRESSES
        assert config.known_addresses is not DEFAULT_KNOWN_ADDRESSES

    def test_dict_round_trip(self):
        config = GeneratorConfig.from_dict({"name_override": "x", "source_glob": "lib.rs", "unknown": 1})
        assert config.name_override == "x"
        assert config.source_glob == "lib.rs"
        assert not hasattr(config, "unknown")
        assert GeneratorConfig.from_dict(config.to_dict()) == config
